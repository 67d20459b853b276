"""Typed domain errors for location resolution.

Every failure surfaced by the core is one of these errors. Raw provider
exceptions (geopy, aiohttp, device APIs) are translated at the boundary
of each bounded operation and kept as ``cause`` for debugging.

All location errors inherit from LocationError and expose a ``kind`` so
callers can map them to their own user-facing messages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import ClassVar, Optional


class LocationErrorKind(Enum):
    """Error taxonomy emitted by the core."""

    PERMISSION_DENIED = auto()
    LOCATION_DISABLED = auto()
    GEOCODING_FAILED = auto()
    INVALID_ADDRESS = auto()
    OUTSIDE_SERVICE_AREA = auto()
    TIMEOUT = auto()
    CANCELLED = auto()
    UNKNOWN = auto()


@dataclass
class RideLocateError(Exception):
    """Base error for the package.

    Attributes:
        message: Human-readable error description
        cause: Optional underlying exception that caused this error
    """

    message: str = ""
    cause: Optional[BaseException] = field(default=None, repr=False)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

    def __post_init__(self) -> None:
        super().__init__(self.message)


@dataclass
class LocationError(RideLocateError):
    """Base error for positioning and geocoding operations."""

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.UNKNOWN


@dataclass
class PermissionDeniedError(LocationError):
    """Location permission is not granted."""

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.PERMISSION_DENIED
    message: str = "Location permission denied"


@dataclass
class LocationDisabledError(LocationError):
    """Device location services are globally disabled."""

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.LOCATION_DISABLED
    message: str = "Location services disabled"


@dataclass
class GeocodingFailedError(LocationError):
    """The provider failed or returned no usable result.

    Attributes:
        query: The address or coordinate that was looked up
    """

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.GEOCODING_FAILED
    message: str = "Address not found"
    query: str = ""


@dataclass
class InvalidAddressError(LocationError):
    """Input rejected before any provider call.

    Raised for addresses that sanitize to nothing and for coordinates
    outside the valid latitude/longitude ranges.
    """

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.INVALID_ADDRESS
    message: str = "Invalid address"


@dataclass
class OutsideServiceAreaError(LocationError):
    """A resolved coordinate lies outside the search region.

    Attributes:
        distance_km: Distance from the search center to the result
    """

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.OUTSIDE_SERVICE_AREA
    message: str = "Address outside service area"
    distance_km: Optional[float] = None


@dataclass
class LocationTimeoutError(LocationError):
    """A bounded operation did not complete in time.

    Attributes:
        timeout_seconds: The bound that was exceeded
    """

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.TIMEOUT
    message: str = "Location request timeout"
    timeout_seconds: Optional[float] = None


@dataclass
class CancelledRequestError(LocationError):
    """A queued request was cancelled before producing a result.

    Attributes:
        request_id: Identifier of the cancelled request
    """

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.CANCELLED
    message: str = "Request cancelled"
    request_id: str = ""


@dataclass
class UnknownLocationError(LocationError):
    """Unclassified device or provider failure."""

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.UNKNOWN
    message: str = "Location error"


@dataclass
class RouteError(RideLocateError):
    """Base error for the routing collaborator."""

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.UNKNOWN


@dataclass
class InvalidCoordinatesError(RouteError):
    """Route endpoints failed coordinate validation.

    Reported with the same kind as coordinates rejected by the location
    operations.
    """

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.INVALID_ADDRESS
    message: str = "Invalid coordinates provided"


@dataclass
class RouteCalculationError(RouteError):
    """The routing provider failed."""

    message: str = "Route calculation failed"


@dataclass
class NoRouteFoundError(RouteError):
    """No route exists between the requested endpoints."""

    message: str = "No route found between the specified locations"


@dataclass
class RouteTimeoutError(RouteError):
    """Route calculation exceeded its time bound.

    Attributes:
        timeout_seconds: The bound that was exceeded
    """

    kind: ClassVar[LocationErrorKind] = LocationErrorKind.TIMEOUT
    message: str = "Route calculation timeout"
    timeout_seconds: Optional[float] = None


@dataclass
class ConfigurationError(RideLocateError):
    """Invalid or missing configuration.

    Attributes:
        setting_name: Name of the problematic setting
        expected_type: Expected type or format
    """

    setting_name: str = ""
    expected_type: Optional[str] = None
