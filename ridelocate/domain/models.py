"""Immutable domain models for location resolution.

All value models are frozen dataclasses with slots. They carry no I/O
and are created per call; ownership is never shared.
"""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Iterable, Optional

from geopy.distance import geodesic

from .errors import InvalidAddressError

if TYPE_CHECKING:
    from ..services.oneshot import OneShot

UNKNOWN_ADDRESS = "Unknown address"
DEFAULT_SEPARATOR = " "

# Two coordinates closer than this (in degrees) are the same point.
COORDINATE_TOLERANCE = 0.000001


class PermissionState(Enum):
    """Device location authorization as seen by the application."""

    UNDETERMINED = auto()
    DENIED = auto()
    RESTRICTED = auto()
    AUTHORIZED_LIMITED = auto()
    AUTHORIZED_FULL = auto()

    @property
    def is_authorized(self) -> bool:
        return self in (PermissionState.AUTHORIZED_LIMITED, PermissionState.AUTHORIZED_FULL)

    @property
    def is_blocked(self) -> bool:
        """Denied or restricted: only a settings change can leave these."""
        return self in (PermissionState.DENIED, PermissionState.RESTRICTED)


class TransportType(Enum):
    """Travel mode requested from the routing collaborator."""

    AUTOMOBILE = auto()
    WALKING = auto()
    TRANSIT = auto()


@dataclass(frozen=True, slots=True)
class Coordinate:
    """GPS coordinates.

    Construction never raises so that callers can hand over whatever the
    device or UI produced; operations call ``validate_coordinate`` before
    doing anything with it.
    """

    latitude: float
    longitude: float

    @property
    def is_valid(self) -> bool:
        """Check the latitude/longitude range invariant."""
        return (
            math.isfinite(self.latitude)
            and math.isfinite(self.longitude)
            and -90 <= self.latitude <= 90
            and -180 <= self.longitude <= 180
        )

    def is_close_to(self, other: Coordinate, tolerance: float = COORDINATE_TOLERANCE) -> bool:
        return (
            abs(self.latitude - other.latitude) < tolerance
            and abs(self.longitude - other.longitude) < tolerance
        )

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


def validate_coordinate(coordinate: Coordinate) -> Coordinate:
    """Return the coordinate unchanged or raise InvalidAddressError.

    Args:
        coordinate: Coordinate to check.

    Returns:
        The same coordinate, known to satisfy the range invariant.

    Raises:
        InvalidAddressError: If latitude or longitude is out of range.
    """
    if not coordinate.is_valid:
        raise InvalidAddressError(
            f"Invalid coordinate ({coordinate.latitude}, {coordinate.longitude})"
        )
    return coordinate


@dataclass(frozen=True, slots=True)
class SearchRegion:
    """Circular region used to bias forward geocoding.

    Attributes:
        center: Center of the region
        radius_km: Radius in kilometers
    """

    center: Coordinate
    radius_km: float

    def bounding_box(self) -> tuple[Coordinate, Coordinate]:
        """Return the (south-west, north-east) corners enclosing the circle."""
        origin = self.center.as_tuple()
        reach = geodesic(kilometers=self.radius_km)
        north = reach.destination(origin, bearing=0)
        east = reach.destination(origin, bearing=90)
        south = reach.destination(origin, bearing=180)
        west = reach.destination(origin, bearing=270)
        return (
            Coordinate(latitude=south.latitude, longitude=west.longitude),
            Coordinate(latitude=north.latitude, longitude=east.longitude),
        )

    def distance_km(self, coordinate: Coordinate) -> float:
        return geodesic(self.center.as_tuple(), coordinate.as_tuple()).kilometers

    def contains(self, coordinate: Coordinate) -> bool:
        return self.distance_km(coordinate) <= self.radius_km


@dataclass(frozen=True, slots=True)
class Placemark:
    """Provider-neutral reverse geocoding result.

    Attributes:
        street_number: House number
        street_name: Street or road
        locality: City, town or village
        region: State, province or region
        postal_code: Postal or ZIP code
        coordinate: Location the provider attached to the result
    """

    street_number: Optional[str] = None
    street_name: Optional[str] = None
    locality: Optional[str] = None
    region: Optional[str] = None
    postal_code: Optional[str] = None
    coordinate: Optional[Coordinate] = None

    def components(self) -> tuple[str, ...]:
        """Non-empty address parts, most specific first."""
        parts = (
            self.street_number,
            self.street_name,
            self.locality,
            self.region,
            self.postal_code,
        )
        return tuple(p.strip() for p in parts if p and p.strip())


@dataclass(frozen=True, slots=True)
class ResolvedAddress:
    """A human-readable address built from ordered components.

    An address with no components renders as UNKNOWN_ADDRESS, never as
    an empty string.
    """

    components: tuple[str, ...] = field(default_factory=tuple)
    separator: str = DEFAULT_SEPARATOR
    unknown_text: str = UNKNOWN_ADDRESS

    @classmethod
    def from_components(
        cls,
        components: Iterable[Optional[str]],
        separator: str = DEFAULT_SEPARATOR,
        unknown_text: str = UNKNOWN_ADDRESS,
    ) -> ResolvedAddress:
        cleaned = tuple(c.strip() for c in components if c and c.strip())
        return cls(components=cleaned, separator=separator, unknown_text=unknown_text)

    @classmethod
    def from_placemark(
        cls,
        placemark: Placemark,
        separator: str = DEFAULT_SEPARATOR,
        unknown_text: str = UNKNOWN_ADDRESS,
    ) -> ResolvedAddress:
        return cls(
            components=placemark.components(),
            separator=separator,
            unknown_text=unknown_text,
        )

    @property
    def is_unknown(self) -> bool:
        return len(self.components) == 0

    @property
    def text(self) -> str:
        if self.is_unknown:
            return self.unknown_text
        return self.separator.join(self.components)

    def __str__(self) -> str:
        return self.text


def new_request_id() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class GeocodeRequest:
    """A queued reverse-resolution request.

    The result slot is resolved exactly once: with an address, an error,
    or cancellation.

    Attributes:
        coordinate: Coordinate to resolve
        slot: Single-use result slot awaited by the caller
        request_id: Unique identifier for logging and ordering
    """

    coordinate: Coordinate
    slot: OneShot[ResolvedAddress]
    request_id: str = field(default_factory=new_request_id)

    @property
    def is_resolved(self) -> bool:
        return self.slot.done


@dataclass(frozen=True, slots=True)
class RouteResult:
    """Result of a route calculation by the routing collaborator.

    Attributes:
        distance_meters: Route length
        expected_travel_time_seconds: Estimated duration
        path: Ordered geometry of the route
        name: Provider-supplied route name
        advisory_notices: Provider advisories (tolls, closures, ...)
    """

    distance_meters: float
    expected_travel_time_seconds: float
    path: tuple[Coordinate, ...] = field(default_factory=tuple)
    name: str = ""
    advisory_notices: tuple[str, ...] = field(default_factory=tuple)

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000

    @property
    def travel_time_minutes(self) -> int:
        return int(self.expected_travel_time_seconds // 60)
