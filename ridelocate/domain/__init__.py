"""Domain layer - Core value models and errors.

This module contains immutable domain models and typed errors
used throughout the package.
"""

from .errors import (
    CancelledRequestError,
    ConfigurationError,
    GeocodingFailedError,
    InvalidAddressError,
    InvalidCoordinatesError,
    LocationDisabledError,
    LocationError,
    LocationErrorKind,
    LocationTimeoutError,
    NoRouteFoundError,
    OutsideServiceAreaError,
    PermissionDeniedError,
    RideLocateError,
    RouteCalculationError,
    RouteError,
    RouteTimeoutError,
    UnknownLocationError,
)
from .models import (
    UNKNOWN_ADDRESS,
    Coordinate,
    GeocodeRequest,
    PermissionState,
    Placemark,
    ResolvedAddress,
    RouteResult,
    SearchRegion,
    TransportType,
    validate_coordinate,
)

__all__ = [
    # Models
    "Coordinate",
    "SearchRegion",
    "PermissionState",
    "Placemark",
    "ResolvedAddress",
    "GeocodeRequest",
    "RouteResult",
    "TransportType",
    "UNKNOWN_ADDRESS",
    "validate_coordinate",
    # Errors
    "RideLocateError",
    "LocationError",
    "LocationErrorKind",
    "PermissionDeniedError",
    "LocationDisabledError",
    "GeocodingFailedError",
    "InvalidAddressError",
    "OutsideServiceAreaError",
    "LocationTimeoutError",
    "CancelledRequestError",
    "UnknownLocationError",
    "RouteError",
    "InvalidCoordinatesError",
    "RouteCalculationError",
    "NoRouteFoundError",
    "RouteTimeoutError",
    "ConfigurationError",
]
