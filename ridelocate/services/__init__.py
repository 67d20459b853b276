"""Services layer - Application orchestration.

This module contains the services that implement the location core on
top of the ports.

Available services:
- race_with_timeout: Bounded-latency race primitive
- OneShot: Single-resolution result slot
- GeocodeOperationRunner: Bounded forward/reverse geocoding
- RequestSerializer: Single-flight FIFO reverse geocoding queue
- PermissionCoordinator: Permission state machine
- PositionSession: Continuous updates and one-shot fixes
- RouteService: Bounded route calculation
- LocationService: Facade for UI and feature collaborators
"""

from .geocode_runner import GeocodeOperationRunner, sanitize_address
from .location_service import LocationService
from .oneshot import OneShot
from .permission_coordinator import PermissionCoordinator
from .position_session import PositionSession
from .race import race_with_timeout
from .request_serializer import RequestSerializer
from .route_service import RouteService

__all__ = [
    "race_with_timeout",
    "OneShot",
    "GeocodeOperationRunner",
    "sanitize_address",
    "RequestSerializer",
    "PermissionCoordinator",
    "PositionSession",
    "RouteService",
    "LocationService",
]
