"""Top-level package for ridelocate.

Asynchronous location resolution for ride-booking clients: permission
negotiation, continuous position updates, bounded-latency forward and
reverse geocoding, and a single-flight reverse geocoding queue.

Typical use goes through the container and the LocationService facade::

    container = Container.create_default()
    async with container.resolve(LocationService) as location:
        location.request_permission()
        address = await location.enqueue_resolve_address(coordinate)
"""

from .container import Container, get_container, reset_container
from .domain import Coordinate, PermissionState, ResolvedAddress
from .services import LocationService

__all__ = [
    "Container",
    "get_container",
    "reset_container",
    "Coordinate",
    "PermissionState",
    "ResolvedAddress",
    "LocationService",
]
