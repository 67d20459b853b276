"""Ports layer - Abstract interfaces (Protocols) for the package.

Ports define the contracts between the location core and external
collaborators. They enable dependency injection and make the system
testable without a device or network.

This module follows the Hexagonal Architecture pattern:
- Input ports: How the core is driven (services, device callbacks)
- Output ports: How the core drives external systems (adapters)
"""

from .cache import CachePort
from .device import PermissionProviderPort, PositionProviderPort
from .geocoding import GeocoderPort
from .routing import RouterPort

__all__ = [
    # Geocoding
    "GeocoderPort",
    # Device
    "PermissionProviderPort",
    "PositionProviderPort",
    # Routing
    "RouterPort",
    # Cache
    "CachePort",
]
