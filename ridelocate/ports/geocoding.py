"""Geocoding port - Abstraction for forward and reverse geocoding.

This protocol defines the contract for geocoding providers, allowing
different implementations (Nominatim, test fakes, ...) to be used.
Implementations may raise any exception on failure; the operation
runner translates it into the domain taxonomy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from ..domain.models import Coordinate, Placemark, SearchRegion


class GeocoderPort(Protocol):
    """Port for geocoding services.

    Implementation: adapters/geocoding/nominatim_adapter.py

    The provider handle must be safe for concurrent use: the operation
    runner may issue several calls at once from different tasks.
    """

    async def geocode(self, query: str, region: SearchRegion) -> Optional[Coordinate]:
        """Geocode a sanitized address, biased toward a region.

        Args:
            query: The address to geocode.
            region: Circular region used to bias results.

        Returns:
            Coordinate of the best match, or None if nothing matched.
        """
        ...

    async def reverse(self, coordinate: Coordinate) -> Optional[Placemark]:
        """Reverse geocode coordinates to an address.

        Args:
            coordinate: Validated GPS coordinates to look up.

        Returns:
            Placemark for the coordinates, or None if not found.
        """
        ...

    async def aclose(self) -> None:
        """Release network resources held by the provider."""
        ...
