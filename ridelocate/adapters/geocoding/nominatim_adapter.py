"""Nominatim geocoder adapter.

Implements GeocoderPort on top of geopy's Nominatim client running on
the aiohttp adapter, with:
- Caching via CachePort
- Configuration injection
- Rate limiting (geopy AsyncRateLimiter, no automatic retries)
- Translation of geopy errors into domain errors
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Hashable, Optional

from geopy.adapters import AioHTTPAdapter
from geopy.exc import GeocoderTimedOut, GeopyError
from geopy.extra.rate_limiter import AsyncRateLimiter
from geopy.geocoders import Nominatim

from ...config import GeocodingConfig, get_config
from ...domain.errors import GeocodingFailedError, LocationTimeoutError
from ...domain.models import Coordinate, Placemark, SearchRegion
from ...ports.cache import CachePort
from ..cache.memory_cache import InMemoryCache

LOCALITY_KEYS = ("city", "town", "village", "municipality", "hamlet", "suburb")
REGION_KEYS = ("state", "region", "province", "county")


def placemark_from_address(address: dict, coordinate: Optional[Coordinate] = None) -> Placemark:
    """Build a Placemark from a Nominatim ``address`` details block."""
    locality = next((address[k] for k in LOCALITY_KEYS if address.get(k)), None)
    region = next((address[k] for k in REGION_KEYS if address.get(k)), None)
    return Placemark(
        street_number=address.get("house_number"),
        street_name=address.get("road") or address.get("pedestrian"),
        locality=locality,
        region=region,
        postal_code=address.get("postcode"),
        coordinate=coordinate,
    )


@dataclass
class NominatimGeocoderAdapter:
    """Async Nominatim geocoder with caching and rate limiting.

    The geopy client is created lazily on first use so the adapter can be
    built outside a running event loop (e.g. by the container).

    Attributes:
        config: Geocoding configuration
        cache: Cache for forward and reverse results
    """

    config: GeocodingConfig = field(default_factory=lambda: get_config().geocoding)
    cache: CachePort[Any] = field(
        default_factory=lambda: InMemoryCache(name="geocode")
    )

    _geolocator: Optional[Nominatim] = field(default=None, repr=False)
    _geocode_fn: Optional[Any] = field(default=None, repr=False)
    _reverse_fn: Optional[Any] = field(default=None, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def _get_geolocator(self) -> Nominatim:
        """Get or initialize the geopy client and its rate limiters."""
        if self._geolocator is not None:
            return self._geolocator

        self._logger.debug(
            "Initializing Nominatim geocoder",
            extra={
                "user_agent": self.config.user_agent,
                "domain": self.config.domain,
                "timeout": self.config.timeout_seconds,
            },
        )

        self._geolocator = Nominatim(
            user_agent=self.config.user_agent,
            domain=self.config.domain,
            timeout=self.config.timeout_seconds,
            adapter_factory=AioHTTPAdapter,
        )
        # Retrying is the caller's decision.
        self._geocode_fn = AsyncRateLimiter(
            self._geolocator.geocode,
            min_delay_seconds=self.config.rate_limit_delay,
            max_retries=0,
            swallow_exceptions=False,
        )
        self._reverse_fn = AsyncRateLimiter(
            self._geolocator.reverse,
            min_delay_seconds=self.config.rate_limit_delay,
            max_retries=0,
            swallow_exceptions=False,
        )
        return self._geolocator

    def _round(self, value: float) -> float:
        return round(value, self.config.coordinate_precision)

    def _forward_key(self, query: str, region: SearchRegion) -> Hashable:
        center = region.center
        return (
            "geocode",
            query.lower(),
            self._round(center.latitude),
            self._round(center.longitude),
            region.radius_km,
        )

    def _reverse_key(self, coordinate: Coordinate) -> Hashable:
        return ("reverse", self._round(coordinate.latitude), self._round(coordinate.longitude))

    async def geocode(self, query: str, region: SearchRegion) -> Optional[Coordinate]:
        """Geocode an address, biased toward ``region``.

        Args:
            query: Sanitized address.
            region: Region whose bounding box is passed as Nominatim viewbox.

        Returns:
            Coordinate of the best match, or None if nothing matched.

        Raises:
            LocationTimeoutError: If Nominatim times out.
            GeocodingFailedError: On any other geopy error.
        """
        key = self._forward_key(query, region)
        cached = self.cache.get(key)
        if cached is not None:
            self._logger.debug("Geocode cache hit", extra={"query": query})
            return cached

        self._get_geolocator()
        south_west, north_east = region.bounding_box()
        try:
            location = await self._geocode_fn(
                query,
                exactly_one=True,
                language=self.config.language,
                viewbox=[south_west.as_tuple(), north_east.as_tuple()],
                bounded=False,
            )
        except GeocoderTimedOut as e:
            raise LocationTimeoutError(
                cause=e, timeout_seconds=self.config.timeout_seconds
            ) from e
        except GeopyError as e:
            self._logger.warning(
                "Geocode service error",
                extra={"query": query, "error": str(e)},
            )
            raise GeocodingFailedError(cause=e, query=query) from e

        if location is None:
            self._logger.debug("Geocode returned no result", extra={"query": query})
            return None

        coordinate = Coordinate(float(location.latitude), float(location.longitude))
        self.cache.set(key, coordinate)
        return coordinate

    async def reverse(self, coordinate: Coordinate) -> Optional[Placemark]:
        """Reverse geocode coordinates to a placemark.

        Returns:
            Placemark for the coordinates, or None if not found.

        Raises:
            LocationTimeoutError: If Nominatim times out.
            GeocodingFailedError: On any other geopy error.
        """
        key = self._reverse_key(coordinate)
        cached = self.cache.get(key)
        if cached is not None:
            self._logger.debug("Reverse geocode cache hit", extra={"key": str(key)})
            return cached

        self._get_geolocator()
        try:
            result = await self._reverse_fn(
                coordinate.as_tuple(),
                exactly_one=True,
                language=self.config.language,
                addressdetails=True,
            )
        except GeocoderTimedOut as e:
            raise LocationTimeoutError(
                cause=e, timeout_seconds=self.config.timeout_seconds
            ) from e
        except GeopyError as e:
            self._logger.warning(
                "Reverse geocode failed",
                extra={
                    "lat": coordinate.latitude,
                    "lon": coordinate.longitude,
                    "error": str(e),
                },
            )
            raise GeocodingFailedError(cause=e, query=str(coordinate.as_tuple())) from e

        if result is None:
            return None

        placemark = placemark_from_address(
            result.raw.get("address", {}),
            Coordinate(float(result.latitude), float(result.longitude)),
        )
        self.cache.set(key, placemark)
        return placemark

    async def aclose(self) -> None:
        """Close the aiohttp session opened by geopy, if any."""
        geolocator, self._geolocator = self._geolocator, None
        self._geocode_fn = None
        self._reverse_fn = None
        if geolocator is not None:
            await geolocator.__aexit__(None, None, None)
