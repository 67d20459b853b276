"""Geocode operation runner - bounded forward and reverse geocoding.

Wraps every provider call in ``race_with_timeout`` after sanitizing or
validating the input. Input problems fail fast, before any provider
call, with InvalidAddressError. Provider problems are translated to
GeocodingFailedError; raw provider exceptions never escape.
"""

from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass, field

from ..config import GeocodingConfig, get_config
from ..domain.errors import (
    GeocodingFailedError,
    InvalidAddressError,
    LocationError,
    OutsideServiceAreaError,
)
from ..domain.models import Coordinate, ResolvedAddress, SearchRegion, validate_coordinate
from ..ports.geocoding import GeocoderPort
from .race import race_with_timeout

ALLOWED_PUNCTUATION = frozenset(",-./()#'\"")
DEFAULT_MAX_ADDRESS_LENGTH = 200


def _is_allowed(char: str) -> bool:
    if char in ALLOWED_PUNCTUATION:
        return True
    # Letters (L*), combining marks (M*), numbers (N*) and separator spaces
    # (Zs), plus tab.
    category = unicodedata.category(char)
    return category[0] in ("L", "M", "N") or category == "Zs" or char == "\t"


def sanitize_address(address: str, max_length: int = DEFAULT_MAX_ADDRESS_LENGTH) -> str:
    """Clean a user-typed address before it reaches the provider.

    The input is truncated to ``max_length`` characters, then every
    character that is not a letter, combining mark, digit, whitespace or
    one of ``,-./()#'"`` is dropped, and surrounding whitespace is trimmed.
    Decomposed accents and Indic vowel signs are combining marks and are
    kept.

    >>> sanitize_address("  12 rue de l'Église 🚕\\x00 ")
    "12 rue de l'Église"
    """
    truncated = address[:max_length]
    filtered = "".join(ch for ch in truncated if _is_allowed(ch))
    return filtered.strip()


@dataclass
class GeocodeOperationRunner:
    """Bounded forward/reverse geocoding on top of a GeocoderPort.

    Each call owns its own race and its own provider call; the runner
    keeps no mutable state, so it can be shared by concurrent callers.

    Attributes:
        geocoder: Provider used for the lookups
        config: Geocoding configuration (timeouts, radius, formatting)
    """

    geocoder: GeocoderPort
    config: GeocodingConfig = field(default_factory=lambda: get_config().geocoding)

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    async def resolve_coordinate(self, address: str, search_center: Coordinate) -> Coordinate:
        """Geocode an address near ``search_center``.

        Args:
            address: Free-form address typed by the user.
            search_center: Center of the region used to bias results.

        Returns:
            Coordinate of the best match.

        Raises:
            InvalidAddressError: If the address sanitizes to nothing or the
                search center is not a valid coordinate.
            GeocodingFailedError: If the provider fails or finds nothing.
            OutsideServiceAreaError: If service-area enforcement is on and
                the match lies outside the search region.
            LocationTimeoutError: If the provider does not answer in time.
        """
        query = sanitize_address(address, self.config.max_address_length)
        if not query:
            raise InvalidAddressError("Address is empty after sanitization")
        validate_coordinate(search_center)

        region = SearchRegion(center=search_center, radius_km=self.config.search_radius_km)
        self._logger.debug(
            "Forward geocoding",
            extra={"query": query, "radius_km": region.radius_km},
        )

        async def lookup() -> Coordinate:
            try:
                found = await self.geocoder.geocode(query, region)
            except LocationError:
                raise
            except Exception as e:
                raise GeocodingFailedError(cause=e, query=query) from e
            if found is None:
                raise GeocodingFailedError(query=query)
            if not found.is_valid:
                raise GeocodingFailedError("Provider returned an invalid coordinate", query=query)
            return found

        coordinate = await race_with_timeout(
            lookup, self.config.timeout_seconds, name="geocode"
        )

        if self.config.restrict_to_service_area and not region.contains(coordinate):
            distance = region.distance_km(coordinate)
            self._logger.info(
                "Geocode result outside service area",
                extra={"query": query, "distance_km": round(distance, 1)},
            )
            raise OutsideServiceAreaError(distance_km=distance)

        return coordinate

    async def resolve_address(self, coordinate: Coordinate) -> ResolvedAddress:
        """Reverse geocode a coordinate.

        Args:
            coordinate: Coordinate to resolve.

        Returns:
            The address; its text is never empty.

        Raises:
            InvalidAddressError: If the coordinate is out of range.
            GeocodingFailedError: If the provider fails or finds nothing.
            LocationTimeoutError: If the provider does not answer in time.
        """
        validate_coordinate(coordinate)
        query = f"{coordinate.latitude},{coordinate.longitude}"

        async def lookup() -> ResolvedAddress:
            try:
                placemark = await self.geocoder.reverse(coordinate)
            except LocationError:
                raise
            except Exception as e:
                raise GeocodingFailedError(cause=e, query=query) from e
            if placemark is None:
                raise GeocodingFailedError(query=query)
            # A placemark without components renders as the unknown-address
            # sentinel, never as an empty string.
            return ResolvedAddress.from_placemark(
                placemark,
                separator=self.config.address_separator,
                unknown_text=self.config.unknown_address,
            )

        address = await race_with_timeout(
            lookup, self.config.timeout_seconds, name="reverse_geocode"
        )
        self._logger.debug(
            "Reverse geocode success",
            extra={"query": query, "components": len(address.components)},
        )
        return address
