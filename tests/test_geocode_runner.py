"""Tests for bounded forward and reverse geocoding."""

import unicodedata

import pytest

from conftest import OTTAWA, TORONTO, FakeGeocoder

from ridelocate.config import GeocodingConfig
from ridelocate.domain.errors import (
    GeocodingFailedError,
    InvalidAddressError,
    LocationErrorKind,
    LocationTimeoutError,
    OutsideServiceAreaError,
)
from ridelocate.domain.models import UNKNOWN_ADDRESS, Coordinate, Placemark
from ridelocate.services.geocode_runner import GeocodeOperationRunner, sanitize_address


class TestSanitizeAddress:
    """Test suite for address sanitization."""

    def test_keeps_letters_digits_and_allowed_punctuation(self):
        assert sanitize_address("12 Main St., Apt #4 (rear)") == "12 Main St., Apt #4 (rear)"

    def test_drops_disallowed_characters(self):
        assert sanitize_address("12 Main St!!! <script>") == "12 Main St script"

    def test_keeps_accented_letters(self):
        assert sanitize_address("  12 rue de l'Église 🚕 ") == "12 rue de l'Église"

    def test_truncates_before_filtering(self):
        assert sanitize_address("abcdef", max_length=3) == "abc"

    def test_keeps_decomposed_accents(self):
        decomposed = unicodedata.normalize("NFD", "Montréal")

        assert len(decomposed) == len("Montréal") + 1
        assert sanitize_address(decomposed) == decomposed

    def test_keeps_indic_vowel_signs(self):
        assert sanitize_address("हिन्दी मार्ग") == "हिन्दी मार्ग"

    def test_emoji_only_is_empty(self):
        assert sanitize_address("🚕🚕🚕") == ""


class TestResolveCoordinate:
    """Test suite for forward geocoding."""

    @pytest.mark.asyncio
    async def test_returns_provider_coordinate(self, geocoder, geo_config):
        runner = GeocodeOperationRunner(geocoder, geo_config)

        result = await runner.resolve_coordinate("111 Wellington St", OTTAWA)

        assert result == OTTAWA
        query, region = geocoder.geocode_calls[0]
        assert query == "111 Wellington St"
        assert region.center == OTTAWA
        assert region.radius_km == geo_config.search_radius_km

    @pytest.mark.asyncio
    async def test_sanitized_query_reaches_provider(self, geocoder, geo_config):
        runner = GeocodeOperationRunner(geocoder, geo_config)

        await runner.resolve_coordinate("  111 Wellington St ✨ ", OTTAWA)

        assert geocoder.geocode_calls[0][0] == "111 Wellington St"

    @pytest.mark.asyncio
    async def test_empty_after_sanitization_never_calls_provider(self, geocoder, geo_config):
        runner = GeocodeOperationRunner(geocoder, geo_config)

        with pytest.raises(InvalidAddressError) as exc_info:
            await runner.resolve_coordinate("🚕 !!! 🚕", OTTAWA)

        assert exc_info.value.kind is LocationErrorKind.INVALID_ADDRESS
        assert geocoder.geocode_calls == []

    @pytest.mark.asyncio
    async def test_invalid_search_center_is_rejected(self, geocoder, geo_config):
        runner = GeocodeOperationRunner(geocoder, geo_config)

        with pytest.raises(InvalidAddressError):
            await runner.resolve_coordinate("111 Wellington St", Coordinate(999, 999))
        assert geocoder.geocode_calls == []

    @pytest.mark.asyncio
    async def test_no_match_is_geocoding_failure(self, geo_config):
        runner = GeocodeOperationRunner(FakeGeocoder(coordinate=None), geo_config)

        with pytest.raises(GeocodingFailedError) as exc_info:
            await runner.resolve_coordinate("nowhere", OTTAWA)
        assert exc_info.value.query == "nowhere"

    @pytest.mark.asyncio
    async def test_provider_exception_is_translated(self, geo_config):
        boom = ConnectionError("network down")
        runner = GeocodeOperationRunner(FakeGeocoder(error=boom), geo_config)

        with pytest.raises(GeocodingFailedError) as exc_info:
            await runner.resolve_coordinate("111 Wellington St", OTTAWA)
        assert exc_info.value.cause is boom

    @pytest.mark.asyncio
    async def test_invalid_provider_coordinate_is_failure(self, geo_config):
        runner = GeocodeOperationRunner(FakeGeocoder(coordinate=Coordinate(120, 0)), geo_config)

        with pytest.raises(GeocodingFailedError):
            await runner.resolve_coordinate("111 Wellington St", OTTAWA)

    @pytest.mark.asyncio
    async def test_slow_provider_times_out(self):
        geocoder = FakeGeocoder(delay=1.0)
        runner = GeocodeOperationRunner(geocoder, GeocodingConfig(timeout_seconds=0.05))

        with pytest.raises(LocationTimeoutError) as exc_info:
            await runner.resolve_coordinate("111 Wellington St", OTTAWA)

        assert exc_info.value.timeout_seconds == 0.05
        assert geocoder.cancelled == 1
        assert geocoder.in_flight == 0

    @pytest.mark.asyncio
    async def test_result_outside_service_area(self):
        config = GeocodingConfig(restrict_to_service_area=True, search_radius_km=50)
        runner = GeocodeOperationRunner(FakeGeocoder(coordinate=TORONTO), config)

        with pytest.raises(OutsideServiceAreaError) as exc_info:
            await runner.resolve_coordinate("Union Station", OTTAWA)
        assert exc_info.value.distance_km > 300

    @pytest.mark.asyncio
    async def test_far_result_allowed_without_enforcement(self, geo_config):
        runner = GeocodeOperationRunner(FakeGeocoder(coordinate=TORONTO), geo_config)

        assert await runner.resolve_coordinate("Union Station", OTTAWA) == TORONTO


class TestResolveAddress:
    """Test suite for reverse geocoding."""

    @pytest.mark.asyncio
    async def test_joins_components_with_separator(self, geo_config):
        placemark = Placemark(
            street_number="111",
            street_name="Wellington St",
            locality="Ottawa",
            region="Ontario",
            postal_code="K1A 0A9",
        )
        runner = GeocodeOperationRunner(FakeGeocoder(placemark=placemark), geo_config)

        address = await runner.resolve_address(OTTAWA)

        assert address.text == "111 Wellington St Ottawa Ontario K1A 0A9"

    @pytest.mark.asyncio
    async def test_configured_separator(self):
        placemark = Placemark(street_name="Wellington St", locality="Ottawa")
        config = GeocodingConfig(address_separator=", ")
        runner = GeocodeOperationRunner(FakeGeocoder(placemark=placemark), config)

        address = await runner.resolve_address(OTTAWA)

        assert str(address) == "Wellington St, Ottawa"

    @pytest.mark.asyncio
    async def test_empty_placemark_yields_unknown_sentinel(self, geo_config):
        runner = GeocodeOperationRunner(FakeGeocoder(placemark=Placemark()), geo_config)

        address = await runner.resolve_address(OTTAWA)

        assert address.is_unknown
        assert address.text == UNKNOWN_ADDRESS

    @pytest.mark.asyncio
    async def test_out_of_range_coordinate_is_invalid_address(self, geocoder, geo_config):
        runner = GeocodeOperationRunner(geocoder, geo_config)

        with pytest.raises(InvalidAddressError):
            await runner.resolve_address(Coordinate(999, 999))
        assert geocoder.reverse_calls == []

    @pytest.mark.asyncio
    async def test_provider_error_is_translated(self, geo_config):
        runner = GeocodeOperationRunner(FakeGeocoder(error=OSError("dns")), geo_config)

        with pytest.raises(GeocodingFailedError) as exc_info:
            await runner.resolve_address(OTTAWA)
        assert isinstance(exc_info.value.cause, OSError)

    @pytest.mark.asyncio
    async def test_domain_error_from_provider_passes_through(self, geo_config):
        error = LocationTimeoutError(timeout_seconds=3)
        runner = GeocodeOperationRunner(FakeGeocoder(error=error), geo_config)

        with pytest.raises(LocationTimeoutError) as exc_info:
            await runner.resolve_address(OTTAWA)
        assert exc_info.value is error
