"""Geocoding adapters - Implementations of GeocoderPort.

Available implementations:
- NominatimGeocoderAdapter: OpenStreetMap Nominatim geocoding (async)
"""

from .nominatim_adapter import NominatimGeocoderAdapter

__all__ = ["NominatimGeocoderAdapter"]
