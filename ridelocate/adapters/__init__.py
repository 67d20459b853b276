"""Adapters layer - Concrete implementations of ports.

This module contains implementations of the port interfaces,
connecting the location core to external systems:
- Geocoding services (Nominatim via geopy)
- Device location APIs (simulated)
- Caching (in-memory, null)
"""
