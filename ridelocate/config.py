"""Centralized configuration using Pydantic Settings.

This module provides a single source of truth for timeouts, search
radius, queue cooldown and logging.

Configuration can be overridden via environment variables:
- RL_GEO_TIMEOUT_SECONDS=5
- RL_QUEUE_COOLDOWN_SECONDS=0.25
- RL_PERMISSION_PROMPT_TIMEOUT_POLICY=error
- RL_LOG_LEVEL=DEBUG
- etc.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .domain.models import UNKNOWN_ADDRESS, Coordinate


class GeocodingConfig(BaseSettings):
    """Geocoding configuration.

    Environment variables prefixed with RL_GEO_.
    """

    model_config = SettingsConfigDict(env_prefix="RL_GEO_")

    user_agent: str = "ridelocate"
    domain: str = "nominatim.openstreetmap.org"
    language: str = "en"
    timeout_seconds: float = Field(default=10.0, gt=0)
    search_radius_km: float = Field(default=50.0, gt=0)
    max_address_length: int = Field(default=200, gt=0)
    restrict_to_service_area: bool = False
    address_separator: str = " "
    unknown_address: str = Field(default=UNKNOWN_ADDRESS, min_length=1)
    # Nominatim usage policy asks for at most one request per second.
    rate_limit_delay: float = Field(default=1.0, ge=0)
    cache_ttl_seconds: float = Field(default=3600.0, gt=0)
    cache_max_size: int = Field(default=512, gt=0)
    coordinate_precision: int = Field(default=5, ge=0)


class QueueConfig(BaseSettings):
    """Serialized reverse-geocoding queue configuration.

    Environment variables prefixed with RL_QUEUE_.
    """

    model_config = SettingsConfigDict(env_prefix="RL_QUEUE_")

    cooldown_seconds: float = Field(default=0.1, ge=0)


class PermissionConfig(BaseSettings):
    """Permission negotiation configuration.

    Environment variables prefixed with RL_PERMISSION_.
    """

    model_config = SettingsConfigDict(env_prefix="RL_PERMISSION_")

    prompt_timeout_seconds: float = Field(default=10.0, gt=0)
    prompt_timeout_policy: Literal["last_known", "error"] = "last_known"


class PositionConfig(BaseSettings):
    """Position session configuration.

    Environment variables prefixed with RL_POSITION_.
    """

    model_config = SettingsConfigDict(env_prefix="RL_POSITION_")

    timeout_seconds: float = Field(default=10.0, gt=0)
    # Search center used when no device position is known (Ottawa).
    fallback_latitude: float = Field(default=45.4215, ge=-90, le=90)
    fallback_longitude: float = Field(default=-75.6972, ge=-180, le=180)

    @property
    def fallback_center(self) -> Coordinate:
        return Coordinate(self.fallback_latitude, self.fallback_longitude)


class RoutingConfig(BaseSettings):
    """Routing collaborator configuration.

    Environment variables prefixed with RL_ROUTE_.
    """

    model_config = SettingsConfigDict(env_prefix="RL_ROUTE_")

    timeout_seconds: float = Field(default=15.0, gt=0)


class ObservabilityConfig(BaseSettings):
    """Logging configuration.

    Environment variables prefixed with RL_LOG_.
    """

    model_config = SettingsConfigDict(env_prefix="RL_LOG_")

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False  # Set True for JSON logging


class AppConfig(BaseSettings):
    """Main configuration aggregating all sub-configs.

    Sub-configurations are accessed via attributes:

        config = get_config()
        print(config.geocoding.search_radius_km)
        print(config.queue.cooldown_seconds)

    Environment variables prefixed with RL_.
    """

    model_config = SettingsConfigDict(env_prefix="RL_")

    geocoding: GeocodingConfig = Field(default_factory=GeocodingConfig)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    permission: PermissionConfig = Field(default_factory=PermissionConfig)
    position: PositionConfig = Field(default_factory=PositionConfig)
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    """Get the process-wide configuration.

    Configuration is loaded once and cached. To reload configuration
    (e.g., in tests), use reset_config() first.

    Returns:
        The application configuration instance.
    """
    return AppConfig()


def reset_config() -> None:
    """Reset the configuration cache.

    Call this in tests to ensure a fresh configuration is loaded.
    """
    get_config.cache_clear()
