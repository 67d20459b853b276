"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError

from ridelocate.config import (
    GeocodingConfig,
    PermissionConfig,
    PositionConfig,
    get_config,
    reset_config,
)
from ridelocate.domain.models import UNKNOWN_ADDRESS, Coordinate


def test_defaults():
    config = get_config()

    assert config.geocoding.timeout_seconds == 10.0
    assert config.geocoding.unknown_address == UNKNOWN_ADDRESS
    assert config.queue.cooldown_seconds == 0.1
    assert config.permission.prompt_timeout_policy == "last_known"
    assert config.position.fallback_center == Coordinate(45.4215, -75.6972)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("RL_GEO_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("RL_QUEUE_COOLDOWN_SECONDS", "0.25")
    monkeypatch.setenv("RL_PERMISSION_PROMPT_TIMEOUT_POLICY", "error")
    monkeypatch.setenv("RL_LOG_LEVEL", "DEBUG")
    reset_config()

    config = get_config()

    assert config.geocoding.timeout_seconds == 5.0
    assert config.queue.cooldown_seconds == 0.25
    assert config.permission.prompt_timeout_policy == "error"
    assert config.observability.level == "DEBUG"


def test_config_is_cached_until_reset():
    first = get_config()
    assert get_config() is first

    reset_config()
    assert get_config() is not first


def test_rejects_non_positive_timeout():
    with pytest.raises(ValidationError):
        GeocodingConfig(timeout_seconds=0)


def test_rejects_empty_unknown_address():
    with pytest.raises(ValidationError):
        GeocodingConfig(unknown_address="")


def test_rejects_unknown_timeout_policy():
    with pytest.raises(ValidationError):
        PermissionConfig(prompt_timeout_policy="retry")


def test_rejects_out_of_range_fallback():
    with pytest.raises(ValidationError):
        PositionConfig(fallback_latitude=95)
