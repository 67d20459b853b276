"""Shared fixtures and port doubles for the test suite."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from ridelocate.config import (
    GeocodingConfig,
    PermissionConfig,
    PositionConfig,
    QueueConfig,
    RoutingConfig,
    reset_config,
)
from ridelocate.container import reset_container
from ridelocate.domain.models import (
    Coordinate,
    Placemark,
    RouteResult,
    SearchRegion,
    TransportType,
)

OTTAWA = Coordinate(45.4215, -75.6972)
GATINEAU = Coordinate(45.4765, -75.7013)
TORONTO = Coordinate(43.6532, -79.3832)


@dataclass
class FakeGeocoder:
    """GeocoderPort double that tracks concurrency and call order."""

    coordinate: Optional[Coordinate] = OTTAWA
    placemark: Optional[Placemark] = None
    delay: float = 0.0
    error: Optional[BaseException] = None

    geocode_calls: List[tuple] = field(default_factory=list)
    reverse_calls: List[Coordinate] = field(default_factory=list)
    completed: List[Coordinate] = field(default_factory=list)
    in_flight: int = 0
    max_in_flight: int = 0
    cancelled: int = 0
    closed: bool = False

    async def _work(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            if self.error is not None:
                raise self.error
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        finally:
            self.in_flight -= 1

    async def geocode(self, query: str, region: SearchRegion) -> Optional[Coordinate]:
        self.geocode_calls.append((query, region))
        await self._work()
        return self.coordinate

    async def reverse(self, coordinate: Coordinate) -> Optional[Placemark]:
        self.reverse_calls.append(coordinate)
        await self._work()
        self.completed.append(coordinate)
        if self.placemark is not None:
            return self.placemark
        return Placemark(
            street_number=str(len(self.reverse_calls)),
            street_name="Wellington St",
            locality=f"{coordinate.latitude:.4f}",
        )

    async def aclose(self) -> None:
        self.closed = True


@dataclass
class FakeRouter:
    """RouterPort double."""

    result: Optional[RouteResult] = None
    delay: float = 0.0
    error: Optional[BaseException] = None
    calls: List[tuple] = field(default_factory=list)

    async def route(
        self, start: Coordinate, end: Coordinate, transport_type: TransportType
    ) -> Optional[RouteResult]:
        self.calls.append((start, end, transport_type))
        await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture(autouse=True)
def fresh_config():
    """Keep cached configuration and the default container out of other tests."""
    reset_config()
    reset_container()
    yield
    reset_config()
    reset_container()


@pytest.fixture
def strict_oneshot(caplog):
    """Fail the test if any one-shot slot is resolved twice."""
    caplog.set_level(logging.ERROR, logger="ridelocate.services.oneshot")
    yield
    doubled = [
        getattr(r, "slot", "?")
        for r in caplog.get_records("call")
        if r.name == "ridelocate.services.oneshot" and r.levelno >= logging.ERROR
    ]
    if doubled:
        pytest.fail(f"One-shot slot resolved twice: {doubled}")


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder()


@pytest.fixture
def geo_config() -> GeocodingConfig:
    return GeocodingConfig(timeout_seconds=1.0)


@pytest.fixture
def queue_config() -> QueueConfig:
    return QueueConfig(cooldown_seconds=0.01)


@pytest.fixture
def permission_config() -> PermissionConfig:
    return PermissionConfig(prompt_timeout_seconds=0.2)


@pytest.fixture
def position_config() -> PositionConfig:
    return PositionConfig(timeout_seconds=0.2)


@pytest.fixture
def routing_config() -> RoutingConfig:
    return RoutingConfig(timeout_seconds=0.2)
