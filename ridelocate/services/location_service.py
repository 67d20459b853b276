"""Location service - the facade exposed to UI and feature collaborators.

This service wires the permission coordinator, the position session, the
geocode runner and the serialized queue behind the interface client
features use. It holds no state of its own beyond the background tasks
it launches for fire-and-forget commands.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Optional, Set

from ..config import PositionConfig, get_config
from ..domain.models import Coordinate, PermissionState, ResolvedAddress
from ..ports.geocoding import GeocoderPort
from .geocode_runner import GeocodeOperationRunner
from .permission_coordinator import PermissionCoordinator
from .position_session import PositionSession
from .request_serializer import RequestSerializer


@dataclass
class LocationService:
    """Entry point for permission, position and address resolution.

    Usage:
        async with container.resolve(LocationService) as location:
            location.request_permission()
            address = await location.enqueue_resolve_address(coordinate)

    Attributes:
        coordinator: Permission state machine
        session: Continuous position updates
        runner: Direct (non-queued) geocoding
        serializer: Queued reverse geocoding
        geocoder: Provider handle, closed on exit
        config: Position configuration (fallback search center)
    """

    coordinator: PermissionCoordinator
    session: PositionSession
    runner: GeocodeOperationRunner
    serializer: RequestSerializer
    geocoder: Optional[GeocoderPort] = None
    config: PositionConfig = field(default_factory=lambda: get_config().position)

    _background: Set[asyncio.Task] = field(default_factory=set, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    # Observable state ------------------------------------------------------

    @property
    def current_position(self) -> Optional[Coordinate]:
        return self.session.current_position

    @property
    def permission_state(self) -> PermissionState:
        return self.coordinator.state

    @property
    def is_position_available(self) -> bool:
        return self.session.is_available

    # Lifecycle -------------------------------------------------------------

    async def __aenter__(self) -> LocationService:
        self.coordinator.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel background commands, drain the queue and release the provider."""
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        await self.serializer.aclose()
        await self.coordinator.stop()
        self.session.stop_updates()
        if self.geocoder is not None:
            await self.geocoder.aclose()

    # Commands (fire-and-forget) ---------------------------------------------

    def request_permission(self) -> asyncio.Task:
        """Negotiate permission in the background; observe ``permission_state``."""
        return self._spawn(self.coordinator.request_access(), "request_permission")

    def start_position_updates(self) -> bool:
        return self.session.start_updates(self.coordinator.state)

    def stop_position_updates(self) -> None:
        self.session.stop_updates()

    # Queries ---------------------------------------------------------------

    async def resolve_coordinate(self, address: str) -> Coordinate:
        """Geocode an address, biased around the current position."""
        center = self.session.current_position or self.config.fallback_center
        return await self.runner.resolve_coordinate(address, center)

    async def resolve_address(self, coordinate: Coordinate) -> ResolvedAddress:
        """Reverse geocode immediately, bypassing the queue."""
        return await self.runner.resolve_address(coordinate)

    async def enqueue_resolve_address(self, coordinate: Coordinate) -> ResolvedAddress:
        """Reverse geocode through the single-flight queue."""
        return await self.serializer.enqueue(coordinate)

    def clear_queue(self) -> int:
        return self.serializer.clear()

    async def current_position_once(self) -> Coordinate:
        return await self.session.current_position_once(self.coordinator.state)

    # Internals -------------------------------------------------------------

    def _spawn(self, coro, name: str) -> asyncio.Task:
        task = asyncio.ensure_future(coro)
        self._background.add(task)
        task.add_done_callback(lambda t: self._finish_background(t, name))
        return task

    def _finish_background(self, task: asyncio.Task, name: str) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.warning(
                "Background command failed",
                extra={"command": name, "error": str(error)},
            )
