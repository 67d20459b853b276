"""Simulated device - permission and position APIs without hardware.

Stands in for the OS location subsystem in local runs, demos and tests.
Like a real device it answers commands later, through callbacks scheduled
on the event loop, never synchronously from inside the command.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from ...domain.models import Coordinate, PermissionState

AuthorizationListener = Callable[[PermissionState], None]
PositionListener = Callable[[Coordinate], None]
ErrorListener = Callable[[BaseException], None]


class PositionUnavailable(Exception):
    """Raised to listeners when the simulated device has no fix to give."""


@dataclass
class SimulatedDevice:
    """In-process device implementing both device ports.

    Attributes:
        status: Authorization currently reported by the device
        prompt_answer: State the user picks when prompted (None = the user
            never answers)
        location_services: Whether location services are enabled
        position: Position reported by fixes and updates
        fix_delay_seconds: Delay before a one-shot fix is delivered
    """

    status: PermissionState = PermissionState.UNDETERMINED
    prompt_answer: Optional[PermissionState] = PermissionState.AUTHORIZED_FULL
    location_services: bool = True
    position: Optional[Coordinate] = None
    fix_delay_seconds: float = 0.0

    prompts_shown: int = field(default=0, init=False)
    settings_opened: int = field(default=0, init=False)
    updating: bool = field(default=False, init=False)

    _on_authorization: Optional[AuthorizationListener] = field(default=None, repr=False)
    _on_position: Optional[PositionListener] = field(default=None, repr=False)
    _on_error: Optional[ErrorListener] = field(default=None, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    def attach(
        self,
        on_authorization: AuthorizationListener,
        on_position: PositionListener,
        on_error: ErrorListener,
    ) -> None:
        """Connect the device callbacks to the core."""
        self._on_authorization = on_authorization
        self._on_position = on_position
        self._on_error = on_error

    # PermissionProviderPort ----------------------------------------------

    def current_status(self) -> PermissionState:
        return self.status

    def request_authorization(self) -> None:
        self.prompts_shown += 1
        if self.prompt_answer is None:
            self._logger.debug("Prompt shown; user does not answer")
            return
        self._schedule(self.change_authorization, self.prompt_answer)

    def open_settings(self) -> None:
        self.settings_opened += 1

    # PositionProviderPort ------------------------------------------------

    def services_enabled(self) -> bool:
        return self.location_services

    def start_updates(self) -> None:
        self.updating = True
        if self.position is not None:
            self._schedule(self._deliver_position, self.position)

    def stop_updates(self) -> None:
        self.updating = False

    def request_location(self) -> None:
        asyncio.get_running_loop().call_later(self.fix_delay_seconds, self._deliver_fix)

    # Simulation controls --------------------------------------------------

    def change_authorization(self, state: PermissionState) -> None:
        """Simulate the user changing the permission (prompt or settings)."""
        self.status = state
        if self._on_authorization is not None:
            self._on_authorization(state)

    def move_to(self, coordinate: Coordinate) -> None:
        """Simulate movement; delivered only while updates are running."""
        self.position = coordinate
        if self.updating:
            self._deliver_position(coordinate)

    # Internals ------------------------------------------------------------

    def _schedule(self, callback: Callable, *args: object) -> None:
        asyncio.get_running_loop().call_soon(callback, *args)

    def _deliver_position(self, coordinate: Coordinate) -> None:
        if self._on_position is not None:
            self._on_position(coordinate)

    def _deliver_fix(self) -> None:
        if self.position is not None:
            self._deliver_position(self.position)
        elif self._on_error is not None:
            self._on_error(PositionUnavailable("No position available"))
