"""Position session - continuous updates and one-shot position fixes.

The session is the single owner of the last known position. Device
callbacks (``on_position_update``, ``on_position_error``) are the only
writers; every other component reads ``current_position`` snapshots.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from ..config import PositionConfig, get_config
from ..domain.errors import (
    LocationDisabledError,
    PermissionDeniedError,
    UnknownLocationError,
)
from ..domain.models import Coordinate, PermissionState
from ..ports.device import PositionProviderPort
from .oneshot import OneShot
from .race import race_with_timeout


@dataclass
class PositionSession:
    """Owns continuous position updates and one-shot fix requests.

    Attributes:
        provider: Device continuous-position API
        config: Position configuration (one-shot timeout)
    """

    provider: PositionProviderPort
    config: PositionConfig = field(default_factory=lambda: get_config().position)

    _last_position: Optional[Coordinate] = field(default=None, repr=False)
    _updating: bool = field(default=False, repr=False)
    _pending_fix: Optional[OneShot[Coordinate]] = field(default=None, repr=False)
    _fix_waiters: int = field(default=0, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    @property
    def current_position(self) -> Optional[Coordinate]:
        return self._last_position

    @property
    def is_available(self) -> bool:
        """Whether continuous updates are running."""
        return self._updating

    def start_updates(self, permission: PermissionState) -> bool:
        """Start continuous updates if the device and permission allow it.

        Calling this while updates are already running is a no-op.

        Args:
            permission: Current permission snapshot.

        Returns:
            True if updates are running after the call.
        """
        if not self.provider.services_enabled():
            self._logger.info("Location services disabled; not starting updates")
            self._halt()
            return False
        if not permission.is_authorized:
            self._logger.info(
                "Permission not granted; not starting updates",
                extra={"permission": permission.name},
            )
            self._halt()
            return False
        if self._updating:
            return True

        self.provider.start_updates()
        self._updating = True
        self._logger.info("Position updates started", extra={"permission": permission.name})
        return True

    def stop_updates(self, discard_position: bool = False) -> None:
        """Stop continuous updates. Idempotent.

        Args:
            discard_position: Also forget the last known position (used when
                permission is revoked).
        """
        self._halt()
        if discard_position and self._last_position is not None:
            self._last_position = None
            self._logger.info("Discarded last known position")

    def _halt(self) -> None:
        if self._updating:
            self.provider.stop_updates()
            self._updating = False
            self._logger.info("Position updates stopped")

    def on_position_update(self, coordinate: Coordinate) -> None:
        """Device callback: a new position fix arrived.

        Invalid coordinates are transient provider glitches and are dropped
        without surfacing an error.
        """
        if not coordinate.is_valid:
            self._logger.debug(
                "Dropped invalid position update",
                extra={"lat": coordinate.latitude, "lon": coordinate.longitude},
            )
            return

        self._last_position = coordinate
        pending, self._pending_fix = self._pending_fix, None
        if pending is not None:
            pending.resolve(coordinate)

    def on_position_error(self, error: BaseException) -> None:
        """Device callback: the position request failed."""
        self._logger.warning("Position provider error", extra={"error": str(error)})
        pending, self._pending_fix = self._pending_fix, None
        if pending is not None:
            pending.fail(UnknownLocationError(cause=error))

    async def current_position_once(self, permission: PermissionState) -> Coordinate:
        """Return the last known position, or request a single fix.

        Concurrent callers waiting for a fix share one device request.

        Args:
            permission: Current permission snapshot.

        Returns:
            A valid coordinate.

        Raises:
            LocationDisabledError: If location services are off.
            PermissionDeniedError: If permission is not granted.
            LocationTimeoutError: If no fix arrives in time.
            UnknownLocationError: If the device reports an error.
        """
        if not self.provider.services_enabled():
            raise LocationDisabledError()
        if not permission.is_authorized:
            raise PermissionDeniedError()
        if self._last_position is not None:
            return self._last_position

        pending = self._pending_fix
        if pending is None:
            pending = OneShot(name="position_fix")
            self._pending_fix = pending
            self._fix_waiters = 0
            self.provider.request_location()

        self._fix_waiters += 1
        try:
            return await race_with_timeout(
                pending.wait, self.config.timeout_seconds, name="position_fix"
            )
        finally:
            self._leave_fix(pending)

    def _leave_fix(self, pending: OneShot[Coordinate]) -> None:
        if self._pending_fix is not pending:
            return
        self._fix_waiters -= 1
        # The last waiter to leave withdraws the fix; the next call asks the device again.
        if self._fix_waiters <= 0 and not pending.done:
            self._pending_fix = None
            self._fix_waiters = 0
