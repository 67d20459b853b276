"""Permission coordinator - the location permission state machine.

States::

    UNDETERMINED -> AUTHORIZED_FULL | AUTHORIZED_LIMITED | DENIED | RESTRICTED

DENIED and RESTRICTED are left only when the device reports a settings
change; the coordinator never tries to leave them on its own.

Device callbacks are posted to an event channel. A single owner task
consumes the channel and is the only code that mutates the state, then
starts or stops the position session to match it.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..config import PermissionConfig, get_config
from ..domain.errors import LocationTimeoutError
from ..domain.models import PermissionState
from ..ports.device import PermissionProviderPort
from .oneshot import OneShot
from .position_session import PositionSession

PermissionListener = Callable[[PermissionState], None]


@dataclass
class PermissionCoordinator:
    """Owns the device permission state.

    Usage:
        async with PermissionCoordinator(provider, session) as coordinator:
            state = await coordinator.request_access()

    Attributes:
        provider: Device permission API
        session: Position session started/stopped on state changes
        config: Permission configuration (prompt timeout and policy)
    """

    provider: PermissionProviderPort
    session: PositionSession
    config: PermissionConfig = field(default_factory=lambda: get_config().permission)

    _state: PermissionState = field(init=False)
    _events: asyncio.Queue = field(init=False, repr=False)
    _owner_task: Optional[asyncio.Task] = field(default=None, repr=False)
    _loop: Optional[asyncio.AbstractEventLoop] = field(default=None, repr=False)
    _pending: Optional[OneShot[PermissionState]] = field(default=None, repr=False)
    _prompt_timer: Optional[asyncio.TimerHandle] = field(default=None, repr=False)
    _listeners: List[PermissionListener] = field(default_factory=list, repr=False)
    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)
        self._state = self.provider.current_status()
        self._events = asyncio.Queue()
        self._logger.debug("Initial permission state", extra={"permission": self._state.name})

    @property
    def state(self) -> PermissionState:
        """Snapshot of the current permission state."""
        return self._state

    @property
    def is_running(self) -> bool:
        return self._owner_task is not None and not self._owner_task.done()

    def subscribe(self, listener: PermissionListener) -> Callable[[], None]:
        """Register a callback for state changes.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # Lifecycle -------------------------------------------------------------

    def start(self) -> None:
        """Start the owner task consuming device events."""
        if self.is_running:
            return
        self._loop = asyncio.get_running_loop()
        self._owner_task = asyncio.ensure_future(self._run())

    async def stop(self) -> None:
        """Stop the owner task and release any pending permission wait."""
        task, self._owner_task = self._owner_task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        self._settle_pending(self._state)

    async def __aenter__(self) -> PermissionCoordinator:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()

    # Device callbacks ------------------------------------------------------

    def on_authorization_changed(self, state: PermissionState) -> None:
        """Device callback: post an authorization change to the owner task.

        Must be called on the event loop thread; use
        ``post_authorization_changed`` from other threads.
        """
        self._events.put_nowait(state)

    def post_authorization_changed(self, state: PermissionState) -> None:
        """Thread-safe variant of ``on_authorization_changed``."""
        if self._loop is None:
            raise RuntimeError("PermissionCoordinator has not been started")
        self._loop.call_soon_threadsafe(self._events.put_nowait, state)

    # Commands --------------------------------------------------------------

    async def request_access(self) -> PermissionState:
        """Negotiate location permission.

        - UNDETERMINED: show the device prompt and wait for the answer, at
          most ``prompt_timeout_seconds``. Concurrent callers join the same
          wait.
        - DENIED / RESTRICTED: open system settings instead of prompting.
        - Authorized: start position updates.

        Returns:
            The permission state after negotiation. When the prompt times
            out under the "last_known" policy this is the (possibly stale)
            current state.

        Raises:
            LocationTimeoutError: If the prompt times out under the "error"
                policy.
        """
        state = self._state

        if state.is_blocked:
            self._logger.info(
                "Permission blocked; directing user to settings",
                extra={"permission": state.name},
            )
            self.provider.open_settings()
            return state

        if state.is_authorized:
            self.session.start_updates(state)
            return state

        pending = self._pending
        if pending is None:
            pending = OneShot(name="permission")
            self._pending = pending
            self._prompt_timer = asyncio.get_running_loop().call_later(
                self.config.prompt_timeout_seconds, self._on_prompt_timeout, pending
            )
            self._logger.info("Requesting location permission")
            self.provider.request_authorization()
        else:
            self._logger.debug("Joining pending permission request")

        return await pending.wait()

    # Owner task ------------------------------------------------------------

    async def _run(self) -> None:
        while True:
            state = await self._events.get()
            try:
                self._apply(state)
            except Exception:
                self._logger.exception(
                    "Failed to apply permission change",
                    extra={"permission": state.name},
                )

    def _apply(self, state: PermissionState) -> None:
        previous, self._state = self._state, state
        self._logger.info(
            "Permission changed",
            extra={"previous": previous.name, "permission": state.name},
        )

        self._settle_pending(state)

        if state.is_authorized:
            self.session.start_updates(state)
        elif state.is_blocked:
            self.session.stop_updates(discard_position=True)
        else:
            self.session.stop_updates()

        for listener in list(self._listeners):
            listener(state)

    def _settle_pending(self, state: PermissionState) -> None:
        pending, self._pending = self._pending, None
        if self._prompt_timer is not None:
            self._prompt_timer.cancel()
            self._prompt_timer = None
        if pending is not None:
            pending.resolve(state)

    def _on_prompt_timeout(self, pending: OneShot[PermissionState]) -> None:
        if self._pending is not pending:
            return
        self._pending = None
        self._prompt_timer = None
        timeout = self.config.prompt_timeout_seconds

        if self.config.prompt_timeout_policy == "error":
            self._logger.warning("Permission prompt timed out", extra={"timeout_seconds": timeout})
            pending.fail(LocationTimeoutError(timeout_seconds=timeout))
            return

        self._logger.warning(
            "Permission prompt timed out; falling back to last known state",
            extra={"timeout_seconds": timeout, "permission": self._state.name},
        )
        pending.resolve(self._state)
