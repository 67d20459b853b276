"""Device ports - Abstractions for the OS location subsystem.

The device reports results asynchronously through callbacks on the
core (``PermissionCoordinator.on_authorization_changed``,
``PositionSession.on_position_update`` / ``on_position_error``). The
methods below only issue commands and read current status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ..domain.models import PermissionState


class PermissionProviderPort(Protocol):
    """Port for the device permission API.

    Implementation: adapters/device/simulated.py
    """

    def current_status(self) -> PermissionState:
        """Return the authorization the device currently reports."""
        ...

    def request_authorization(self) -> None:
        """Show the system permission prompt.

        The outcome arrives later through the authorization-changed
        callback, or not at all if the user ignores the prompt.
        """
        ...

    def open_settings(self) -> None:
        """Send the user to the system settings for this application."""
        ...


class PositionProviderPort(Protocol):
    """Port for the device continuous-position API.

    Implementation: adapters/device/simulated.py
    """

    def services_enabled(self) -> bool:
        """Whether location services are globally enabled on the device."""
        ...

    def start_updates(self) -> None:
        """Begin delivering continuous position updates."""
        ...

    def stop_updates(self) -> None:
        """Stop delivering continuous position updates."""
        ...

    def request_location(self) -> None:
        """Ask for a single position fix.

        The fix (or error) is delivered through the position callbacks.
        """
        ...
