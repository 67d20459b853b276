"""Routing port - Abstraction for the route calculation collaborator.

Route computation lives outside this package; the core only bounds its
latency and validates its inputs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from ..domain.models import Coordinate, RouteResult, TransportType


class RouterPort(Protocol):
    """Port for route calculation."""

    async def route(
        self,
        start: Coordinate,
        end: Coordinate,
        transport_type: TransportType,
    ) -> Optional[RouteResult]:
        """Compute a route between two validated coordinates.

        Args:
            start: Departure coordinates.
            end: Arrival coordinates.
            transport_type: Requested travel mode.

        Returns:
            The best route, or None if no route exists.
        """
        ...
