"""Route service - bounded calls to the routing collaborator.

Route computation itself is external; this service validates the
endpoints and bounds the collaborator's latency with the same race
primitive used for geocoding.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from ..config import RoutingConfig, get_config
from ..domain.errors import (
    InvalidCoordinatesError,
    NoRouteFoundError,
    RouteCalculationError,
    RouteError,
    RouteTimeoutError,
)
from ..domain.models import Coordinate, RouteResult, TransportType
from ..ports.routing import RouterPort
from .race import race_with_timeout


def _route_timeout(timeout: float) -> BaseException:
    return RouteTimeoutError(timeout_seconds=timeout)


@dataclass
class RouteService:
    """Validates and bounds route calculations.

    Attributes:
        router: Routing collaborator
        config: Routing configuration (timeout)
    """

    router: RouterPort
    config: RoutingConfig = field(default_factory=lambda: get_config().routing)

    _logger: logging.Logger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._logger = logging.getLogger(__name__)

    async def calculate_route(
        self,
        start: Coordinate,
        end: Coordinate,
        transport_type: TransportType = TransportType.AUTOMOBILE,
    ) -> RouteResult:
        """Calculate a route between two coordinates.

        Raises:
            InvalidCoordinatesError: If either endpoint is out of range.
            NoRouteFoundError: If the collaborator finds no route.
            RouteCalculationError: If the collaborator fails.
            RouteTimeoutError: If the collaborator does not answer in time.
        """
        if not (start.is_valid and end.is_valid):
            raise InvalidCoordinatesError()

        async def compute() -> RouteResult:
            try:
                route = await self.router.route(start, end, transport_type)
            except RouteError:
                raise
            except Exception as e:
                raise RouteCalculationError(cause=e) from e
            if route is None:
                raise NoRouteFoundError()
            return route

        route = await race_with_timeout(
            compute,
            self.config.timeout_seconds,
            timeout_error=_route_timeout,
            name="route",
        )
        self._logger.info(
            "Route computed",
            extra={
                "distance_km": round(route.distance_km, 2),
                "minutes": route.travel_time_minutes,
                "transport": transport_type.name,
            },
        )
        return route
