"""Dependency injection container.

This module is the composition root: it decides which adapters back
which ports and owns the process-wide lifetime of the location
components. Components never create or look up their own collaborators.

Design principles:
1. No magic - explicit registration and resolution
2. Testable - easy to swap implementations
3. Lazy loading - adapters instantiated on first use
4. Thread-safe - resolution may happen from any thread
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from .config import AppConfig, get_config


@dataclass
class Container:
    """Dependency injection container.

    Usage:
        # Production
        container = Container.create_default()
        async with container.resolve(LocationService) as location:
            ...

        # Testing
        container = Container()
        container.register(GeocoderPort, lambda: FakeGeocoder())
        geocoder = container.resolve(GeocoderPort)

    Attributes:
        config: Application configuration
    """

    config: AppConfig = field(default_factory=get_config)

    _factories: Dict[type[Any], Callable[[], Any]] = field(
        default_factory=dict, repr=False
    )
    _singletons: Dict[type[Any], Any] = field(default_factory=dict, repr=False)
    _singleton_types: set[type[Any]] = field(default_factory=set, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def register(
        self,
        port_type: type[Any],
        factory: Callable[[], Any],
        singleton: bool = True,
    ) -> None:
        """Register a factory for a port type.

        Args:
            port_type: The type (usually a Protocol) to register.
            factory: A callable that creates instances of the type.
            singleton: If True, only one instance is created.
        """
        with self._lock:
            self._factories[port_type] = factory
            self._singletons.pop(port_type, None)
            if singleton:
                self._singleton_types.add(port_type)
            else:
                self._singleton_types.discard(port_type)

    def resolve(self, port_type: type[Any]) -> Any:
        """Resolve an instance of a port type.

        Raises:
            KeyError: If the type is not registered.
        """
        with self._lock:
            if port_type not in self._factories:
                raise KeyError(f"Type not registered: {port_type}")

            if port_type in self._singleton_types:
                if port_type not in self._singletons:
                    self._singletons[port_type] = self._factories[port_type]()
                return self._singletons[port_type]

            return self._factories[port_type]()

    def is_registered(self, port_type: type[Any]) -> bool:
        return port_type in self._factories

    def clear_singletons(self) -> None:
        """Clear all cached singletons.

        Call this in tests to ensure fresh instances.
        """
        with self._lock:
            self._singletons.clear()

    def clear_all(self) -> None:
        """Clear all registrations and singletons."""
        with self._lock:
            self._factories.clear()
            self._singletons.clear()
            self._singleton_types.clear()

    @classmethod
    def create_default(cls, config: Optional[AppConfig] = None) -> Container:
        """Create a container with default bindings.

        The device is simulated; applications running on real hardware
        register their own PermissionProviderPort/PositionProviderPort
        adapter (plus its callback wiring) before resolving LocationService.

        Args:
            config: Optional configuration override.

        Returns:
            A configured Container instance.
        """
        from .adapters.cache import InMemoryCache
        from .adapters.device import SimulatedDevice
        from .adapters.geocoding import NominatimGeocoderAdapter
        from .ports.cache import CachePort
        from .ports.device import PermissionProviderPort, PositionProviderPort
        from .ports.geocoding import GeocoderPort
        from .services import (
            GeocodeOperationRunner,
            LocationService,
            PermissionCoordinator,
            PositionSession,
            RequestSerializer,
        )

        config = config or get_config()
        container = cls(config=config)

        geo = config.geocoding

        # Cache
        container.register(
            CachePort,
            lambda: InMemoryCache(
                name="geocode",
                default_ttl_seconds=geo.cache_ttl_seconds,
                max_size=geo.cache_max_size,
            ),
        )

        # Geocoding (confined to the runner)
        container.register(
            GeocoderPort,
            lambda: NominatimGeocoderAdapter(geo, container.resolve(CachePort)),
        )
        container.register(
            GeocodeOperationRunner,
            lambda: GeocodeOperationRunner(container.resolve(GeocoderPort), geo),
        )
        container.register(
            RequestSerializer,
            lambda: RequestSerializer(container.resolve(GeocodeOperationRunner), config.queue),
        )

        # Device
        device = SimulatedDevice()
        container.register(PermissionProviderPort, lambda: device)
        container.register(PositionProviderPort, lambda: device)

        container.register(
            PositionSession,
            lambda: PositionSession(container.resolve(PositionProviderPort), config.position),
        )

        def create_coordinator() -> PermissionCoordinator:
            session = container.resolve(PositionSession)
            coordinator = PermissionCoordinator(
                container.resolve(PermissionProviderPort), session, config.permission
            )
            provider = container.resolve(PermissionProviderPort)
            if isinstance(provider, SimulatedDevice):
                provider.attach(
                    on_authorization=coordinator.on_authorization_changed,
                    on_position=session.on_position_update,
                    on_error=session.on_position_error,
                )
            return coordinator

        container.register(PermissionCoordinator, create_coordinator)

        # Facade
        def create_location_service() -> LocationService:
            return LocationService(
                coordinator=container.resolve(PermissionCoordinator),
                session=container.resolve(PositionSession),
                runner=container.resolve(GeocodeOperationRunner),
                serializer=container.resolve(RequestSerializer),
                geocoder=container.resolve(GeocoderPort),
                config=config.position,
            )

        container.register(LocationService, create_location_service)

        return container


# Global default container (lazy initialized)
_default_container: Optional[Container] = None
_container_lock = threading.Lock()


def get_container() -> Container:
    """Get the default application container.

    Returns:
        The default Container instance (creates one if needed).
    """
    global _default_container
    if _default_container is None:
        with _container_lock:
            if _default_container is None:
                _default_container = Container.create_default()
    return _default_container


def reset_container() -> None:
    """Reset the default container.

    Call this in tests to ensure a fresh container.
    """
    global _default_container
    with _container_lock:
        if _default_container is not None:
            _default_container.clear_all()
        _default_container = None
