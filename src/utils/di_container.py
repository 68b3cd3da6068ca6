"""Dependency Injection Container for Tibia Character Lookup.

Provides a lightweight dependency injection system for managing application
services and their dependencies.

Features:
- Service registration (instances and factories)
- Lazy instantiation via factories
- Thread-safe resolution

Usage:
    from utils.di_container import ServiceKeys, configure_container, get_container

    container = configure_container()
    service = container.resolve(ServiceKeys.CHARACTER_LOOKUP_SERVICE)

Lifetime: every service resolved from a container lives as long as that
container; ``clear()`` drops the references and owners are expected to call
``CharacterLookupService.close()`` first.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)


class DIContainerError(Exception):
    """Exception raised for DI container errors."""

    pass


class DIContainer:
    """Simple dependency injection container.

    Manages service instances and factories for dependency resolution.
    """

    def __init__(self) -> None:
        """Initialize empty container."""
        self._services: dict[str, Any] = {}
        self._factories: dict[str, Callable[[DIContainer], Any]] = {}
        self._lock = threading.RLock()

    def register(self, key: str, instance: Any) -> None:
        """Register a service instance.

        Args:
            key: Service identifier
            instance: Service instance to register
        """
        with self._lock:
            if key in self._services:
                logger.debug("Overwriting existing service: %s", key)
            self._services[key] = instance
            logger.debug("Registered service: %s", key)

    def register_factory(self, key: str, factory: Callable[[DIContainer], Any]) -> None:
        """Register a factory function for lazy instantiation.

        The factory receives the container as argument for resolving
        nested dependencies.

        Args:
            key: Service identifier
            factory: Factory function (container) -> service instance
        """
        with self._lock:
            if key in self._factories:
                logger.debug("Overwriting existing factory: %s", key)
            self._factories[key] = factory
            logger.debug("Registered factory: %s", key)

    def resolve(self, key: str) -> Any:
        """Resolve a service by key.

        If a factory is registered for the key and no instance exists yet,
        the factory is called once and the result is cached.

        Raises:
            DIContainerError: If service is not registered
        """
        with self._lock:
            if key in self._services:
                return self._services[key]

            if key in self._factories:
                logger.debug("Creating service from factory: %s", key)
                instance = self._factories[key](self)
                self._services[key] = instance
                return instance

            raise DIContainerError(
                f"Service '{key}' not registered. "
                f"Available: {sorted(self.get_registered_keys())}"
            )

    def is_registered(self, key: str) -> bool:
        """Check if a service or factory is registered."""
        with self._lock:
            return key in self._services or key in self._factories

    def clear(self) -> None:
        """Clear all registered services and factories.

        Primarily for testing.
        """
        with self._lock:
            self._services.clear()
            self._factories.clear()
            logger.debug("Container cleared")

    def get_registered_keys(self) -> list[str]:
        """Get list of all registered service keys."""
        with self._lock:
            return list(set(self._services) | set(self._factories))


class ServiceKeys:
    """Standard service key constants for the DI container."""

    # Configuration/infrastructure
    CONFIG = "config"
    METRICS = "metrics"
    SIGNAL_BUS = "signal_bus"

    # Data layer
    TIBIADATA_CLIENT = "tibiadata_client"
    CONNECTIVITY_MONITOR = "connectivity_monitor"
    CHARACTER_CACHE = "character_cache"
    RECENT_SEARCH_STORE = "recent_search_store"

    # Business services
    NAME_VALIDATOR = "name_validator"
    CHARACTER_LOOKUP_SERVICE = "character_lookup_service"


_container_instance: DIContainer | None = None
_container_lock = threading.Lock()


def get_container() -> DIContainer:
    """Get the global DI container instance."""
    global _container_instance  # noqa: PLW0603
    if _container_instance is None:
        with _container_lock:
            if _container_instance is None:
                _container_instance = DIContainer()
    assert _container_instance is not None
    return _container_instance


def reset_container() -> None:
    """Reset the global container.

    Primarily for testing.
    """
    global _container_instance  # noqa: PLW0603
    with _container_lock:
        if _container_instance is not None:
            _container_instance.clear()
        _container_instance = None


def configure_container(container: DIContainer | None = None) -> DIContainer:
    """Configure the DI container with default service factories.

    Config and metrics are registered eagerly unless already present; all
    other services are created on first resolution.

    Args:
        container: Container to configure (uses global if None)

    Returns:
        Configured container
    """
    if container is None:
        container = get_container()

    if not container.is_registered(ServiceKeys.CONFIG):
        from utils.config import get_config

        container.register(ServiceKeys.CONFIG, get_config())

    if not container.is_registered(ServiceKeys.METRICS):
        from utils.metrics import get_metrics

        container.register(ServiceKeys.METRICS, get_metrics())

    def signal_bus_factory(c: DIContainer) -> Any:
        from utils.signal_bus import LookupSignalBus

        return LookupSignalBus()

    container.register_factory(ServiceKeys.SIGNAL_BUS, signal_bus_factory)

    def tibiadata_client_factory(c: DIContainer) -> Any:
        from data.clients.tibiadata_client import TibiaDataClient

        config = c.resolve(ServiceKeys.CONFIG)
        return TibiaDataClient(
            base_url=config.tibiadata.base_url,
            request_timeout=config.tibiadata.request_timeout,
            resource_timeout=config.tibiadata.resource_timeout,
            user_agent=config.app.computed_user_agent,
            metrics=c.resolve(ServiceKeys.METRICS),
        )

    container.register_factory(ServiceKeys.TIBIADATA_CLIENT, tibiadata_client_factory)

    def connectivity_factory(c: DIContainer) -> Any:
        from data.clients.connectivity import ConnectivityMonitor

        config = c.resolve(ServiceKeys.CONFIG)
        return ConnectivityMonitor(
            probe_host=config.tibiadata.connectivity_probe_host,
            probe_port=config.tibiadata.connectivity_probe_port,
            probe_timeout=config.tibiadata.connectivity_probe_timeout,
        )

    container.register_factory(ServiceKeys.CONNECTIVITY_MONITOR, connectivity_factory)

    def character_cache_factory(c: DIContainer) -> Any:
        from data.character_cache import CharacterCache

        config = c.resolve(ServiceKeys.CONFIG)
        return CharacterCache(
            ttl_seconds=config.tibiadata.cache_ttl_seconds,
            count_limit=config.tibiadata.cache_count_limit,
            cost_limit=config.tibiadata.cache_cost_limit,
            metrics=c.resolve(ServiceKeys.METRICS),
        )

    container.register_factory(ServiceKeys.CHARACTER_CACHE, character_cache_factory)

    def recent_search_store_factory(c: DIContainer) -> Any:
        from data.repositories.recent_searches import RecentSearchStore

        config = c.resolve(ServiceKeys.CONFIG)
        store_dir = config.app.user_data_dir / config.tibiadata.store_dir
        return RecentSearchStore(
            store_dir=store_dir,
            key=config.tibiadata.recent_searches_key,
            max_entries=config.tibiadata.max_recent_searches,
        )

    container.register_factory(
        ServiceKeys.RECENT_SEARCH_STORE, recent_search_store_factory
    )

    def name_validator_factory(c: DIContainer) -> Any:
        from services.name_validator import TibiaNameValidator

        return TibiaNameValidator()

    container.register_factory(ServiceKeys.NAME_VALIDATOR, name_validator_factory)

    def character_lookup_service_factory(c: DIContainer) -> Any:
        from services.character_lookup_service import CharacterLookupService

        config = c.resolve(ServiceKeys.CONFIG)
        return CharacterLookupService(
            client=c.resolve(ServiceKeys.TIBIADATA_CLIENT),
            cache=c.resolve(ServiceKeys.CHARACTER_CACHE),
            recent_searches=c.resolve(ServiceKeys.RECENT_SEARCH_STORE),
            connectivity=c.resolve(ServiceKeys.CONNECTIVITY_MONITOR),
            signal_bus=c.resolve(ServiceKeys.SIGNAL_BUS),
            validator=c.resolve(ServiceKeys.NAME_VALIDATOR),
            metrics=c.resolve(ServiceKeys.METRICS),
            min_loading_seconds=config.tibiadata.min_loading_seconds,
        )

    container.register_factory(
        ServiceKeys.CHARACTER_LOOKUP_SERVICE, character_lookup_service_factory
    )

    logger.info("DI container configured with default factories")
    return container
