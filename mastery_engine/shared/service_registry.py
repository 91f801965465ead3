"""Unified service registry for dependency injection.

This module provides a centralized factory that switches between
in-memory and durable implementations of the engine's collaborators
based on feature flags.

Usage:
    from mastery_engine.shared.service_registry import get_service_registry

    registry = get_service_registry()
    store = registry.get_progress_store()
    sink = registry.get_notification_sink()

The registry automatically:
- Returns the database store when FF_USE_DATABASE_PERSISTENCE=true
- Returns the Redis sink when FF_ENABLE_REDIS_NOTIFICATIONS=true
- Caches instances for consistent singleton behavior
- Logs service creation for debugging
"""

from functools import lru_cache
from typing import TYPE_CHECKING
import logging

from mastery_engine.shared.config import get_settings
from mastery_engine.shared.feature_flags import FeatureFlags, get_feature_flags

if TYPE_CHECKING:
    from mastery_engine.modules.catalog.interface import ICatalogProvider
    from mastery_engine.modules.notifications.interface import INotificationSink
    from mastery_engine.modules.store.interface import IProgressStore

logger = logging.getLogger(__name__)


class ServiceRegistry:
    """Unified collaborator factory with feature flag support.

    Features:
    - Lazy instantiation
    - Feature flag-based implementation selection
    - Instance caching
    """

    _instance: "ServiceRegistry | None" = None

    def __new__(cls) -> "ServiceRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._flags = get_feature_flags()
        self._progress_store: "IProgressStore | None" = None
        self._notification_sink: "INotificationSink | None" = None
        self._catalog_provider: "ICatalogProvider | None" = None
        self._initialized = True
        logger.info("ServiceRegistry initialized")

    def get_progress_store(self) -> "IProgressStore":
        """Get the progress store instance.

        Returns the database-backed store if FF_USE_DATABASE_PERSISTENCE is
        enabled, otherwise the in-memory store.
        """
        if self._progress_store is None:
            self._progress_store = self._create_progress_store()
        return self._progress_store

    def get_notification_sink(self) -> "INotificationSink":
        """Get the notification sink instance.

        Returns the Redis pub/sub sink if FF_ENABLE_REDIS_NOTIFICATIONS is
        enabled, otherwise a sink that writes notifications to the log.
        """
        if self._notification_sink is None:
            self._notification_sink = self._create_notification_sink()
        return self._notification_sink

    def get_catalog_provider(self) -> "ICatalogProvider":
        """Get the catalog provider.

        Loads ``settings.catalog_path`` when configured, otherwise
        returns the built-in catalog.
        """
        if self._catalog_provider is None:
            self._catalog_provider = self._create_catalog_provider()
        return self._catalog_provider

    def _create_progress_store(self) -> "IProgressStore":
        """Create the progress store based on feature flags."""
        if self._flags.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE):
            from mastery_engine.modules.store.db_service import DatabaseProgressStore

            logger.info("Creating DatabaseProgressStore")
            return DatabaseProgressStore()

        from mastery_engine.modules.store.service import InMemoryProgressStore

        logger.info("Creating InMemoryProgressStore")
        return InMemoryProgressStore()

    def _create_notification_sink(self) -> "INotificationSink":
        """Create the notification sink based on feature flags."""
        if self._flags.is_enabled(FeatureFlags.ENABLE_REDIS_NOTIFICATIONS):
            from mastery_engine.modules.notifications.redis_sink import RedisNotificationSink

            logger.info("Creating RedisNotificationSink")
            return RedisNotificationSink()

        from mastery_engine.modules.notifications.service import LoggingNotificationSink

        logger.info("Creating LoggingNotificationSink")
        return LoggingNotificationSink()

    def _create_catalog_provider(self) -> "ICatalogProvider":
        from mastery_engine.modules.catalog.service import (
            StaticCatalogProvider,
            load_catalog_file,
        )

        catalog_path = get_settings().catalog_path
        if catalog_path:
            logger.info(f"Loading catalog from {catalog_path}")
            return load_catalog_file(catalog_path)

        logger.info("Using built-in catalog")
        return StaticCatalogProvider()

    def clear_cache(self) -> None:
        """Clear all cached instances.

        Use this when feature flags change at runtime to force
        recreation with new settings.
        """
        self._progress_store = None
        self._notification_sink = None
        self._catalog_provider = None
        logger.info("ServiceRegistry cache cleared")

    def get_service_info(self) -> dict[str, str]:
        """Get the implementation type of each instantiated collaborator."""
        info = {}
        if self._progress_store:
            info["store"] = type(self._progress_store).__name__
        if self._notification_sink:
            info["notifications"] = type(self._notification_sink).__name__
        if self._catalog_provider:
            info["catalog"] = type(self._catalog_provider).__name__
        return info

    def __repr__(self) -> str:
        db_enabled = self._flags.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE)
        return f"ServiceRegistry(db_enabled={db_enabled}, services={self.get_service_info()})"


@lru_cache
def get_service_registry() -> ServiceRegistry:
    """Get the singleton ServiceRegistry instance."""
    return ServiceRegistry()


def get_progress_store() -> "IProgressStore":
    """Get the progress store from the registry (respects feature flags)."""
    return get_service_registry().get_progress_store()


def get_notification_sink() -> "INotificationSink":
    """Get the notification sink from the registry (respects feature flags)."""
    return get_service_registry().get_notification_sink()


def get_catalog_provider() -> "ICatalogProvider":
    """Get the catalog provider from the registry."""
    return get_service_registry().get_catalog_provider()
