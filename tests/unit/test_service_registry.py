"""Unit tests for the service registry."""

import json
import os
from unittest.mock import patch

import pytest

from mastery_engine.shared.config import get_settings
from mastery_engine.shared.exceptions import InvalidCatalogError
from mastery_engine.shared.feature_flags import FeatureFlagManager, get_feature_flags
from mastery_engine.shared.service_registry import (
    ServiceRegistry,
    get_catalog_provider,
    get_notification_sink,
    get_progress_store,
    get_service_registry,
)


@pytest.fixture
def registry():
    """Create a fresh registry with fresh flags for each test."""
    FeatureFlagManager._instance = None
    get_feature_flags.cache_clear()
    get_settings.cache_clear()
    ServiceRegistry._instance = None
    get_service_registry.cache_clear()
    return ServiceRegistry()


class TestServiceRegistry:
    """Tests for ServiceRegistry."""

    def test_default_collaborators(self, registry):
        """Test in-memory store and logging sink without flags."""
        with patch.dict(os.environ, {}, clear=True):
            store = registry.get_progress_store()
            sink = registry.get_notification_sink()

        assert type(store).__name__ == "InMemoryProgressStore"
        assert type(sink).__name__ == "LoggingNotificationSink"

    def test_database_store_when_flag_enabled(self, registry):
        """Test the database store is chosen when persistence is enabled."""
        with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": "true"}):
            store = registry.get_progress_store()

        assert type(store).__name__ == "DatabaseProgressStore"

    def test_redis_sink_when_flag_enabled(self, registry):
        """Test the Redis sink is chosen when notifications are enabled."""
        with patch.dict(os.environ, {"FF_ENABLE_REDIS_NOTIFICATIONS": "true"}):
            sink = registry.get_notification_sink()

        assert type(sink).__name__ == "RedisNotificationSink"

    def test_instances_are_cached(self, registry):
        """Test repeated calls return the same instance."""
        with patch.dict(os.environ, {}, clear=True):
            assert registry.get_progress_store() is registry.get_progress_store()
            assert registry.get_catalog_provider() is registry.get_catalog_provider()

    def test_clear_cache_recreates(self, registry):
        """Test clear_cache forces new instances."""
        with patch.dict(os.environ, {}, clear=True):
            first = registry.get_progress_store()
            registry.clear_cache()
            second = registry.get_progress_store()

        assert first is not second

    def test_builtin_catalog(self, registry):
        """Test the built-in catalog is used without a catalog path."""
        with patch.dict(os.environ, {}, clear=True):
            catalog = registry.get_catalog_provider()

        assert catalog.total_modules() == 7
        assert len(catalog.get_achievement_templates()) == 12

    def test_catalog_from_file(self, registry, tmp_path):
        """Test CATALOG_PATH loads the catalog file."""
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"modules": [{"id": "intro", "title": "Intro"}]}))

        with patch.dict(os.environ, {"CATALOG_PATH": str(path)}, clear=True):
            get_settings.cache_clear()
            catalog = registry.get_catalog_provider()

        assert catalog.total_modules() == 1
        assert catalog.get_module("intro").title == "Intro"

    def test_invalid_catalog_file(self, registry, tmp_path):
        """Test a broken catalog file raises InvalidCatalogError."""
        path = tmp_path / "catalog.json"
        path.write_text("{not json")

        with patch.dict(os.environ, {"CATALOG_PATH": str(path)}, clear=True):
            get_settings.cache_clear()
            with pytest.raises(InvalidCatalogError):
                registry.get_catalog_provider()

    def test_service_info(self, registry):
        """Test get_service_info reports instantiated collaborators."""
        with patch.dict(os.environ, {}, clear=True):
            registry.get_progress_store()
            info = registry.get_service_info()

        assert info == {"store": "InMemoryProgressStore"}

    def test_singleton(self, registry):
        """Test the registry is a singleton."""
        assert ServiceRegistry() is registry


class TestModuleFunctions:
    """Tests for the module-level getters."""

    def test_getters_use_shared_registry(self, registry):
        """Test module functions delegate to the singleton registry."""
        with patch.dict(os.environ, {}, clear=True):
            store = get_progress_store()
            sink = get_notification_sink()
            catalog = get_catalog_provider()

            assert get_service_registry().get_progress_store() is store
            assert get_service_registry().get_notification_sink() is sink
            assert get_service_registry().get_catalog_provider() is catalog
