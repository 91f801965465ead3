"""Unit tests for feature flag management."""

import os
from unittest.mock import patch

import pytest

from mastery_engine.shared.config import get_settings
from mastery_engine.shared.feature_flags import (
    FeatureFlagManager,
    FeatureFlags,
    get_feature_flags,
    is_database_persistence_enabled,
    is_redis_notifications_enabled,
)


class TestFeatureFlags:
    """Tests for FeatureFlags enum."""

    def test_env_key_format(self):
        """Test that env_key returns correct format."""
        assert FeatureFlags.USE_DATABASE_PERSISTENCE.env_key == "FF_USE_DATABASE_PERSISTENCE"
        assert FeatureFlags.ENABLE_REDIS_NOTIFICATIONS.env_key == "FF_ENABLE_REDIS_NOTIFICATIONS"

    def test_all_flags_have_unique_values(self):
        """Test that all flags have unique values."""
        values = [f.value for f in FeatureFlags]
        assert len(values) == len(set(values))


class TestFeatureFlagManager:
    """Tests for FeatureFlagManager."""

    @pytest.fixture
    def manager(self):
        """Create a fresh manager for each test."""
        # Clear the singleton
        FeatureFlagManager._instance = None
        get_settings.cache_clear()
        manager = FeatureFlagManager()
        manager.clear_all_overrides()
        return manager

    def test_default_is_disabled(self, manager):
        """Test that flags are disabled by default."""
        with patch.dict(os.environ, {}, clear=True):
            assert manager.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE) is False
            assert manager.is_enabled(FeatureFlags.ENABLE_REDIS_NOTIFICATIONS) is False

    def test_enable_via_env_variations(self, manager):
        """Test various truthy env values."""
        truthy_values = ["true", "True", "TRUE", "1", "yes", "YES", "on", "ON"]
        for value in truthy_values:
            with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": value}):
                assert manager.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE) is True, f"Failed for {value}"

    def test_disable_via_env_variations(self, manager):
        """Test various falsy env values."""
        falsy_values = ["false", "False", "0", "no", "off", "random"]
        for value in falsy_values:
            with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": value}):
                assert manager.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE) is False, f"Failed for {value}"

    def test_override_takes_priority_over_env(self, manager):
        """Test runtime overrides win over environment variables."""
        with patch.dict(os.environ, {"FF_ENABLE_REDIS_NOTIFICATIONS": "true"}):
            manager.disable(FeatureFlags.ENABLE_REDIS_NOTIFICATIONS)
            assert manager.is_enabled(FeatureFlags.ENABLE_REDIS_NOTIFICATIONS) is False

            manager.enable(FeatureFlags.ENABLE_REDIS_NOTIFICATIONS)
            assert manager.is_enabled(FeatureFlags.ENABLE_REDIS_NOTIFICATIONS) is True

    def test_clear_overrides_reverts_to_env(self, manager):
        """Test clearing overrides falls back to the environment."""
        with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": "false"}):
            manager.enable(FeatureFlags.USE_DATABASE_PERSISTENCE)
            manager.clear_all_overrides()
            assert manager.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE) is False

    def test_settings_field_used_without_env(self, manager):
        """Test the ff_* settings field is the last fallback."""
        get_settings.cache_clear()
        with patch.dict(os.environ, {}, clear=True):
            with patch(
                "mastery_engine.shared.feature_flags.get_settings"
            ) as mock_settings:
                mock_settings.return_value.ff_use_database_persistence = True
                assert manager.is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE) is True

    def test_get_all_states(self, manager):
        """Test all flags are reported."""
        with patch.dict(os.environ, {}, clear=True):
            manager.enable(FeatureFlags.ENABLE_REDIS_NOTIFICATIONS)
            states = manager.get_all_states()

        assert states == {
            "use_database_persistence": False,
            "enable_redis_notifications": True,
        }

    def test_singleton(self, manager):
        """Test the manager is a singleton."""
        assert FeatureFlagManager() is manager

    def test_repr_lists_enabled(self, manager):
        """Test repr shows enabled flags."""
        with patch.dict(os.environ, {}, clear=True):
            manager.enable(FeatureFlags.USE_DATABASE_PERSISTENCE)
            assert "use_database_persistence" in repr(manager)


class TestConvenienceFunctions:
    """Tests for the is_*_enabled helpers."""

    @pytest.fixture(autouse=True)
    def fresh_flags(self):
        """Reset the cached manager."""
        FeatureFlagManager._instance = None
        get_feature_flags.cache_clear()
        get_settings.cache_clear()
        yield
        get_feature_flags().clear_all_overrides()

    def test_database_persistence_helper(self):
        """Test is_database_persistence_enabled follows the env."""
        with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": "1"}):
            assert is_database_persistence_enabled() is True
        with patch.dict(os.environ, {"FF_USE_DATABASE_PERSISTENCE": "0"}):
            assert is_database_persistence_enabled() is False

    def test_redis_notifications_helper(self):
        """Test is_redis_notifications_enabled follows overrides."""
        get_feature_flags().enable(FeatureFlags.ENABLE_REDIS_NOTIFICATIONS)
        assert is_redis_notifications_enabled() is True
