"""Feature flag management for the engine's collaborators.

This module provides a centralized system for toggling which store and
notification sink implementations the engine uses, without code changes.

Environment Variables:
    FF_USE_DATABASE_PERSISTENCE: Persist progress in the SQL database (default: false)
    FF_ENABLE_REDIS_NOTIFICATIONS: Publish notifications to Redis (default: false)
"""

from enum import Enum
from functools import lru_cache
import logging
import os

from mastery_engine.shared.config import get_settings

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes", "on")


class FeatureFlags(str, Enum):
    """Available feature flags.

    Each flag corresponds to an environment variable with FF_ prefix.
    """

    USE_DATABASE_PERSISTENCE = "use_database_persistence"
    ENABLE_REDIS_NOTIFICATIONS = "enable_redis_notifications"

    @property
    def env_key(self) -> str:
        """Get the environment variable name for this flag."""
        return f"FF_{self.value.upper()}"


class FeatureFlagManager:
    """Process-wide flag lookup: runtime overrides, then FF_* env vars, then Settings."""

    _instance: "FeatureFlagManager | None" = None

    def __new__(cls) -> "FeatureFlagManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self) -> None:
        if self._initialized:
            return
        self._overrides: dict[str, bool] = {}
        self._initialized = True
        logger.info("FeatureFlagManager initialized")

    def is_enabled(self, flag: FeatureFlags) -> bool:
        """Resolve a flag. Env values other than true/1/yes/on count as off."""
        if flag.value in self._overrides:
            return self._overrides[flag.value]

        env_value = os.getenv(flag.env_key)
        if env_value is not None:
            return env_value.lower() in _TRUTHY

        return bool(getattr(get_settings(), f"ff_{flag.value}", False))

    def enable(self, flag: FeatureFlags) -> None:
        """Force a flag on until overrides are cleared."""
        self._set_override(flag, True)

    def disable(self, flag: FeatureFlags) -> None:
        """Force a flag off until overrides are cleared."""
        self._set_override(flag, False)

    def _set_override(self, flag: FeatureFlags, value: bool) -> None:
        self._overrides[flag.value] = value
        logger.info(f"Feature flag {flag.env_key} overridden to {value}")

    def clear_all_overrides(self) -> None:
        """Clear all runtime overrides, reverting to environment variables."""
        self._overrides.clear()
        logger.info("Feature flag overrides cleared")

    def get_all_states(self) -> dict[str, bool]:
        """Get the current state of all feature flags."""
        return {flag.value: self.is_enabled(flag) for flag in FeatureFlags}

    def __repr__(self) -> str:
        enabled = [k for k, v in self.get_all_states().items() if v]
        return f"FeatureFlagManager(enabled={enabled})"


@lru_cache
def get_feature_flags() -> FeatureFlagManager:
    """Get the singleton FeatureFlagManager instance."""
    return FeatureFlagManager()


def is_database_persistence_enabled() -> bool:
    """Check if database persistence is enabled."""
    return get_feature_flags().is_enabled(FeatureFlags.USE_DATABASE_PERSISTENCE)


def is_redis_notifications_enabled() -> bool:
    """Check if Redis notifications are enabled."""
    return get_feature_flags().is_enabled(FeatureFlags.ENABLE_REDIS_NOTIFICATIONS)
