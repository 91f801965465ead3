"""Shared utilities and common code."""

from mastery_engine.shared.config import Settings, get_settings
from mastery_engine.shared.database import (
    Base,
    close_db,
    close_redis,
    get_db_session,
    get_redis,
    init_db,
    shutdown,
)
from mastery_engine.shared.models import (
    AchievementCategory,
    BaseSchema,
    ComfortPreference,
    ContentType,
    DifficultyPreference,
    DifficultyTier,
    EventType,
    LearningStyle,
    NotificationType,
    PacePreference,
    Priority,
    Rarity,
    RecommendationType,
    RequirementType,
    StepStatus,
    StepType,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "Base",
    "get_db_session",
    "get_redis",
    "init_db",
    "close_db",
    "close_redis",
    "shutdown",
    # Models
    "BaseSchema",
    # Enums
    "AchievementCategory",
    "ComfortPreference",
    "ContentType",
    "DifficultyPreference",
    "DifficultyTier",
    "EventType",
    "LearningStyle",
    "NotificationType",
    "PacePreference",
    "Priority",
    "Rarity",
    "RecommendationType",
    "RequirementType",
    "StepStatus",
    "StepType",
]
