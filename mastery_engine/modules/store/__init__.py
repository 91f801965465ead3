"""Store Module - Durable persistence of learner state.

Usage:
    # Recommended: Use service registry (respects feature flags)
    from mastery_engine.shared.service_registry import get_progress_store
    store = get_progress_store()

    # Direct access (bypasses feature flags)
    from mastery_engine.modules.store import InMemoryProgressStore, DatabaseProgressStore
"""

from mastery_engine.modules.store.db_service import DatabaseProgressStore
from mastery_engine.modules.store.interface import IProgressStore
from mastery_engine.modules.store.models import (
    ActivityDayModel,
    LearnerProfileModel,
    LearnerStatsModel,
    ModuleProgressModel,
    UnlockedAchievementModel,
)
from mastery_engine.modules.store.service import InMemoryProgressStore

__all__ = [
    # Interface
    "IProgressStore",
    # Implementations
    "InMemoryProgressStore",
    "DatabaseProgressStore",
    # Models
    "ActivityDayModel",
    "LearnerProfileModel",
    "LearnerStatsModel",
    "ModuleProgressModel",
    "UnlockedAchievementModel",
]
