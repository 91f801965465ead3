"""Store Module - Durable persistence of learner state.

Writes of versioned records (profile, stats, progress) are compare-and-set:
the record's ``version`` must match the stored one, and the returned copy
carries the incremented version. A record with version 0 is a create.
"""

from datetime import date, datetime
from typing import Mapping, Protocol
from uuid import UUID

from mastery_engine.modules.metrics.interface import CumulativeStats
from mastery_engine.modules.profile.interface import LearnerProfile
from mastery_engine.modules.progression.interface import ModuleProgress


class IProgressStore(Protocol):
    """Interface for the progress store."""

    async def get_profile(self, learner_id: UUID, module_id: str) -> LearnerProfile | None:
        """Get a learner's profile for a module, or None if not enrolled."""
        ...

    async def put_profile(self, profile: LearnerProfile) -> LearnerProfile:
        """Store a profile.

        Raises:
            ConcurrencyConflictError: If ``profile.version`` is stale
            StoreUnavailableError: If the store cannot be written
        """
        ...

    async def get_stats(self, learner_id: UUID) -> CumulativeStats | None:
        """Get a learner's cumulative statistics."""
        ...

    async def put_stats(self, stats: CumulativeStats) -> CumulativeStats:
        """Store statistics (compare-and-set on ``stats.version``)."""
        ...

    async def get_progress(self, learner_id: UUID, module_id: str) -> ModuleProgress | None:
        """Get the step sequence of a module instance."""
        ...

    async def put_progress(self, progress: ModuleProgress) -> ModuleProgress:
        """Store a step sequence (compare-and-set on ``progress.version``)."""
        ...

    async def get_unlocked_achievement_ids(self, learner_id: UUID) -> dict[str, datetime]:
        """Get previously unlocked achievement ids with their unlock time."""
        ...

    async def put_unlocked_achievement_ids(
        self,
        learner_id: UUID,
        unlocked: Mapping[str, datetime],
    ) -> None:
        """Record unlocked achievements.

        Additive: ids already stored keep their original unlock time.
        """
        ...

    async def add_activity_date(self, learner_id: UUID, activity_date: date) -> None:
        """Record a day with learning activity (idempotent)."""
        ...

    async def get_activity_dates(self, learner_id: UUID) -> list[date]:
        """Get all active days, oldest first."""
        ...
