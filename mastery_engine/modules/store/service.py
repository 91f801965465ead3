"""In-memory progress store.

Suitable for tests, the CLI and single-process use. Each operation runs
without awaiting, so it is atomic with respect to other coroutines.
"""

from dataclasses import replace
from datetime import date, datetime
from typing import Mapping
from uuid import UUID
import logging

from mastery_engine.modules.metrics.interface import CumulativeStats
from mastery_engine.modules.profile.interface import LearnerProfile
from mastery_engine.modules.progression.interface import ModuleProgress
from mastery_engine.modules.store.interface import IProgressStore
from mastery_engine.shared.exceptions import ConcurrencyConflictError

logger = logging.getLogger(__name__)


def _check_version(record: str, stored_version: int | None, expected_version: int) -> None:
    current = stored_version or 0
    if current != expected_version:
        raise ConcurrencyConflictError(record, expected_version, stored_version)


class InMemoryProgressStore(IProgressStore):
    """Dictionary-backed implementation of IProgressStore."""

    def __init__(self) -> None:
        self._profiles: dict[tuple[UUID, str], LearnerProfile] = {}
        self._stats: dict[UUID, CumulativeStats] = {}
        self._progress: dict[tuple[UUID, str], ModuleProgress] = {}
        self._unlocked: dict[UUID, dict[str, datetime]] = {}
        self._activity: dict[UUID, set[date]] = {}

    async def get_profile(self, learner_id: UUID, module_id: str) -> LearnerProfile | None:
        return self._profiles.get((learner_id, module_id))

    async def put_profile(self, profile: LearnerProfile) -> LearnerProfile:
        key = (profile.learner_id, profile.module_id)
        stored = self._profiles.get(key)
        _check_version(
            f"profile {profile.learner_id}/{profile.module_id}",
            stored.version if stored else None,
            profile.version,
        )
        saved = replace(profile, version=profile.version + 1)
        self._profiles[key] = saved
        return saved

    async def get_stats(self, learner_id: UUID) -> CumulativeStats | None:
        return self._stats.get(learner_id)

    async def put_stats(self, stats: CumulativeStats) -> CumulativeStats:
        stored = self._stats.get(stats.learner_id)
        _check_version(
            f"stats {stats.learner_id}",
            stored.version if stored else None,
            stats.version,
        )
        saved = replace(stats, version=stats.version + 1)
        self._stats[stats.learner_id] = saved
        return saved

    async def get_progress(self, learner_id: UUID, module_id: str) -> ModuleProgress | None:
        return self._progress.get((learner_id, module_id))

    async def put_progress(self, progress: ModuleProgress) -> ModuleProgress:
        key = (progress.learner_id, progress.module_id)
        stored = self._progress.get(key)
        _check_version(
            f"progress {progress.learner_id}/{progress.module_id}",
            stored.version if stored else None,
            progress.version,
        )
        saved = replace(progress, version=progress.version + 1)
        self._progress[key] = saved
        return saved

    async def get_unlocked_achievement_ids(self, learner_id: UUID) -> dict[str, datetime]:
        return dict(self._unlocked.get(learner_id, {}))

    async def put_unlocked_achievement_ids(
        self,
        learner_id: UUID,
        unlocked: Mapping[str, datetime],
    ) -> None:
        existing = self._unlocked.setdefault(learner_id, {})
        for achievement_id, unlocked_at in unlocked.items():
            existing.setdefault(achievement_id, unlocked_at)

    async def add_activity_date(self, learner_id: UUID, activity_date: date) -> None:
        self._activity.setdefault(learner_id, set()).add(activity_date)

    async def get_activity_dates(self, learner_id: UUID) -> list[date]:
        return sorted(self._activity.get(learner_id, set()))

    def __repr__(self) -> str:
        return (
            f"InMemoryProgressStore(learners={len(self._stats)}, "
            f"enrollments={len(self._progress)})"
        )
