"""Store repositories for data access operations.

Each repository owns one table and converts between ORM rows and the
frozen domain values the engine works with.
"""

from dataclasses import fields
from datetime import date, datetime
from typing import Any, Mapping, Sequence
from uuid import UUID

from sqlalchemy import select

from mastery_engine.modules.metrics.interface import CumulativeStats
from mastery_engine.modules.profile.interface import LearnerProfile, TopicAccuracy
from mastery_engine.modules.progression.interface import AdaptiveStep, ModuleProgress
from mastery_engine.modules.store.models import (
    ActivityDayModel,
    LearnerProfileModel,
    LearnerStatsModel,
    ModuleProgressModel,
    UnlockedAchievementModel,
)
from mastery_engine.shared.datetime_utils import ensure_utc
from mastery_engine.shared.models import (
    ComfortPreference,
    DifficultyPreference,
    DifficultyTier,
    LearningStyle,
    PacePreference,
    StepStatus,
    StepType,
)
from mastery_engine.shared.repository import BaseRepository

_STATS_COUNTERS = tuple(
    f.name for f in fields(CumulativeStats)
    if f.name not in ("learner_id", "completed_module_ids", "last_active_date", "version")
)


class LearnerProfileRepository(BaseRepository[LearnerProfileModel]):
    """Repository for learner profiles."""

    @property
    def _model_class(self) -> type[LearnerProfileModel]:
        return LearnerProfileModel

    @staticmethod
    def to_domain(row: LearnerProfileModel) -> LearnerProfile:
        return LearnerProfile(
            learner_id=row.learner_id,
            module_id=row.module_id,
            learning_style=LearningStyle(row.learning_style),
            pace_preference=PacePreference(row.pace_preference),
            difficulty_preference=DifficultyPreference(row.difficulty_preference),
            comfort_preference=ComfortPreference(row.comfort_preference),
            engagement_level=row.engagement_level,
            mastery_level=row.mastery_level,
            difficulty_tier=DifficultyTier(row.difficulty_tier),
            topic_stats={
                topic: TopicAccuracy(tally["correct"], tally["attempts"])
                for topic, tally in (row.topic_stats or {}).items()
            },
            applied_steps=frozenset(row.applied_steps or ()),
            version=row.version,
        )

    @staticmethod
    def to_values(profile: LearnerProfile) -> dict[str, Any]:
        return {
            "learning_style": profile.learning_style.value,
            "pace_preference": profile.pace_preference.value,
            "difficulty_preference": profile.difficulty_preference.value,
            "comfort_preference": profile.comfort_preference.value,
            "engagement_level": profile.engagement_level,
            "mastery_level": profile.mastery_level,
            "difficulty_tier": profile.difficulty_tier.value,
            "topic_stats": {
                topic: {"correct": tally.correct, "attempts": tally.attempts}
                for topic, tally in profile.topic_stats.items()
            },
            "applied_steps": sorted(profile.applied_steps),
        }


class LearnerStatsRepository(BaseRepository[LearnerStatsModel]):
    """Repository for cumulative statistics."""

    @property
    def _model_class(self) -> type[LearnerStatsModel]:
        return LearnerStatsModel

    @staticmethod
    def to_domain(row: LearnerStatsModel) -> CumulativeStats:
        return CumulativeStats(
            learner_id=row.learner_id,
            completed_module_ids=frozenset(row.completed_module_ids or ()),
            last_active_date=row.last_active_date,
            version=row.version,
            **{name: getattr(row, name) for name in _STATS_COUNTERS},
        )

    @staticmethod
    def to_values(stats: CumulativeStats) -> dict[str, Any]:
        values = {name: getattr(stats, name) for name in _STATS_COUNTERS}
        values["completed_module_ids"] = sorted(stats.completed_module_ids)
        values["last_active_date"] = stats.last_active_date
        return values


class ModuleProgressRepository(BaseRepository[ModuleProgressModel]):
    """Repository for module step sequences."""

    @property
    def _model_class(self) -> type[ModuleProgressModel]:
        return ModuleProgressModel

    @staticmethod
    def to_domain(row: ModuleProgressModel) -> ModuleProgress:
        return ModuleProgress(
            learner_id=row.learner_id,
            module_id=row.module_id,
            difficulty_tier=DifficultyTier(row.difficulty_tier),
            steps=tuple(
                AdaptiveStep(
                    id=step["id"],
                    title=step["title"],
                    type=StepType(step["type"]),
                    status=StepStatus(step["status"]),
                    payload=step.get("payload") or {},
                )
                for step in row.steps
            ),
            version=row.version,
        )

    @staticmethod
    def to_values(progress: ModuleProgress) -> dict[str, Any]:
        return {
            "difficulty_tier": progress.difficulty_tier.value,
            "steps": [step.to_dict() for step in progress.steps],
        }


class UnlockedAchievementRepository(BaseRepository[UnlockedAchievementModel]):
    """Repository for unlocked achievements."""

    @property
    def _model_class(self) -> type[UnlockedAchievementModel]:
        return UnlockedAchievementModel

    async def get_unlocked(self, learner_id: UUID) -> dict[str, datetime]:
        """Get achievement ids with their unlock time."""
        rows = await self.get_many(learner_id=learner_id)
        return {row.achievement_id: ensure_utc(row.unlocked_at) for row in rows}

    async def add_missing(self, learner_id: UUID, unlocked: Mapping[str, datetime]) -> int:
        """Insert achievements not yet recorded.

        Returns:
            Number of rows inserted
        """
        existing = await self.get_unlocked(learner_id)
        added = 0
        for achievement_id, unlocked_at in unlocked.items():
            if achievement_id in existing:
                continue
            await self.create(UnlockedAchievementModel(
                learner_id=learner_id,
                achievement_id=achievement_id,
                unlocked_at=unlocked_at,
            ))
            added += 1
        return added


class ActivityDayRepository(BaseRepository[ActivityDayModel]):
    """Repository for active days."""

    @property
    def _model_class(self) -> type[ActivityDayModel]:
        return ActivityDayModel

    async def get_dates(self, learner_id: UUID) -> Sequence[date]:
        """Get active days, oldest first."""
        result = await self._session.execute(
            select(ActivityDayModel.activity_date)
            .where(ActivityDayModel.learner_id == learner_id)
            .order_by(ActivityDayModel.activity_date)
        )
        return result.scalars().all()
