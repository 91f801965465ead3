"""Achievements Module - Unlockable milestones over cumulative statistics."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping, Protocol

from mastery_engine.modules.metrics.interface import CumulativeStats
from mastery_engine.shared.models import AchievementCategory, Rarity, RequirementType


@dataclass(frozen=True)
class Requirement:
    """Threshold a cumulative statistic must reach."""

    type: RequirementType
    threshold: int
    description: str = ""


@dataclass(frozen=True)
class AchievementTemplate:
    """Immutable catalog definition of an achievement."""

    id: str
    title: str
    description: str
    category: AchievementCategory
    rarity: Rarity
    points: int
    requirement: Requirement


@dataclass(frozen=True)
class AchievementInstance:
    """An achievement template evaluated for one learner."""

    template: AchievementTemplate
    progress_percent: float
    is_unlocked: bool
    unlocked_at: datetime | None = None

    @property
    def id(self) -> str:
        return self.template.id

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.template.id,
            "title": self.template.title,
            "description": self.template.description,
            "category": self.template.category.value,
            "rarity": self.template.rarity.value,
            "points": self.template.points,
            "progress_percent": self.progress_percent,
            "is_unlocked": self.is_unlocked,
            "unlocked_at": self.unlocked_at.isoformat() if self.unlocked_at else None,
        }


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of evaluating the catalog against a learner's statistics."""

    instances: tuple[AchievementInstance, ...]
    newly_unlocked: tuple[str, ...] = field(default_factory=tuple)
    total_points: int = 0

    @property
    def unlocked_ids(self) -> frozenset[str]:
        return frozenset(i.id for i in self.instances if i.is_unlocked)

    def get(self, achievement_id: str) -> AchievementInstance | None:
        for instance in self.instances:
            if instance.id == achievement_id:
                return instance
        return None


class IAchievementEvaluator(Protocol):
    """Interface for the achievement evaluator.

    Pure: previously unlocked ids are passed in, never cached.
    """

    def evaluate(
        self,
        catalog: Iterable[AchievementTemplate],
        stats: CumulativeStats,
        previously_unlocked_ids: Iterable[str],
        total_modules: int,
        now: datetime | None = None,
        unlocked_at: Mapping[str, datetime] | None = None,
    ) -> EvaluationResult:
        """Compute progress and unlock state of every template.

        Args:
            catalog: Achievement templates to evaluate
            stats: Learner's cumulative statistics
            previously_unlocked_ids: Ids unlocked by earlier evaluations
            total_modules: Number of modules in the active catalog
            now: Timestamp recorded for newly unlocked achievements
            unlocked_at: Known unlock timestamps of earlier unlocks

        Returns:
            Instances, newly unlocked ids and the total points earned
        """
        ...
