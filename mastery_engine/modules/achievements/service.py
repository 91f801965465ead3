"""Achievement Evaluator - progress and unlock predicates."""

from datetime import datetime
from functools import lru_cache
from typing import Iterable, Mapping
import logging

from mastery_engine.modules.achievements.interface import (
    AchievementInstance,
    AchievementTemplate,
    EvaluationResult,
    IAchievementEvaluator,
    Requirement,
)
from mastery_engine.modules.metrics.interface import CumulativeStats
from mastery_engine.shared.datetime_utils import utc_now
from mastery_engine.shared.models import RequirementType

logger = logging.getLogger(__name__)


def requirement_value(stats: CumulativeStats, requirement_type: RequirementType) -> int:
    """Read the statistic a requirement type is measured against."""
    if requirement_type in (
        RequirementType.MODULES_COMPLETED,
        RequirementType.FIRST_MODULE,
        RequirementType.ALL_MODULES,
    ):
        return stats.modules_completed
    if requirement_type == RequirementType.QUIZ_PERFECT:
        return stats.perfect_quizzes
    if requirement_type == RequirementType.QUIZZES_PASSED:
        return stats.quizzes_passed
    if requirement_type == RequirementType.STREAK_DAYS:
        return stats.streak_days
    if requirement_type == RequirementType.TOTAL_TIME:
        return stats.total_time_spent_minutes
    if requirement_type == RequirementType.SPEED_QUIZ:
        return stats.speed_quizzes
    if requirement_type == RequirementType.NOTE_TAKER:
        return stats.notes_count
    if requirement_type == RequirementType.BOOKMARKS:
        return stats.bookmarks_count
    raise ValueError(f"Unsupported requirement type: {requirement_type}")


def effective_threshold(requirement: Requirement, total_modules: int) -> int:
    """Threshold to compare against; ``all_modules`` uses the catalog size."""
    if requirement.type == RequirementType.ALL_MODULES:
        return total_modules
    return requirement.threshold


class AchievementEvaluator(IAchievementEvaluator):
    """Evaluates achievement templates against cumulative statistics.

    Unlocks are monotonic: an id passed in ``previously_unlocked_ids``
    stays unlocked even if its statistic has since dropped (for example
    a broken streak).
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
        """Compute progress and unlock state of every template."""
        previous = frozenset(previously_unlocked_ids)
        known_unlock_times = unlocked_at or {}
        now = now or utc_now()

        instances = []
        newly_unlocked = []
        total_points = 0

        for template in catalog:
            value = requirement_value(stats, template.requirement.type)
            threshold = effective_threshold(template.requirement, total_modules)

            # A zero threshold is only reachable through all_modules with an
            # empty catalog, which must never unlock
            if threshold <= 0:
                progress = 0.0
                reached = False
            else:
                progress = max(0.0, min(100.0, value / threshold * 100))
                reached = value >= threshold

            was_unlocked = template.id in previous
            is_unlocked = reached or was_unlocked

            when = None
            if was_unlocked:
                when = known_unlock_times.get(template.id)
                progress = 100.0
            elif is_unlocked:
                when = now
                newly_unlocked.append(template.id)
                logger.debug(f"Achievement {template.id} unlocked for learner {stats.learner_id}")

            if is_unlocked:
                total_points += template.points

            instances.append(AchievementInstance(
                template=template,
                progress_percent=round(progress, 2),
                is_unlocked=is_unlocked,
                unlocked_at=when,
            ))

        return EvaluationResult(
            instances=tuple(instances),
            newly_unlocked=tuple(newly_unlocked),
            total_points=total_points,
        )


@lru_cache
def get_achievement_evaluator() -> AchievementEvaluator:
    """Get the shared AchievementEvaluator instance."""
    return AchievementEvaluator()
