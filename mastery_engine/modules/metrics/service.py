"""Metrics Aggregator - pure fold of performance events into statistics."""

from dataclasses import replace
from functools import lru_cache
from typing import Any
from uuid import UUID
import logging

from mastery_engine.modules.metrics.interface import CumulativeStats, IMetricsAggregator
from mastery_engine.modules.metrics.schemas import (
    LessonCompletePayload,
    PerformanceEvent,
    QuizAttemptPayload,
    TimeLogPayload,
    parse_event,
)
from mastery_engine.shared.constants import SPEED_QUIZ_MAX_MINUTES
from mastery_engine.shared.exceptions import UnknownEventTypeError
from mastery_engine.shared.models import EventType

logger = logging.getLogger(__name__)


class MetricsAggregator(IMetricsAggregator):
    """Folds raw events into CumulativeStats.

    Every method returns a new value; the stats passed in are never
    mutated, so a rejected event leaves no partial update behind.
    """

    def apply(
        self,
        stats: CumulativeStats,
        event: PerformanceEvent | dict[str, Any],
    ) -> CumulativeStats:
        """Fold one performance event into the learner's statistics."""
        if not isinstance(event, PerformanceEvent):
            event = parse_event(event)

        payload = event.payload

        if event.type == EventType.LESSON_COMPLETE:
            return self._apply_lesson_complete(stats, payload)
        if event.type == EventType.QUIZ_ATTEMPT:
            return self._apply_quiz_attempt(stats, payload)
        if event.type == EventType.TIME_LOG:
            return self._add_minutes(stats, payload.minutes)
        if event.type == EventType.NOTE_CREATED:
            return replace(stats, notes_count=stats.notes_count + 1)
        if event.type == EventType.BOOKMARK_CREATED:
            return replace(stats, bookmarks_count=stats.bookmarks_count + 1)

        raise UnknownEventTypeError(str(event.type))

    def reset_stats(self, learner_id: UUID) -> CumulativeStats:
        """Return default statistics for an administrative reset."""
        logger.info(f"Resetting statistics for learner {learner_id}")
        return CumulativeStats(learner_id=learner_id)

    def _apply_lesson_complete(
        self,
        stats: CumulativeStats,
        payload: LessonCompletePayload,
    ) -> CumulativeStats:
        stats = self._add_minutes(stats, payload.time_spent_minutes)

        # A module counts once however often its completion is reported
        if payload.module_id in stats.completed_module_ids:
            logger.debug(f"Module {payload.module_id} already counted for {stats.learner_id}")
            return stats

        return replace(
            stats,
            modules_completed=stats.modules_completed + 1,
            completed_module_ids=stats.completed_module_ids | {payload.module_id},
        )

    def _apply_quiz_attempt(
        self,
        stats: CumulativeStats,
        payload: QuizAttemptPayload,
    ) -> CumulativeStats:
        is_speed = payload.passed and payload.time_taken_minutes < SPEED_QUIZ_MAX_MINUTES
        stats = replace(
            stats,
            quizzes_passed=stats.quizzes_passed + int(payload.passed),
            perfect_quizzes=stats.perfect_quizzes + int(payload.is_perfect),
            speed_quizzes=stats.speed_quizzes + int(is_speed),
        )
        return self._add_minutes(stats, round(payload.time_taken_minutes))

    @staticmethod
    def _add_minutes(stats: CumulativeStats, minutes: int) -> CumulativeStats:
        if minutes <= 0:
            return stats
        return replace(stats, total_time_spent_minutes=stats.total_time_spent_minutes + minutes)


@lru_cache
def get_metrics_aggregator() -> MetricsAggregator:
    """Get the shared MetricsAggregator instance."""
    return MetricsAggregator()
