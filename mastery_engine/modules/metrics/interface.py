"""Metrics Module - Folding raw performance events into cumulative statistics."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Protocol
from uuid import UUID

from mastery_engine.modules.metrics.schemas import PerformanceEvent


@dataclass(frozen=True)
class CumulativeStats:
    """Lifetime counters for one learner.

    Counters only grow, except ``streak_days`` which follows the streak
    rule and an explicit administrative reset.
    """

    learner_id: UUID
    modules_completed: int = 0
    quizzes_passed: int = 0
    perfect_quizzes: int = 0
    speed_quizzes: int = 0  # Passed in under SPEED_QUIZ_MAX_MINUTES
    streak_days: int = 0
    longest_streak_days: int = 0
    total_time_spent_minutes: int = 0
    notes_count: int = 0
    bookmarks_count: int = 0
    completed_module_ids: frozenset[str] = field(default_factory=frozenset)
    last_active_date: date | None = None
    version: int = 0  # Optimistic concurrency token, managed by the store

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display and export."""
        return {
            "learner_id": str(self.learner_id),
            "modules_completed": self.modules_completed,
            "quizzes_passed": self.quizzes_passed,
            "perfect_quizzes": self.perfect_quizzes,
            "speed_quizzes": self.speed_quizzes,
            "streak_days": self.streak_days,
            "longest_streak_days": self.longest_streak_days,
            "total_time_spent_minutes": self.total_time_spent_minutes,
            "notes_count": self.notes_count,
            "bookmarks_count": self.bookmarks_count,
            "completed_module_ids": sorted(self.completed_module_ids),
            "last_active_date": self.last_active_date.isoformat() if self.last_active_date else None,
            "version": self.version,
        }


class IMetricsAggregator(Protocol):
    """Interface for the metrics aggregator.

    Pure: never mutates its inputs and performs no I/O.
    """

    def apply(
        self,
        stats: CumulativeStats,
        event: PerformanceEvent | dict[str, Any],
    ) -> CumulativeStats:
        """Fold one performance event into the learner's statistics.

        Args:
            stats: Statistics before the event
            event: Parsed event, or the raw interchange record

        Returns:
            New statistics value

        Raises:
            ValidationError: Unknown event type or malformed payload
        """
        ...

    def reset_stats(self, learner_id: UUID) -> CumulativeStats:
        """Return default statistics for an administrative reset."""
        ...
