"""Metrics Module - Cumulative learner statistics and streaks.

Usage:
    from mastery_engine.modules.metrics import get_metrics_aggregator, parse_event

    aggregator = get_metrics_aggregator()
    stats = aggregator.apply(stats, parse_event(raw))
"""

from mastery_engine.modules.metrics.interface import CumulativeStats, IMetricsAggregator
from mastery_engine.modules.metrics.schemas import (
    EmptyPayload,
    LessonCompletePayload,
    PerformanceEvent,
    QuizAttemptPayload,
    TimeLogPayload,
    parse_event,
)
from mastery_engine.modules.metrics.service import MetricsAggregator, get_metrics_aggregator
from mastery_engine.modules.metrics.streak import advance_streak, compute_streak

__all__ = [
    # Interface types
    "CumulativeStats",
    "IMetricsAggregator",
    # Event schemas
    "PerformanceEvent",
    "LessonCompletePayload",
    "QuizAttemptPayload",
    "TimeLogPayload",
    "EmptyPayload",
    "parse_event",
    # Implementation
    "MetricsAggregator",
    "get_metrics_aggregator",
    # Streaks
    "compute_streak",
    "advance_streak",
]
