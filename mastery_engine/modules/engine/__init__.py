"""Engine Module - Orchestration of the mastery pipeline.

Usage:
    from mastery_engine.modules.engine import get_mastery_engine

    engine = get_mastery_engine()
    await engine.enroll(learner_id, "application-process")
    outcome = await engine.handle_event(raw_event)
"""

from functools import lru_cache

from mastery_engine.modules.engine.interface import (
    EventOutcome,
    IMasteryEngine,
    NextStep,
    StepCompletionResult,
)
from mastery_engine.modules.engine.service import MasteryEngine


@lru_cache
def get_mastery_engine() -> MasteryEngine:
    """Get the shared MasteryEngine wired through the service registry."""
    return MasteryEngine()


__all__ = [
    "EventOutcome",
    "IMasteryEngine",
    "NextStep",
    "StepCompletionResult",
    "MasteryEngine",
    "get_mastery_engine",
]
