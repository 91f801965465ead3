"""Engine Module - Orchestration of the mastery pipeline."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol
from uuid import UUID

from mastery_engine.modules.achievements.interface import EvaluationResult
from mastery_engine.modules.adaptation.interface import Recommendation, StepAdaptation
from mastery_engine.modules.metrics.interface import CumulativeStats
from mastery_engine.modules.metrics.schemas import PerformanceEvent
from mastery_engine.modules.notifications.interface import Notification
from mastery_engine.modules.profile.interface import LearnerProfile, PerformanceSnapshot
from mastery_engine.modules.progression.interface import AdaptiveStep, ModuleProgress
from mastery_engine.shared.models import (
    ComfortPreference,
    DifficultyPreference,
    DifficultyTier,
    LearningStyle,
    PacePreference,
)


@dataclass(frozen=True)
class EventOutcome:
    """Result of ingesting one performance event."""

    event: PerformanceEvent
    stats: CumulativeStats
    achievements: EvaluationResult
    notifications: tuple[Notification, ...] = field(default_factory=tuple)

    @property
    def newly_unlocked(self) -> tuple[str, ...]:
        return self.achievements.newly_unlocked


@dataclass(frozen=True)
class StepCompletionResult:
    """Result of completing a step.

    ``already_completed`` marks a repeat of a stored completion. The step
    and profile are unchanged; the only work left is counting a finished
    module whose earlier completion failed before it was counted.
    """

    progress: ModuleProgress
    profile: LearnerProfile
    step_index: int
    already_completed: bool = False
    module_completed: bool = False
    achievements: EvaluationResult | None = None
    notifications: tuple[Notification, ...] = field(default_factory=tuple)

    @property
    def percent_complete(self) -> float:
        return self.progress.percent_complete


@dataclass(frozen=True)
class NextStep:
    """The step a learner should work on now, adapted to their profile."""

    index: int
    step: AdaptiveStep
    adaptation: StepAdaptation
    percent_complete: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "step": self.step.to_dict(),
            "adaptation": self.adaptation.to_dict(),
            "percent_complete": self.percent_complete,
        }


class IMasteryEngine(Protocol):
    """Interface for the mastery engine.

    Events for one learner are processed one at a time in arrival order;
    different learners are processed concurrently.
    """

    async def enroll(
        self,
        learner_id: UUID,
        module_id: str,
        *,
        learning_style: LearningStyle = LearningStyle.VISUAL,
        pace_preference: PacePreference = PacePreference.MEDIUM,
        difficulty_preference: DifficultyPreference = DifficultyPreference.ADAPTIVE,
        comfort_preference: ComfortPreference = ComfortPreference.BALANCED,
        difficulty_tier: DifficultyTier = DifficultyTier.BEGINNER,
    ) -> ModuleProgress:
        """Create profile, statistics and step sequence (idempotent)."""
        ...

    async def handle_event(self, raw: dict[str, Any]) -> EventOutcome:
        """Validate and ingest a raw interchange record."""
        ...

    async def process_event(self, event: PerformanceEvent) -> EventOutcome:
        """Ingest a validated performance event."""
        ...

    async def complete_step(
        self,
        learner_id: UUID,
        module_id: str,
        step_index: int,
        *,
        score: float | None = None,
        actual_minutes: float | None = None,
        topic_results: Mapping[str, tuple[int, int]] | None = None,
        performance: PerformanceSnapshot | None = None,
    ) -> StepCompletionResult:
        """Complete the current step of a module."""
        ...

    async def get_next_step(self, learner_id: UUID, module_id: str) -> NextStep | None:
        """The current step with a fresh adaptation, or None when complete."""
        ...

    async def get_recommendations(
        self,
        learner_id: UUID,
        module_id: str,
        performance: PerformanceSnapshot | None = None,
    ) -> list[Recommendation]:
        """Rule-based recommendations for a module."""
        ...

    async def get_achievements(self, learner_id: UUID) -> EvaluationResult:
        """Current achievement state (read-only)."""
        ...
