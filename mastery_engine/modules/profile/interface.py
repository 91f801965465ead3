"""Profile Module - Evolving per-learner, per-module learner profile."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol
from uuid import UUID

from mastery_engine.shared.constants import (
    DEFAULT_ENGAGEMENT_LEVEL,
    STRENGTH_ACCURACY_THRESHOLD,
)
from mastery_engine.shared.models import (
    ComfortPreference,
    DifficultyPreference,
    DifficultyTier,
    LearningStyle,
    PacePreference,
)


@dataclass(frozen=True)
class TopicAccuracy:
    """Running correct/attempt tallies for one topic."""

    correct: int = 0
    attempts: int = 0

    @property
    def accuracy(self) -> float:
        """Fraction of correct answers (0.0 when there are no attempts)."""
        if self.attempts <= 0:
            return 0.0
        return self.correct / self.attempts

    def merge(self, correct: int, attempts: int) -> "TopicAccuracy":
        return TopicAccuracy(self.correct + correct, self.attempts + attempts)


@dataclass(frozen=True)
class LearnerProfile:
    """What the engine believes about a learner within one module.

    Strengths and knowledge gaps are derived from ``topic_stats`` so a
    topic can never sit in both sets.
    """

    learner_id: UUID
    module_id: str
    learning_style: LearningStyle = LearningStyle.VISUAL
    pace_preference: PacePreference = PacePreference.MEDIUM
    difficulty_preference: DifficultyPreference = DifficultyPreference.ADAPTIVE
    comfort_preference: ComfortPreference = ComfortPreference.BALANCED
    engagement_level: int = DEFAULT_ENGAGEMENT_LEVEL  # 0-100
    mastery_level: float = 0.0  # 0-100
    difficulty_tier: DifficultyTier = DifficultyTier.BEGINNER
    topic_stats: Mapping[str, TopicAccuracy] = field(default_factory=dict)
    # Step indices whose outcome is already folded into this profile
    applied_steps: frozenset[int] = frozenset()
    version: int = 0  # Optimistic concurrency token, managed by the store

    @property
    def strengths(self) -> frozenset[str]:
        return frozenset(
            topic for topic, tally in self.topic_stats.items()
            if tally.attempts > 0 and tally.accuracy >= STRENGTH_ACCURACY_THRESHOLD
        )

    @property
    def knowledge_gaps(self) -> frozenset[str]:
        return frozenset(
            topic for topic, tally in self.topic_stats.items()
            if tally.attempts > 0 and tally.accuracy < STRENGTH_ACCURACY_THRESHOLD
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display and export."""
        return {
            "learner_id": str(self.learner_id),
            "module_id": self.module_id,
            "learning_style": self.learning_style.value,
            "pace_preference": self.pace_preference.value,
            "difficulty_preference": self.difficulty_preference.value,
            "comfort_preference": self.comfort_preference.value,
            "engagement_level": self.engagement_level,
            "mastery_level": self.mastery_level,
            "difficulty_tier": self.difficulty_tier.value,
            "strengths": sorted(self.strengths),
            "knowledge_gaps": sorted(self.knowledge_gaps),
            "version": self.version,
        }


@dataclass(frozen=True)
class StepOutcome:
    """Observed result of finishing one step."""

    score: float = 0.0  # Percent, clamped to 0-100 when applied
    expected_duration_minutes: float = 0.0
    actual_minutes: float = 0.0
    is_assessment: bool = True
    topic_results: Mapping[str, tuple[int, int]] = field(default_factory=dict)  # topic -> (correct, attempts)


@dataclass(frozen=True)
class PerformanceSnapshot:
    """Aggregate performance of a learner on a module.

    ``accuracy`` and ``confidence`` are percentages; ``speed`` is the ratio
    of actual to expected time (1.0 means on pace).
    """

    accuracy: float = 0.0
    speed: float = 1.0
    confidence: float = 75.0
    attempts: int = 1


class IProfileModel(Protocol):
    """Interface for the learner profile model.

    All operations are pure and never raise; out-of-range inputs are clamped.
    """

    def adapt(self, profile: LearnerProfile, outcome: StepOutcome) -> LearnerProfile:
        """Update mastery, engagement and topic tallies from a step outcome."""
        ...

    def classify_topics(
        self,
        topic_stats: Mapping[str, TopicAccuracy],
    ) -> tuple[frozenset[str], frozenset[str]]:
        """Split topics into (strengths, knowledge_gaps)."""
        ...

    def reset_mastery(self, profile: LearnerProfile) -> LearnerProfile:
        """Administrative reset of the mastery level to zero."""
        ...

    def adjust_tier(
        self,
        profile: LearnerProfile,
        performance: PerformanceSnapshot,
    ) -> LearnerProfile:
        """Move the profile's difficulty tier up or down one step."""
        ...
