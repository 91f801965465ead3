"""Adaptation Module - Per-step content and difficulty selection."""

from dataclasses import dataclass, field
from typing import Any, Protocol

from mastery_engine.modules.profile.interface import LearnerProfile
from mastery_engine.shared.models import (
    ContentType,
    DifficultyPreference,
    Priority,
    RecommendationType,
)


@dataclass(frozen=True)
class StepAdaptation:
    """How a single step should be delivered to a learner."""

    content_type: ContentType
    difficulty_level: float  # 1-10
    estimated_minutes: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "content_type": self.content_type.value,
            "difficulty_level": self.difficulty_level,
            "estimated_minutes": self.estimated_minutes,
        }


@dataclass(frozen=True)
class LessonTemplate:
    """Text used to present a topic: objectives and a short summary."""

    objectives: tuple[str, ...]
    summary: str


@dataclass(frozen=True)
class Recommendation:
    """A suggested next action for a learner."""

    type: RecommendationType
    title: str
    description: str
    priority: Priority
    topic: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "priority": self.priority.value,
            "topic": self.topic,
        }


@dataclass(frozen=True)
class RecommendationContext:
    """Observed statistics the recommendation rules are evaluated against."""

    profile: LearnerProfile
    accuracy: float  # Percent
    speed: float  # Actual / expected time
    objectives: tuple[str, ...] = field(default_factory=tuple)
    module_complete: bool = False


class IAdaptationSelector(Protocol):
    """Interface for the adaptation selector.

    Pure and deterministic: identical arguments give identical output.
    """

    def select(
        self,
        profile: LearnerProfile,
        step_index: int,
        mode: DifficultyPreference | str | None = None,
    ) -> StepAdaptation:
        """Choose content type, difficulty and duration for one step.

        Args:
            profile: Learner profile the step is adapted to
            step_index: Zero-based index of the step in its module
            mode: Difficulty ramp; defaults to the profile's preference

        Raises:
            ValidationError: Negative step index or unknown mode
        """
        ...
