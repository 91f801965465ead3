"""Adaptation Selector - content type, difficulty and time per step."""

from functools import lru_cache
import logging

from mastery_engine.modules.adaptation.interface import IAdaptationSelector, StepAdaptation
from mastery_engine.modules.profile.interface import LearnerProfile
from mastery_engine.shared.constants import (
    ADAPTIVE_STEP_INCREMENT,
    BASE_STEP_MINUTES,
    CHALLENGE_BASE_OFFSET,
    CHALLENGE_STEP_INCREMENT,
    DEFAULT_ENGAGEMENT_LEVEL,
    DIFFICULTY_MASTERY_DIVISOR,
    GRADUAL_STEP_INCREMENT,
    MAX_BASE_DIFFICULTY,
    MAX_DIFFICULTY_LEVEL,
    MIN_DIFFICULTY_LEVEL,
    MIN_STEP_MINUTES,
    STEP_MINUTES_INCREMENT,
)
from mastery_engine.shared.exceptions import ValidationError
from mastery_engine.shared.models import ContentType, DifficultyPreference, LearningStyle

logger = logging.getLogger(__name__)

# Content formats cycled through, per learning style
CONTENT_ROTATION: dict[LearningStyle, tuple[ContentType, ...]] = {
    LearningStyle.VISUAL: (ContentType.VIDEO, ContentType.INTERACTIVE, ContentType.SIMULATION),
    LearningStyle.AUDITORY: (ContentType.VIDEO, ContentType.INTERACTIVE),
    LearningStyle.KINESTHETIC: (ContentType.INTERACTIVE, ContentType.SIMULATION),
    LearningStyle.READING: (ContentType.TEXT, ContentType.QUIZ),
}


def _resolve_mode(
    mode: DifficultyPreference | str | None,
    profile: LearnerProfile,
) -> DifficultyPreference:
    if mode is None:
        return profile.difficulty_preference
    try:
        return DifficultyPreference(mode)
    except ValueError:
        raise ValidationError("mode", f"Unknown difficulty mode: {mode!r}")


@lru_cache(maxsize=1024)
def _select(
    learning_style: LearningStyle,
    mastery_level: float,
    engagement_level: int,
    mode: DifficultyPreference,
    step_index: int,
) -> StepAdaptation:
    rotation = CONTENT_ROTATION[learning_style]
    content_type = rotation[step_index % len(rotation)]

    base = min(mastery_level / DIFFICULTY_MASTERY_DIVISOR, MAX_BASE_DIFFICULTY)
    if mode == DifficultyPreference.GRADUAL:
        difficulty = max(MIN_DIFFICULTY_LEVEL, base + step_index * GRADUAL_STEP_INCREMENT)
    elif mode == DifficultyPreference.CHALLENGE:
        difficulty = min(
            MAX_DIFFICULTY_LEVEL,
            base + CHALLENGE_BASE_OFFSET + step_index * CHALLENGE_STEP_INCREMENT,
        )
    else:
        difficulty = max(
            MIN_DIFFICULTY_LEVEL,
            min(MAX_DIFFICULTY_LEVEL, base + step_index * ADAPTIVE_STEP_INCREMENT),
        )

    minutes = BASE_STEP_MINUTES * (engagement_level / DEFAULT_ENGAGEMENT_LEVEL)
    minutes += step_index * STEP_MINUTES_INCREMENT
    estimated = max(MIN_STEP_MINUTES, round(minutes))

    return StepAdaptation(
        content_type=content_type,
        difficulty_level=round(difficulty, 2),
        estimated_minutes=estimated,
    )


class AdaptationSelector(IAdaptationSelector):
    """Chooses how each step of a module is delivered.

    Results only depend on the learning style, mastery, engagement, mode
    and step index, so they are memoized on those values.
    """

    def select(
        self,
        profile: LearnerProfile,
        step_index: int,
        mode: DifficultyPreference | str | None = None,
    ) -> StepAdaptation:
        """Choose content type, difficulty and duration for one step."""
        if step_index < 0:
            raise ValidationError("step_index", f"Step index must be non-negative, got {step_index}")

        resolved = _resolve_mode(mode, profile)
        return _select(
            profile.learning_style,
            profile.mastery_level,
            profile.engagement_level,
            resolved,
            step_index,
        )


@lru_cache
def get_adaptation_selector() -> AdaptationSelector:
    """Get the shared AdaptationSelector instance."""
    return AdaptationSelector()
