"""Learner Profile Model - mastery, engagement and topic classification.

Rules:
- Mastery grows by score / 10 per completed assessment step, capped at 100.
- Engagement drops by 10 when a step takes over 1.5x its estimate and
  rises by 5 when it takes under 0.8x.
- Topics at or above 70% accuracy are strengths, the rest are gaps.
- The difficulty tier moves one step at a time based on accuracy, speed,
  confidence and number of attempts.
"""

from dataclasses import replace
from functools import lru_cache
from typing import Mapping
import logging

from mastery_engine.modules.profile.interface import (
    IProfileModel,
    LearnerProfile,
    PerformanceSnapshot,
    StepOutcome,
    TopicAccuracy,
)
from mastery_engine.shared.constants import (
    MASTERY_SCORE_DIVISOR,
    MAX_ENGAGEMENT_LEVEL,
    MAX_MASTERY_LEVEL,
    MAX_SCORE,
    MIN_ENGAGEMENT_LEVEL,
    MIN_MASTERY_LEVEL,
    MIN_SCORE,
    RUSH_BONUS,
    RUSH_RATIO,
    STALL_PENALTY,
    STALL_RATIO,
    STRENGTH_ACCURACY_THRESHOLD,
    TIER_DOWN_MAX_ACCURACY,
    TIER_DOWN_MAX_ATTEMPTS,
    TIER_UP_MAX_SPEED,
    TIER_UP_MIN_ACCURACY,
    TIER_UP_MIN_CONFIDENCE,
)
from mastery_engine.shared.models import DifficultyTier

logger = logging.getLogger(__name__)

# Promotion stops at advanced; expert is only ever assigned explicitly
_TIER_UP = {
    DifficultyTier.BEGINNER: DifficultyTier.INTERMEDIATE,
    DifficultyTier.INTERMEDIATE: DifficultyTier.ADVANCED,
}
_TIER_DOWN = {
    DifficultyTier.ADVANCED: DifficultyTier.INTERMEDIATE,
    DifficultyTier.INTERMEDIATE: DifficultyTier.BEGINNER,
}


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class ProfileModel(IProfileModel):
    """Pure update rules for LearnerProfile."""

    def adapt(self, profile: LearnerProfile, outcome: StepOutcome) -> LearnerProfile:
        """Update mastery, engagement and topic tallies from a step outcome.

        Args:
            profile: Profile before the step
            outcome: Observed score, durations and per-topic results

        Returns:
            New profile value (the input is untouched)
        """
        mastery = profile.mastery_level
        if outcome.is_assessment:
            score = _clamp(outcome.score, MIN_SCORE, MAX_SCORE)
            mastery = _clamp(
                mastery + score / MASTERY_SCORE_DIVISOR,
                MIN_MASTERY_LEVEL,
                MAX_MASTERY_LEVEL,
            )

        engagement = self._adjust_engagement(
            profile.engagement_level,
            outcome.expected_duration_minutes,
            outcome.actual_minutes,
        )

        topic_stats = self._merge_topic_results(profile.topic_stats, outcome.topic_results)

        return replace(
            profile,
            mastery_level=mastery,
            engagement_level=engagement,
            topic_stats=topic_stats,
        )

    def classify_topics(
        self,
        topic_stats: Mapping[str, TopicAccuracy],
    ) -> tuple[frozenset[str], frozenset[str]]:
        """Split topics into (strengths, knowledge_gaps).

        Topics without attempts are in neither set.
        """
        strengths = set()
        gaps = set()
        for topic, tally in topic_stats.items():
            if tally.attempts <= 0:
                continue
            if tally.accuracy >= STRENGTH_ACCURACY_THRESHOLD:
                strengths.add(topic)
            else:
                gaps.add(topic)
        return frozenset(strengths), frozenset(gaps)

    def reset_mastery(self, profile: LearnerProfile) -> LearnerProfile:
        """Administrative reset of the mastery level to zero."""
        logger.info(f"Resetting mastery for learner {profile.learner_id} on {profile.module_id}")
        return replace(profile, mastery_level=MIN_MASTERY_LEVEL)

    def adjust_tier(
        self,
        profile: LearnerProfile,
        performance: PerformanceSnapshot,
    ) -> LearnerProfile:
        """Move the profile's difficulty tier up or down one step.

        Promotion needs high accuracy, good pace and high confidence.
        Low accuracy or repeated attempts demote. Otherwise the tier stays.
        """
        tier = profile.difficulty_tier

        if (
            performance.accuracy >= TIER_UP_MIN_ACCURACY
            and performance.speed <= TIER_UP_MAX_SPEED
            and performance.confidence >= TIER_UP_MIN_CONFIDENCE
        ):
            new_tier = _TIER_UP.get(tier, tier)
        elif (
            performance.accuracy < TIER_DOWN_MAX_ACCURACY
            or performance.attempts > TIER_DOWN_MAX_ATTEMPTS
        ):
            new_tier = _TIER_DOWN.get(tier, tier)
        else:
            new_tier = tier

        if new_tier != tier:
            logger.info(
                f"Difficulty tier for learner {profile.learner_id} on {profile.module_id}: "
                f"{tier.value} -> {new_tier.value}"
            )
        return replace(profile, difficulty_tier=new_tier)

    @staticmethod
    def _adjust_engagement(engagement: int, expected: float, actual: float) -> int:
        # Ratio is undefined without both durations
        if expected <= 0 or actual <= 0:
            return engagement

        ratio = actual / expected
        if ratio > STALL_RATIO:
            return max(MIN_ENGAGEMENT_LEVEL, engagement - STALL_PENALTY)
        if ratio < RUSH_RATIO:
            return min(MAX_ENGAGEMENT_LEVEL, engagement + RUSH_BONUS)
        return engagement

    @staticmethod
    def _merge_topic_results(
        topic_stats: Mapping[str, TopicAccuracy],
        topic_results: Mapping[str, tuple[int, int]],
    ) -> dict[str, TopicAccuracy]:
        merged = dict(topic_stats)
        for topic, (correct, attempts) in topic_results.items():
            attempts = max(0, int(attempts))
            correct = max(0, min(int(correct), attempts))
            if attempts == 0:
                continue
            merged[topic] = merged.get(topic, TopicAccuracy()).merge(correct, attempts)
        return merged


@lru_cache
def get_profile_model() -> ProfileModel:
    """Get the shared ProfileModel instance."""
    return ProfileModel()
