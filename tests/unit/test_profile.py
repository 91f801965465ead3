"""Tests for the learner profile model."""

import pytest

from mastery_engine.modules.profile import (
    LearnerProfile,
    PerformanceSnapshot,
    ProfileModel,
    StepOutcome,
    TopicAccuracy,
)
from mastery_engine.shared.models import DifficultyTier


@pytest.fixture
def model() -> ProfileModel:
    """Create profile model."""
    return ProfileModel()


@pytest.fixture
def profile(learner_id) -> LearnerProfile:
    """Default profile for the test learner."""
    return LearnerProfile(learner_id=learner_id, module_id="application-process")


class TestAdaptMastery:
    """Tests for mastery updates."""

    def test_assessment_score_adds_tenth(self, model, profile):
        """Test mastery grows by score / 10."""
        updated = model.adapt(profile, StepOutcome(score=80))

        assert updated.mastery_level == pytest.approx(8.0)

    def test_mastery_capped_at_100(self, model, profile):
        """Test mastery never exceeds 100."""
        profile = LearnerProfile(learner_id=profile.learner_id, module_id="m", mastery_level=95.0)

        updated = model.adapt(profile, StepOutcome(score=100))

        assert updated.mastery_level == 100.0

    def test_score_clamped(self, model, profile):
        """Test scores outside 0-100 are clamped."""
        assert model.adapt(profile, StepOutcome(score=250)).mastery_level == pytest.approx(10.0)
        assert model.adapt(profile, StepOutcome(score=-40)).mastery_level == 0.0

    def test_non_assessment_leaves_mastery(self, model, profile):
        """Test content steps do not change mastery."""
        updated = model.adapt(profile, StepOutcome(score=100, is_assessment=False))

        assert updated.mastery_level == 0.0

    def test_mastery_monotonic(self, model, profile):
        """Test mastery never decreases over a run of step outcomes."""
        levels = []
        for score in (90, 0, 45, 100, 10, 0, 100):
            profile = model.adapt(profile, StepOutcome(score=score))
            levels.append(profile.mastery_level)

        assert levels == sorted(levels)

    def test_input_not_mutated(self, model, profile):
        """Test adapt returns a new value."""
        model.adapt(profile, StepOutcome(score=50))

        assert profile.mastery_level == 0.0


class TestAdaptEngagement:
    """Tests for engagement updates."""

    def test_stalled_step_drops_engagement(self, model, profile):
        """Test a step taking over 1.5x its estimate costs 10 engagement."""
        updated = model.adapt(profile, StepOutcome(
            score=70, expected_duration_minutes=20, actual_minutes=45,
        ))

        assert updated.engagement_level == 40

    def test_quick_step_raises_engagement(self, model, profile):
        """Test a step under 0.8x its estimate earns 5 engagement."""
        updated = model.adapt(profile, StepOutcome(expected_duration_minutes=20, actual_minutes=10))

        assert updated.engagement_level == 55

    def test_on_pace_unchanged(self, model, profile):
        """Test a ratio between 0.8 and 1.5 leaves engagement alone."""
        updated = model.adapt(profile, StepOutcome(expected_duration_minutes=20, actual_minutes=20))

        assert updated.engagement_level == 50

    @pytest.mark.parametrize("expected,actual", [(0, 10), (10, 0), (0, 0)])
    def test_missing_duration_unchanged(self, model, profile, expected, actual):
        """Test engagement is untouched without both durations."""
        updated = model.adapt(profile, StepOutcome(
            expected_duration_minutes=expected, actual_minutes=actual,
        ))

        assert updated.engagement_level == 50

    def test_engagement_bounds(self, model, learner_id):
        """Test engagement stays within 0-100."""
        low = LearnerProfile(learner_id=learner_id, module_id="m", engagement_level=5)
        high = LearnerProfile(learner_id=learner_id, module_id="m", engagement_level=98)

        assert model.adapt(low, StepOutcome(expected_duration_minutes=10, actual_minutes=30)).engagement_level == 0
        assert model.adapt(high, StepOutcome(expected_duration_minutes=10, actual_minutes=2)).engagement_level == 100


class TestTopics:
    """Tests for topic tallies and classification."""

    def test_strengths_and_gaps(self, model, profile):
        """Test topics split at 70% accuracy."""
        updated = model.adapt(profile, StepOutcome(
            score=60,
            topic_results={"eligibility": (9, 10), "collateral": (3, 10), "fees": (7, 10)},
        ))

        assert updated.strengths == frozenset({"eligibility", "fees"})
        assert updated.knowledge_gaps == frozenset({"collateral"})

    def test_topic_in_one_set_only(self, model, profile):
        """Test a topic moves from gap to strength as accuracy improves."""
        profile = model.adapt(profile, StepOutcome(topic_results={"fees": (1, 4)}))
        assert "fees" in profile.knowledge_gaps

        profile = model.adapt(profile, StepOutcome(topic_results={"fees": (16, 16)}))

        assert "fees" in profile.strengths
        assert "fees" not in profile.knowledge_gaps
        assert profile.topic_stats["fees"] == TopicAccuracy(correct=17, attempts=20)

    def test_zero_attempts_ignored(self, model, profile):
        """Test results without attempts are not recorded."""
        updated = model.adapt(profile, StepOutcome(topic_results={"fees": (0, 0)}))

        assert "fees" not in updated.topic_stats

    def test_correct_capped_at_attempts(self, model, profile):
        """Test more correct answers than attempts are clamped."""
        updated = model.adapt(profile, StepOutcome(topic_results={"fees": (8, 5)}))

        assert updated.topic_stats["fees"] == TopicAccuracy(correct=5, attempts=5)

    def test_classify_topics(self, model):
        """Test classify_topics skips topics without attempts."""
        strengths, gaps = model.classify_topics({
            "a": TopicAccuracy(7, 10),
            "b": TopicAccuracy(6, 10),
            "c": TopicAccuracy(0, 0),
        })

        assert strengths == frozenset({"a"})
        assert gaps == frozenset({"b"})

    def test_accuracy_without_attempts(self):
        """Test accuracy is zero with no attempts."""
        assert TopicAccuracy().accuracy == 0.0


class TestTierAndReset:
    """Tests for adjust_tier and reset_mastery."""

    def test_promotion(self, model, profile):
        """Test strong performance promotes one tier."""
        updated = model.adjust_tier(profile, PerformanceSnapshot(accuracy=95, speed=1.0, confidence=85))

        assert updated.difficulty_tier == DifficultyTier.INTERMEDIATE

    def test_promotion_stops_at_advanced(self, model, learner_id):
        """Test advanced is never promoted to expert."""
        profile = LearnerProfile(learner_id=learner_id, module_id="m", difficulty_tier=DifficultyTier.ADVANCED)

        updated = model.adjust_tier(profile, PerformanceSnapshot(accuracy=100, speed=0.5, confidence=100))

        assert updated.difficulty_tier == DifficultyTier.ADVANCED

    def test_demotion_on_low_accuracy(self, model, learner_id):
        """Test low accuracy demotes one tier."""
        profile = LearnerProfile(learner_id=learner_id, module_id="m", difficulty_tier=DifficultyTier.ADVANCED)

        updated = model.adjust_tier(profile, PerformanceSnapshot(accuracy=60))

        assert updated.difficulty_tier == DifficultyTier.INTERMEDIATE

    def test_demotion_on_attempts(self, model, learner_id):
        """Test repeated attempts demote."""
        profile = LearnerProfile(learner_id=learner_id, module_id="m", difficulty_tier=DifficultyTier.INTERMEDIATE)

        updated = model.adjust_tier(profile, PerformanceSnapshot(accuracy=80, attempts=3))

        assert updated.difficulty_tier == DifficultyTier.BEGINNER

    def test_beginner_floor(self, model, profile):
        """Test beginner is never demoted further."""
        updated = model.adjust_tier(profile, PerformanceSnapshot(accuracy=10, attempts=5))

        assert updated.difficulty_tier == DifficultyTier.BEGINNER

    def test_unchanged_in_between(self, model, learner_id):
        """Test middling performance keeps the tier."""
        profile = LearnerProfile(learner_id=learner_id, module_id="m", difficulty_tier=DifficultyTier.INTERMEDIATE)

        updated = model.adjust_tier(profile, PerformanceSnapshot(accuracy=80, speed=1.0, confidence=90))

        assert updated.difficulty_tier == DifficultyTier.INTERMEDIATE

    def test_reset_mastery(self, model, learner_id):
        """Test reset sets mastery to zero and keeps the rest."""
        profile = LearnerProfile(learner_id=learner_id, module_id="m", mastery_level=64.0, engagement_level=70)

        reset = model.reset_mastery(profile)

        assert reset.mastery_level == 0.0
        assert reset.engagement_level == 70

    def test_to_dict(self, model, profile):
        """Test dictionary form lists strengths and gaps."""
        updated = model.adapt(profile, StepOutcome(topic_results={"b": (1, 2), "a": (2, 2)}))

        data = updated.to_dict()

        assert data["strengths"] == ["a"]
        assert data["knowledge_gaps"] == ["b"]
        assert data["difficulty_tier"] == "beginner"
