"""Tests for Adaptation module - step selection, lesson templates and recommendations."""

import pytest

from mastery_engine.modules.adaptation import (
    LESSON_TEMPLATES,
    AdaptationSelector,
    Recommendation,
    RecommendationRule,
    StepAdaptation,
    lesson_template_for,
    recommend,
)
from mastery_engine.modules.profile import LearnerProfile, PerformanceSnapshot, TopicAccuracy
from mastery_engine.shared.exceptions import ValidationError
from mastery_engine.shared.models import (
    ComfortPreference,
    ContentType,
    DifficultyPreference,
    DifficultyTier,
    LearningStyle,
    Priority,
    RecommendationType,
)


def make_profile(learner_id, **overrides) -> LearnerProfile:
    return LearnerProfile(learner_id=learner_id, module_id="application-process", **overrides)


class TestAdaptationSelector:
    """Tests for AdaptationSelector."""

    @pytest.fixture
    def selector(self) -> AdaptationSelector:
        """Create selector."""
        return AdaptationSelector()

    def test_new_visual_learner_first_step(self, selector, learner_id):
        """Test a new visual learner starts with a 15 minute video at difficulty 1."""
        adaptation = selector.select(make_profile(learner_id), 0, "adaptive")

        assert adaptation == StepAdaptation(
            content_type=ContentType.VIDEO,
            difficulty_level=1.0,
            estimated_minutes=15,
        )

    def test_content_rotation(self, selector, learner_id):
        """Test content types cycle through the style's rotation."""
        profile = make_profile(learner_id, learning_style=LearningStyle.READING)

        types = [selector.select(profile, i).content_type for i in range(4)]

        assert types == [ContentType.TEXT, ContentType.QUIZ, ContentType.TEXT, ContentType.QUIZ]

    def test_gradual_ramp(self, selector, learner_id):
        """Test gradual mode adds 0.5 per step."""
        profile = make_profile(learner_id, mastery_level=40.0)

        adaptation = selector.select(profile, 3, DifficultyPreference.GRADUAL)

        assert adaptation.difficulty_level == pytest.approx(3.5)

    def test_challenge_ramp(self, selector, learner_id):
        """Test challenge mode starts two levels higher and adds 0.8 per step."""
        profile = make_profile(learner_id, mastery_level=40.0)

        adaptation = selector.select(profile, 2, DifficultyPreference.CHALLENGE)

        assert adaptation.difficulty_level == pytest.approx(5.6)

    def test_challenge_capped(self, selector, learner_id):
        """Test challenge difficulty never exceeds 10."""
        profile = make_profile(learner_id, mastery_level=100.0)

        assert selector.select(profile, 8, "challenge").difficulty_level == 10.0

    def test_base_difficulty_capped_at_five(self, selector, learner_id):
        """Test mastery contributes at most 5 levels."""
        profile = make_profile(learner_id, mastery_level=100.0)

        assert selector.select(profile, 0, "adaptive").difficulty_level == 5.0

    def test_estimated_minutes_scale_with_engagement(self, selector, learner_id):
        """Test minutes scale with engagement and grow 5 per step."""
        engaged = make_profile(learner_id, engagement_level=100)
        disengaged = make_profile(learner_id, engagement_level=0)

        assert selector.select(engaged, 2).estimated_minutes == 40
        assert selector.select(disengaged, 0).estimated_minutes == 1

    def test_mode_defaults_to_profile_preference(self, selector, learner_id):
        """Test the profile's preference is used without an explicit mode."""
        profile = make_profile(
            learner_id,
            mastery_level=40.0,
            difficulty_preference=DifficultyPreference.CHALLENGE,
        )

        assert selector.select(profile, 0) == selector.select(profile, 0, "challenge")

    def test_deterministic(self, selector, learner_id):
        """Test identical inputs give identical output."""
        profile = make_profile(learner_id, mastery_level=33.0, engagement_level=61)

        assert selector.select(profile, 4) == AdaptationSelector().select(profile, 4)

    def test_negative_index_rejected(self, selector, learner_id):
        """Test negative step indices raise ValidationError."""
        with pytest.raises(ValidationError):
            selector.select(make_profile(learner_id), -1)

    def test_unknown_mode_rejected(self, selector, learner_id):
        """Test unknown modes raise ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            selector.select(make_profile(learner_id), 0, "extreme")

        assert exc_info.value.details["field"] == "mode"


class TestLessonTemplates:
    """Tests for the lesson template table."""

    def test_known_topic(self):
        """Test a known topic returns its own template."""
        template = lesson_template_for("Application Process")

        assert template is LESSON_TEMPLATES["Application Process"]
        assert "Master the application workflow" in template.objectives

    def test_unknown_topic_falls_back(self):
        """Test unknown topics get the default template."""
        template = lesson_template_for("Loan Servicing")

        assert template.objectives[0] == "Learn Loan Servicing fundamentals"
        assert template.summary == "Adaptive content for Loan Servicing"


class TestRecommend:
    """Tests for rule-based recommendations."""

    def test_low_accuracy_recommends_review(self, learner_id):
        """Test accuracy under 75 gives a high priority review."""
        recommendations = recommend(
            make_profile(learner_id),
            PerformanceSnapshot(accuracy=60),
            objectives=("Master the application workflow", "Identify required stakeholders", "x"),
        )

        assert [r.type for r in recommendations] == [RecommendationType.REVIEW]
        assert recommendations[0].priority == Priority.HIGH
        assert recommendations[0].description == (
            "Focus on Master the application workflow and Identify required stakeholders"
        )

    def test_slow_pace_recommends_practice(self, learner_id):
        """Test a slow pace gives a practice recommendation."""
        profile = make_profile(learner_id, difficulty_tier=DifficultyTier.INTERMEDIATE)

        recommendations = recommend(profile, PerformanceSnapshot(accuracy=80, speed=2.0))

        assert [(r.type, r.priority) for r in recommendations] == [
            (RecommendationType.PRACTICE, Priority.MEDIUM),
        ]

    def test_strong_beginner_recommends_advance(self, learner_id):
        """Test a beginner at 85% or better is told to advance."""
        recommendations = recommend(make_profile(learner_id), PerformanceSnapshot(accuracy=88))

        assert [r.type for r in recommendations] == [RecommendationType.ADVANCE]

    def test_challenge_after_completion(self, learner_id):
        """Test a completed module at 90% or better offers a challenge."""
        profile = make_profile(learner_id, difficulty_tier=DifficultyTier.ADVANCED)

        recommendations = recommend(profile, PerformanceSnapshot(accuracy=95), module_complete=True)

        assert [(r.type, r.priority) for r in recommendations] == [
            (RecommendationType.CHALLENGE, Priority.LOW),
        ]

    def test_no_challenge_for_comfortable_learners(self, learner_id):
        """Test learners who prefer comfort are not challenged."""
        profile = make_profile(
            learner_id,
            difficulty_tier=DifficultyTier.ADVANCED,
            comfort_preference=ComfortPreference.COMFORTABLE,
        )

        assert recommend(profile, PerformanceSnapshot(accuracy=95), module_complete=True) == []

    def test_gap_review_per_topic(self, learner_id):
        """Test each knowledge gap gets its own review."""
        profile = make_profile(
            learner_id,
            difficulty_tier=DifficultyTier.INTERMEDIATE,
            topic_stats={
                "fees": TopicAccuracy(1, 4),
                "collateral": TopicAccuracy(2, 5),
                "eligibility": TopicAccuracy(5, 5),
            },
        )

        recommendations = recommend(profile, PerformanceSnapshot(accuracy=80))

        assert [r.topic for r in recommendations] == ["collateral", "fees"]
        assert recommendations[0].title == "Strengthen collateral"

    def test_sorted_by_priority(self, learner_id):
        """Test high priority recommendations come first."""
        profile = make_profile(learner_id, topic_stats={"fees": TopicAccuracy(0, 3)})

        recommendations = recommend(profile, PerformanceSnapshot(accuracy=50, speed=1.8))

        assert [r.priority for r in recommendations] == [Priority.HIGH, Priority.MEDIUM, Priority.MEDIUM]
        assert recommendations[0].type == RecommendationType.REVIEW

    def test_custom_rule_table(self, learner_id):
        """Test a caller-supplied rule table replaces the defaults."""
        rule = RecommendationRule(
            name="always",
            applies=lambda c: True,
            build=lambda c: [Recommendation(
                type=RecommendationType.PRACTICE,
                title="Keep going",
                description="",
                priority=Priority.LOW,
            )],
        )

        recommendations = recommend(make_profile(learner_id), PerformanceSnapshot(), rules=[rule])

        assert [r.title for r in recommendations] == ["Keep going"]
