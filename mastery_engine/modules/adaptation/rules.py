"""Rule tables for lesson text and learning recommendations.

Both tables are plain data: adding a topic or a rule means adding an
entry, not a branch.
"""

from dataclasses import dataclass
from typing import Callable, Iterable
import logging

from mastery_engine.modules.adaptation.interface import (
    LessonTemplate,
    Recommendation,
    RecommendationContext,
)
from mastery_engine.modules.profile.interface import LearnerProfile, PerformanceSnapshot
from mastery_engine.shared.constants import (
    ADVANCE_ACCURACY_THRESHOLD,
    CHALLENGE_ACCURACY_THRESHOLD,
    PRACTICE_SPEED_THRESHOLD,
    REVIEW_ACCURACY_THRESHOLD,
)
from mastery_engine.shared.models import (
    ComfortPreference,
    DifficultyTier,
    Priority,
    RecommendationType,
)

logger = logging.getLogger(__name__)


# ===================
# Lesson Templates
# ===================

LESSON_TEMPLATES: dict[str, LessonTemplate] = {
    "SBA Express Loan Fundamentals": LessonTemplate(
        objectives=(
            "Understand SBA Express loan program basics",
            "Identify key benefits and limitations",
            "Compare with other SBA loan types",
        ),
        summary="Core concepts of the SBA Express loan program",
    ),
    "Application Process": LessonTemplate(
        objectives=(
            "Master the application workflow",
            "Identify required stakeholders",
            "Understand timeline expectations",
        ),
        summary="How an application moves from intake to decision",
    ),
    "Documentation Requirements": LessonTemplate(
        objectives=(
            "List all required documents",
            "Understand documentation best practices",
            "Identify common documentation errors",
        ),
        summary="What must be collected and how to get it right",
    ),
}


def default_lesson_template(topic: str) -> LessonTemplate:
    """Fallback template for topics without a dedicated entry."""
    return LessonTemplate(
        objectives=(
            f"Learn {topic} fundamentals",
            f"Apply {topic} concepts",
            f"Demonstrate {topic} mastery",
        ),
        summary=f"Adaptive content for {topic}",
    )


def lesson_template_for(topic: str) -> LessonTemplate:
    """Look up the lesson template for a topic, falling back to the default."""
    return LESSON_TEMPLATES.get(topic) or default_lesson_template(topic)


# ===================
# Recommendation Rules
# ===================


@dataclass(frozen=True)
class RecommendationRule:
    """A predicate over observed statistics and the recommendations it yields."""

    name: str
    applies: Callable[[RecommendationContext], bool]
    build: Callable[[RecommendationContext], Iterable[Recommendation]]


def _focus_text(context: RecommendationContext) -> str:
    if context.objectives:
        return f"Focus on {' and '.join(context.objectives[:2])}"
    return "Revisit the core concepts of this module"


RECOMMENDATION_RULES: tuple[RecommendationRule, ...] = (
    RecommendationRule(
        name="review",
        applies=lambda c: c.accuracy < REVIEW_ACCURACY_THRESHOLD,
        build=lambda c: [Recommendation(
            type=RecommendationType.REVIEW,
            title="Review Core Concepts",
            description=_focus_text(c),
            priority=Priority.HIGH,
        )],
    ),
    RecommendationRule(
        name="practice",
        applies=lambda c: c.speed > PRACTICE_SPEED_THRESHOLD,
        build=lambda c: [Recommendation(
            type=RecommendationType.PRACTICE,
            title="Practice Time Management",
            description="Try timed exercises to improve response speed",
            priority=Priority.MEDIUM,
        )],
    ),
    RecommendationRule(
        name="advance",
        applies=lambda c: (
            c.profile.difficulty_tier == DifficultyTier.BEGINNER
            and c.accuracy >= ADVANCE_ACCURACY_THRESHOLD
        ),
        build=lambda c: [Recommendation(
            type=RecommendationType.ADVANCE,
            title="Ready for Next Level",
            description="Your performance indicates readiness for intermediate content",
            priority=Priority.HIGH,
        )],
    ),
    RecommendationRule(
        name="challenge",
        applies=lambda c: (
            c.module_complete
            and c.accuracy >= CHALLENGE_ACCURACY_THRESHOLD
            and c.profile.comfort_preference != ComfortPreference.COMFORTABLE
        ),
        build=lambda c: [Recommendation(
            type=RecommendationType.CHALLENGE,
            title="Take On an Expert Challenge",
            description="You have mastered this module; try the expert-level scenarios",
            priority=Priority.LOW,
        )],
    ),
    RecommendationRule(
        name="gap_review",
        applies=lambda c: bool(c.profile.knowledge_gaps),
        build=lambda c: [
            Recommendation(
                type=RecommendationType.REVIEW,
                title=f"Strengthen {topic}",
                description=f"Your answers on {topic} show a knowledge gap",
                priority=Priority.MEDIUM,
                topic=topic,
            )
            for topic in sorted(c.profile.knowledge_gaps)
        ],
    ),
)


def recommend(
    profile: LearnerProfile,
    performance: PerformanceSnapshot,
    *,
    objectives: Iterable[str] = (),
    module_complete: bool = False,
    rules: Iterable[RecommendationRule] = RECOMMENDATION_RULES,
) -> list[Recommendation]:
    """Evaluate the recommendation rules in order.

    Args:
        profile: Learner profile for the module
        performance: Observed accuracy and pace
        objectives: Learning objectives of the module, used in review text
        module_complete: Whether every step of the module is completed
        rules: Rule table to evaluate (defaults to RECOMMENDATION_RULES)

    Returns:
        Recommendations sorted by priority, stable within a priority
    """
    context = RecommendationContext(
        profile=profile,
        accuracy=performance.accuracy,
        speed=performance.speed,
        objectives=tuple(objectives),
        module_complete=module_complete,
    )

    recommendations: list[Recommendation] = []
    for rule in rules:
        if rule.applies(context):
            logger.debug(f"Recommendation rule matched: {rule.name}")
            recommendations.extend(rule.build(context))

    return sorted(recommendations, key=lambda r: r.priority.rank)
