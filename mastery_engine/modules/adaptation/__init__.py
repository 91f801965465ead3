"""Adaptation Module - Step adaptation, lesson templates and recommendations."""

from mastery_engine.modules.adaptation.interface import (
    IAdaptationSelector,
    LessonTemplate,
    Recommendation,
    RecommendationContext,
    StepAdaptation,
)
from mastery_engine.modules.adaptation.rules import (
    LESSON_TEMPLATES,
    RECOMMENDATION_RULES,
    RecommendationRule,
    default_lesson_template,
    lesson_template_for,
    recommend,
)
from mastery_engine.modules.adaptation.service import (
    CONTENT_ROTATION,
    AdaptationSelector,
    get_adaptation_selector,
)

__all__ = [
    # Interface types
    "IAdaptationSelector",
    "LessonTemplate",
    "Recommendation",
    "RecommendationContext",
    "StepAdaptation",
    # Selector
    "AdaptationSelector",
    "CONTENT_ROTATION",
    "get_adaptation_selector",
    # Rule tables
    "LESSON_TEMPLATES",
    "RECOMMENDATION_RULES",
    "RecommendationRule",
    "default_lesson_template",
    "lesson_template_for",
    "recommend",
]
