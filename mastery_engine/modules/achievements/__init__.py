"""Achievements Module - Achievement templates and unlock evaluation."""

from mastery_engine.modules.achievements.interface import (
    AchievementInstance,
    AchievementTemplate,
    EvaluationResult,
    IAchievementEvaluator,
    Requirement,
)
from mastery_engine.modules.achievements.service import (
    AchievementEvaluator,
    effective_threshold,
    get_achievement_evaluator,
    requirement_value,
)

__all__ = [
    "AchievementInstance",
    "AchievementTemplate",
    "EvaluationResult",
    "IAchievementEvaluator",
    "Requirement",
    "AchievementEvaluator",
    "effective_threshold",
    "get_achievement_evaluator",
    "requirement_value",
]
