"""Progression State Machine - step generation and lockstep completion."""

from dataclasses import replace
from functools import lru_cache
from typing import Any
import logging

from mastery_engine.modules.adaptation.interface import IAdaptationSelector
from mastery_engine.modules.adaptation.rules import lesson_template_for
from mastery_engine.modules.adaptation.service import get_adaptation_selector
from mastery_engine.modules.catalog.interface import ModuleDefinition
from mastery_engine.modules.profile.interface import LearnerProfile
from mastery_engine.modules.progression.interface import (
    AdaptiveStep,
    IProgressionStateMachine,
    ModuleProgress,
)
from mastery_engine.shared.exceptions import (
    AlreadyCompletedError,
    InvalidStepIndexError,
    OutOfOrderError,
)
from mastery_engine.shared.models import DifficultyTier, StepStatus, StepType

logger = logging.getLogger(__name__)


def _base_steps(module: ModuleDefinition, objectives: tuple[str, ...]) -> list[tuple[str, str, StepType, dict[str, Any]]]:
    return [
        ("introduction", "Introduction & Objectives", StepType.CONTENT, {
            "heading": f"Welcome to {module.title}",
            "description": module.description,
            "objectives": list(objectives),
            "base_duration_minutes": module.base_duration_minutes,
        }),
        ("assessment", "Initial Assessment", StepType.ASSESSMENT, {
            "heading": "Knowledge Check",
            "description": "Let's assess your current understanding to personalize your learning path.",
        }),
        ("learning", "Interactive Learning", StepType.INTERACTIVE, {
            "heading": "Hands-on Practice",
            "description": "Apply concepts through interactive exercises.",
        }),
        ("practice", "Practice Scenarios", StepType.SCENARIOS, {
            "heading": "Real-world Application",
            "description": "Practice with realistic business scenarios.",
        }),
        ("mastery", "Mastery Assessment", StepType.FINAL_ASSESSMENT, {
            "heading": "Demonstrate Your Mastery",
            "description": "Show that you've mastered the key concepts.",
            "passing_score": module.mastery_threshold,
        }),
    ]


def generate_steps(
    module: ModuleDefinition,
    profile: LearnerProfile,
    selector: IAdaptationSelector | None = None,
) -> ModuleProgress:
    """Build the step sequence of a module instance for a learner.

    Beginners get an extra fundamentals step before the interactive one;
    experts get an extra expert scenarios step at the end. Every payload
    carries the selector's adaptation for its position.

    Args:
        module: Module definition from the catalog
        profile: Learner's profile for this module
        selector: Adaptation selector (defaults to the shared one)

    Returns:
        Progress with step 0 current and every other step locked
    """
    selector = selector or get_adaptation_selector()
    template = lesson_template_for(module.topic_key)
    objectives = module.learning_objectives or template.objectives

    steps = _base_steps(module, objectives)

    if profile.difficulty_tier == DifficultyTier.BEGINNER:
        steps.insert(2, ("fundamentals", "Core Fundamentals", StepType.CONTENT, {
            "heading": "Building Strong Foundations",
            "description": "Let's start with the essential concepts you need to know.",
            "objectives": list(objectives[:2]),
        }))
    elif profile.difficulty_tier == DifficultyTier.EXPERT:
        steps.append(("expert_topics", "Expert Applications", StepType.SCENARIOS, {
            "heading": "Expert-Level Challenges",
            "description": "Tackle complex scenarios and innovative solutions.",
        }))

    built = []
    for index, (step_id, title, step_type, payload) in enumerate(steps):
        adaptation = selector.select(profile, index)
        built.append(AdaptiveStep(
            id=step_id,
            title=title,
            type=step_type,
            status=StepStatus.CURRENT if index == 0 else StepStatus.LOCKED,
            payload={
                **payload,
                "summary": template.summary,
                "adaptation": adaptation.to_dict(),
            },
        ))

    logger.debug(
        f"Generated {len(built)} steps for learner {profile.learner_id} "
        f"on {module.id} ({profile.difficulty_tier.value})"
    )
    return ModuleProgress(
        learner_id=profile.learner_id,
        module_id=module.id,
        steps=tuple(built),
        difficulty_tier=profile.difficulty_tier,
    )


class ProgressionStateMachine(IProgressionStateMachine):
    """Lockstep progression: only the current step can be completed.

    Completing it and unlocking the next step produce a single new
    ModuleProgress value; abandoning a step mid-way changes nothing.
    """

    def complete_step(self, progress: ModuleProgress, step_index: int) -> ModuleProgress:
        """Mark the current step completed and unlock the next one."""
        total = len(progress.steps)
        if step_index < 0 or step_index >= total:
            raise InvalidStepIndexError(step_index, total)

        step = progress.steps[step_index]
        if step.status == StepStatus.COMPLETED:
            raise AlreadyCompletedError(step_index)
        if step.status == StepStatus.LOCKED:
            raise OutOfOrderError(step_index, progress.current_index)

        steps = list(progress.steps)
        steps[step_index] = replace(step, status=StepStatus.COMPLETED)
        if step_index + 1 < total:
            steps[step_index + 1] = replace(steps[step_index + 1], status=StepStatus.CURRENT)

        return replace(progress, steps=tuple(steps))

    def percent_complete(self, progress: ModuleProgress) -> float:
        """Completed steps / total steps * 100."""
        return progress.percent_complete


@lru_cache
def get_progression_state_machine() -> ProgressionStateMachine:
    """Get the shared ProgressionStateMachine instance."""
    return ProgressionStateMachine()
