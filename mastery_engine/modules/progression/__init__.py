"""Progression Module - Adaptive step sequences and the progression state machine."""

from mastery_engine.modules.progression.interface import (
    AdaptiveStep,
    IProgressionStateMachine,
    ModuleProgress,
)
from mastery_engine.modules.progression.service import (
    ProgressionStateMachine,
    generate_steps,
    get_progression_state_machine,
)

__all__ = [
    "AdaptiveStep",
    "IProgressionStateMachine",
    "ModuleProgress",
    "ProgressionStateMachine",
    "generate_steps",
    "get_progression_state_machine",
]
