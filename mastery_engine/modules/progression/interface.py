"""Progression Module - Lockstep step sequence within a module."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol
from uuid import UUID

from mastery_engine.shared.models import DifficultyTier, StepStatus, StepType


@dataclass(frozen=True)
class AdaptiveStep:
    """One unit in a module's ordered progression."""

    id: str
    title: str
    type: StepType
    status: StepStatus = StepStatus.LOCKED
    payload: Mapping[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "type": self.type.value,
            "status": self.status.value,
            "payload": dict(self.payload),
        }


@dataclass(frozen=True)
class ModuleProgress:
    """The step sequence of one module instance for one learner.

    Exactly one step is current (none once the module is complete); every
    step before it is completed and every step after it is locked.
    """

    learner_id: UUID
    module_id: str
    steps: tuple[AdaptiveStep, ...]
    difficulty_tier: DifficultyTier = DifficultyTier.BEGINNER
    version: int = 0  # Optimistic concurrency token, managed by the store

    @property
    def current_index(self) -> int | None:
        for index, step in enumerate(self.steps):
            if step.status == StepStatus.CURRENT:
                return index
        return None

    @property
    def current_step(self) -> AdaptiveStep | None:
        index = self.current_index
        return None if index is None else self.steps[index]

    @property
    def completed_count(self) -> int:
        return sum(1 for step in self.steps if step.status == StepStatus.COMPLETED)

    @property
    def is_complete(self) -> bool:
        return bool(self.steps) and self.completed_count == len(self.steps)

    @property
    def percent_complete(self) -> float:
        """Completed share of the steps as a percentage; never stored."""
        if not self.steps:
            return 0.0
        return round(self.completed_count / len(self.steps) * 100, 2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "learner_id": str(self.learner_id),
            "module_id": self.module_id,
            "difficulty_tier": self.difficulty_tier.value,
            "current_index": self.current_index,
            "percent_complete": self.percent_complete,
            "steps": [step.to_dict() for step in self.steps],
            "version": self.version,
        }


class IProgressionStateMachine(Protocol):
    """Interface for the progression state machine."""

    def complete_step(self, progress: ModuleProgress, step_index: int) -> ModuleProgress:
        """Mark the current step completed and unlock the next one.

        Raises:
            InvalidStepIndexError: Index outside the sequence
            AlreadyCompletedError: Step was already completed
            OutOfOrderError: Step is still locked
        """
        ...

    def percent_complete(self, progress: ModuleProgress) -> float:
        """Completed steps / total steps * 100."""
        ...
