"""Notifications Module - Publishing engine events to subscribers."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from mastery_engine.shared.datetime_utils import utc_now
from mastery_engine.shared.models import NotificationType


@dataclass(frozen=True)
class Notification:
    """An event published after the state it describes has been stored."""

    type: NotificationType
    learner_id: UUID
    module_id: str | None = None
    achievement_id: str | None = None
    points: int | None = None
    step_index: int | None = None
    created_at: datetime = field(default_factory=utc_now)

    @classmethod
    def achievement_unlocked(cls, learner_id: UUID, achievement_id: str, points: int) -> "Notification":
        return cls(
            type=NotificationType.ACHIEVEMENT_UNLOCKED,
            learner_id=learner_id,
            achievement_id=achievement_id,
            points=points,
        )

    @classmethod
    def step_advanced(cls, learner_id: UUID, module_id: str, step_index: int) -> "Notification":
        return cls(
            type=NotificationType.STEP_ADVANCED,
            learner_id=learner_id,
            module_id=module_id,
            step_index=step_index,
        )

    @classmethod
    def module_completed(cls, learner_id: UUID, module_id: str) -> "Notification":
        return cls(
            type=NotificationType.MODULE_COMPLETED,
            learner_id=learner_id,
            module_id=module_id,
        )

    def to_dict(self) -> dict[str, Any]:
        """Wire form: only the fields relevant to the notification type."""
        data: dict[str, Any] = {
            "type": self.type.value,
            "learner_id": str(self.learner_id),
            "created_at": self.created_at.isoformat(),
        }
        for name in ("module_id", "achievement_id", "points", "step_index"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


class INotificationSink(Protocol):
    """Interface for notification sinks.

    Fire-and-forget from the engine's point of view: failures are logged
    by the caller and never undo stored state.
    """

    async def publish(self, notification: Notification) -> None:
        """Deliver one notification."""
        ...
