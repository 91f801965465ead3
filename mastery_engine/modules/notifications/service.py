"""In-process notification sinks."""

import logging

from mastery_engine.modules.notifications.interface import INotificationSink, Notification
from mastery_engine.shared.models import NotificationType

logger = logging.getLogger(__name__)


class InMemoryNotificationSink(INotificationSink):
    """Collects notifications in a list (tests and the CLI)."""

    def __init__(self) -> None:
        self.published: list[Notification] = []

    async def publish(self, notification: Notification) -> None:
        self.published.append(notification)

    def of_type(self, notification_type: NotificationType) -> list[Notification]:
        return [n for n in self.published if n.type == notification_type]

    def clear(self) -> None:
        self.published.clear()


class LoggingNotificationSink(INotificationSink):
    """Writes notifications to the application log."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    async def publish(self, notification: Notification) -> None:
        logger.log(
            self._level,
            f"Notification {notification.type.value} for learner {notification.learner_id}",
            extra={"notification": notification.to_dict()},
        )
