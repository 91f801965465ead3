"""Notifications Module - Notification sinks."""

from mastery_engine.modules.notifications.interface import INotificationSink, Notification
from mastery_engine.modules.notifications.redis_sink import RedisNotificationSink
from mastery_engine.modules.notifications.service import (
    InMemoryNotificationSink,
    LoggingNotificationSink,
)

__all__ = [
    "INotificationSink",
    "Notification",
    "InMemoryNotificationSink",
    "LoggingNotificationSink",
    "RedisNotificationSink",
]
