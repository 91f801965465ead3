"""Redis pub/sub notification sink."""

import json
from typing import Awaitable, Callable
import logging

import redis.asyncio as redis

from mastery_engine.modules.notifications.interface import INotificationSink, Notification
from mastery_engine.shared.config import get_settings
from mastery_engine.shared.database import get_redis
from mastery_engine.shared.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class RedisNotificationSink(INotificationSink):
    """Publishes notifications as JSON to a Redis channel.

    Subscribers receive one message per notification on
    ``settings.notification_channel``.
    """

    def __init__(
        self,
        channel: str | None = None,
        client_factory: Callable[[], Awaitable[redis.Redis]] | None = None,
    ) -> None:
        self._channel = channel or get_settings().notification_channel
        self._client_factory = client_factory or get_redis

    @property
    def channel(self) -> str:
        return self._channel

    async def publish(self, notification: Notification) -> None:
        """Publish a notification.

        Raises:
            ExternalServiceError: If Redis rejects the message or is unreachable
        """
        message = json.dumps(notification.to_dict())
        try:
            client = await self._client_factory()
            receivers = await client.publish(self._channel, message)
        except (redis.RedisError, OSError) as e:
            raise ExternalServiceError("Redis", str(e)) from e

        logger.debug(
            f"Published {notification.type.value} to {self._channel} ({receivers} receivers)"
        )
