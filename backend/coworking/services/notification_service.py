"""
Redis queue notification dispatcher.

Events are pushed as JSON onto NOTIFICATION_QUEUE (LPUSH); a separate
delivery worker pops them (BRPOP) and sends mail/push. This service never
waits for delivery.
"""

import json
from datetime import datetime, timezone

from redis.exceptions import RedisError

from coworking.core.config import get_settings
from coworking.core.logging import get_logger
from coworking.infrastructure.redis_client import get_redis
from coworking.services.interfaces.notifier import Notifier

logger = get_logger(__name__)
settings = get_settings()


class NotificationUnavailable(Exception):
    pass


class RedisNotifier(Notifier):
    def __init__(self, queue: str = settings.NOTIFICATION_QUEUE):
        self.queue = queue

    async def send(self, recipient_id: int, event_type: str, payload: dict) -> None:
        client = await get_redis()
        if client is None:
            raise NotificationUnavailable("Redis is not available")

        message = json.dumps(
            {
                "recipient_id": recipient_id,
                "event_type": event_type,
                "payload": payload,
                "queued_at": datetime.now(timezone.utc).isoformat(),
            },
            default=str,
        )
        try:
            await client.lpush(self.queue, message)
        except RedisError as e:
            raise NotificationUnavailable(str(e)) from e

        logger.debug("notification_queued", queue=self.queue, event_type=event_type, recipient_id=recipient_id)
