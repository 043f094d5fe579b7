"""
Order Event Broadcaster Factory

Returns the in-process or Redis-backed broadcaster based on
BROADCAST_BACKEND. The application builds one at startup and keeps it
on ``app.state``; nothing here is cached globally.
"""

import logging

from orderdesk.core.config import BroadcastBackend, Settings
from orderdesk.services.notifications.base import (
    EVENT_ORDER_NEW,
    EVENT_ORDER_UPDATE,
    Broadcaster,
    PublishResult,
    Subscription,
)
from orderdesk.services.notifications.memory import LocalBroadcaster
from orderdesk.services.notifications.redis import RedisBroadcaster

logger = logging.getLogger(__name__)


def create_broadcaster(settings: Settings) -> Broadcaster:
    """Build the configured broadcaster."""
    if settings.broadcast_backend == BroadcastBackend.REDIS:
        logger.info(f"Broadcaster: Using RedisBroadcaster ({settings.broadcast_channel})")
        return RedisBroadcaster(
            redis_url=settings.redis_url,
            channel=settings.broadcast_channel,
            queue_size=settings.observer_queue_size,
        )

    logger.info("Broadcaster: Using LocalBroadcaster (in-process)")
    return LocalBroadcaster(queue_size=settings.observer_queue_size)


__all__ = [
    "create_broadcaster",
    "Broadcaster",
    "LocalBroadcaster",
    "RedisBroadcaster",
    "PublishResult",
    "Subscription",
    "EVENT_ORDER_NEW",
    "EVENT_ORDER_UPDATE",
]
