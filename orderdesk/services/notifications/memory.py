"""
In-Process Broadcaster

Keeps the set of connected observers in memory and hands every event to
each of them. Events published while nobody is connected are dropped.
"""

import logging
from typing import Any

from orderdesk.services.notifications.base import Broadcaster, PublishResult, Subscription

logger = logging.getLogger(__name__)


class LocalBroadcaster(Broadcaster):
    """Fan-out to observers connected to this process."""

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscriptions: set[Subscription] = set()
        logger.info(f"LocalBroadcaster initialized (queue_size={queue_size})")

    @property
    def provider_name(self) -> str:
        return "memory"

    @property
    def observer_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(self) -> Subscription:
        subscription = Subscription(maxsize=self.queue_size)
        self._subscriptions.add(subscription)
        logger.info(f"Observer {subscription.id} connected ({self.observer_count} total)")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.discard(subscription)
            logger.info(f"Observer {subscription.id} disconnected ({self.observer_count} total)")

    def deliver(self, message: dict[str, Any]) -> PublishResult:
        """Hand an already-built message to every local observer."""
        result = PublishResult(event=message.get("event", "unknown"))
        # Copy: observers may disconnect while we iterate
        for subscription in list(self._subscriptions):
            if subscription.offer(message):
                result.delivered += 1
            else:
                result.dropped += 1
                logger.warning(
                    f"Observer {subscription.id} is not keeping up, "
                    f"dropped {result.event} ({subscription.dropped} dropped so far)"
                )
        return result

    async def publish(self, event: str, payload: dict[str, Any]) -> PublishResult:
        result = self.deliver({"event": event, "data": payload})
        logger.debug(f"Published {event} to {result.delivered} observer(s)")
        return result
