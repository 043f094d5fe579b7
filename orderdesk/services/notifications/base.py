"""
Order Event Broadcaster Abstract Base Class

Defines the interface for pushing order events to connected observers
(admin displays). Delivery is best effort: no backlog, no replay, and a
failed or slow observer never holds up the write that triggered the
event. Observers re-fetch the active order list when they reconnect.
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

EVENT_ORDER_NEW = "order:new"
EVENT_ORDER_UPDATE = "order:update"


@dataclass
class PublishResult:
    """Result from publishing one event."""
    event: str
    delivered: int = 0
    dropped: int = 0
    error_message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error_message is None


class Subscription:
    """
    One connected observer.

    Events wait in a bounded queue until the connection's sender task
    picks them up. When the queue is full the newest event is dropped
    for this observer only.
    """

    def __init__(self, maxsize: int = 100):
        self.id = uuid.uuid4().hex[:12]
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0

    def offer(self, message: dict[str, Any]) -> bool:
        try:
            self.queue.put_nowait(message)
        except asyncio.QueueFull:
            self.dropped += 1
            return False
        return True

    async def get(self) -> dict[str, Any]:
        return await self.queue.get()

    def __repr__(self):
        return f"<Subscription {self.id} pending={self.queue.qsize()} dropped={self.dropped}>"


class Broadcaster(ABC):
    """Abstract base class for order event fan-out."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the backend name."""
        pass

    @property
    @abstractmethod
    def observer_count(self) -> int:
        """Number of observers connected to this process."""
        pass

    @abstractmethod
    def subscribe(self) -> Subscription:
        """Register a new observer."""
        pass

    @abstractmethod
    def unsubscribe(self, subscription: Subscription) -> None:
        """Forget an observer. Unknown subscriptions are ignored."""
        pass

    @abstractmethod
    async def publish(self, event: str, payload: dict[str, Any]) -> PublishResult:
        """Send an event to every observer. Must never raise."""
        pass

    async def start(self) -> None:
        """Open connections needed by the backend."""

    async def close(self) -> None:
        """Release backend resources."""

    async def health_check(self) -> bool:
        return True
