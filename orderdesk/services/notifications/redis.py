"""
Redis Pub/Sub Broadcaster

For deployments running several API workers: each worker publishes its
order events on one Redis channel and relays everything it hears on
that channel to its own connected observers. Redis pub/sub keeps no
history, so the no-backlog, no-replay contract is unchanged.
"""

import asyncio
import json
import logging
from contextlib import suppress
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from orderdesk.services.notifications.base import PublishResult
from orderdesk.services.notifications.memory import LocalBroadcaster

logger = logging.getLogger(__name__)


class RedisBroadcaster(LocalBroadcaster):
    """Fan-out across processes through a Redis channel."""

    def __init__(
        self,
        redis_url: str,
        channel: str,
        queue_size: int = 100,
        client: Optional[aioredis.Redis] = None,
    ):
        super().__init__(queue_size=queue_size)
        self.redis_url = redis_url
        self.channel = channel
        self._client = client
        self._pubsub = None
        self._listener: Optional[asyncio.Task] = None

    @property
    def provider_name(self) -> str:
        return "redis"

    async def start(self) -> None:
        if self._client is None:
            self._client = aioredis.from_url(self.redis_url, decode_responses=True)
        self._pubsub = self._client.pubsub()
        await self._pubsub.subscribe(self.channel)
        self._listener = asyncio.create_task(self._listen())
        logger.info(f"RedisBroadcaster listening on '{self.channel}'")

    async def _listen(self) -> None:
        try:
            async for message in self._pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    data = json.loads(message["data"])
                except (TypeError, ValueError) as e:
                    logger.warning(f"Ignoring malformed event on '{self.channel}': {e}")
                    continue
                self.deliver(data)
        except RedisError as e:
            logger.error(f"Redis listener stopped: {e}")

    async def publish(self, event: str, payload: dict[str, Any]) -> PublishResult:
        if self._client is None:
            logger.warning(f"RedisBroadcaster not started, dropped {event}")
            return PublishResult(event=event, error_message="not started")

        message = json.dumps({"event": event, "data": payload}, default=str)
        try:
            receivers = await self._client.publish(self.channel, message)
        except (RedisError, OSError) as e:
            logger.warning(f"Could not publish {event}: {e}")
            return PublishResult(event=event, error_message=str(e))

        logger.debug(f"Published {event} to {receivers} worker(s)")
        return PublishResult(event=event, delivered=receivers)

    async def close(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            with suppress(asyncio.CancelledError):
                await self._listener
            self._listener = None
        if self._pubsub is not None:
            await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
            self._pubsub = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("RedisBroadcaster closed")

    async def health_check(self) -> bool:
        if self._client is None:
            return False
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as e:
            logger.error(f"Redis health check failed: {e}")
            return False
