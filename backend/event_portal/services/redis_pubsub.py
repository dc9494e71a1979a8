"""
Redis Pub/Sub backplane for the real-time channel.
Relays room emits between server processes so every instance can reach
the sockets it holds.
"""

import asyncio
import json
import logging
from typing import Any, Optional

import redis.asyncio as aioredis
from redis.asyncio.client import PubSub

from event_portal.core.config import settings
from event_portal.services.websocket_manager import manager

logger = logging.getLogger(__name__)


class RedisPubSubService:
    """Publishes room emits to Redis and replays received ones locally."""

    def __init__(self, channel: str | None = None):
        self.channel = channel or settings.REALTIME_CHANNEL
        self.redis: Optional[aioredis.Redis] = None
        self.pubsub: Optional[PubSub] = None
        self._listener_task: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self.redis is not None

    async def connect(self):
        """Connect to Redis and subscribe to the realtime channel."""
        try:
            self.redis = aioredis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
            )
            self.pubsub = self.redis.pubsub()
            await self.pubsub.subscribe(self.channel)
            logger.info(f"Redis Pub/Sub connected and subscribed to '{self.channel}' channel")
            self._listener_task = asyncio.create_task(self._listen())
        except Exception as e:
            logger.error(f"Failed to connect to Redis Pub/Sub: {e}")
            self.redis = None
            self.pubsub = None
            raise

    async def disconnect(self):
        """Disconnect from Redis Pub/Sub."""
        if self._listener_task:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
            self._listener_task = None

        if self.pubsub:
            await self.pubsub.unsubscribe(self.channel)
            await self.pubsub.aclose()
            self.pubsub = None

        if self.redis:
            await self.redis.aclose()
            self.redis = None

        logger.info("Redis Pub/Sub disconnected")

    async def handle_message(self, raw: str) -> int:
        """Deliver one relayed emit to the local connection manager."""
        payload = json.loads(raw)
        return await manager.emit(payload["room"], payload["event"], payload.get("data"))

    async def _listen(self):
        logger.info("Starting Redis Pub/Sub listener...")
        try:
            async for message in self.pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    await self.handle_message(message["data"])
                except (ValueError, KeyError) as e:
                    logger.error(f"Dropping malformed realtime message: {e}")
        except asyncio.CancelledError:
            logger.info("Redis Pub/Sub listener cancelled")
            raise
        except Exception as e:
            logger.error(f"Redis Pub/Sub listener error: {e}", exc_info=True)

    async def publish(self, room: str, event: str, data: Any) -> None:
        """Publish a room emit to every subscribed process, including this one."""
        if not self.redis:
            logger.warning("Redis not connected, cannot publish realtime event")
            return
        message = {"room": room, "event": event, "data": data}
        await self.redis.publish(self.channel, json.dumps(message, default=str))
        logger.debug(f"Published {event} for room {room} to Redis")


# Global instance
redis_pubsub = RedisPubSubService()
