"""Single entry point handlers use to push events to real-time rooms."""

import logging
from typing import Any

from event_portal.services.redis_pubsub import redis_pubsub
from event_portal.services.websocket_manager import manager

logger = logging.getLogger(__name__)

NEW_MESSAGE = "new-message"
MESSAGES_READ = "messages-read"


async def emit(room: str, event: str, data: Any) -> None:
    """Emit to a room, through the Redis backplane when it is connected."""
    if redis_pubsub.is_connected:
        await redis_pubsub.publish(room, event, data)
        return
    await manager.emit(room, event, data)
