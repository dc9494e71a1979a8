"""
WebSocket connection manager for the real-time channel.
Keeps sockets grouped in rooms and emits ``{"event", "data"}`` frames to them.
"""

import asyncio
import logging
from typing import Any, Dict, Set
from uuid import UUID

from fastapi import WebSocket

logger = logging.getLogger(__name__)


def user_room(user_id: UUID | str) -> str:
    return f"user-{user_id}"


def conversation_room(event_id: UUID | str, user_a: UUID | str, user_b: UUID | str) -> str:
    """Room shared by both participants: the user ids are sorted."""
    first, second = sorted((str(user_a), str(user_b)))
    return f"conversation-{event_id}-{first}-{second}"


class ConnectionManager:
    """Manages WebSocket connections and their room memberships."""

    def __init__(self):
        # {room: {websocket1, websocket2, ...}}
        self.rooms: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket, user_id: UUID):
        """Accept WebSocket connection and put it in the user's own room."""
        await websocket.accept()
        await self.join(websocket, user_room(user_id))
        logger.info(f"WebSocket connected: user_id={user_id}")

    async def join(self, websocket: WebSocket, room: str):
        async with self._lock:
            self.rooms.setdefault(room, set()).add(websocket)
        logger.debug(f"Socket joined room {room}")

    async def leave(self, websocket: WebSocket, room: str):
        async with self._lock:
            self._discard(websocket, room)
        logger.debug(f"Socket left room {room}")

    async def disconnect(self, websocket: WebSocket, user_id: UUID):
        """Remove the socket from every room it joined."""
        async with self._lock:
            for room in list(self.rooms):
                self._discard(websocket, room)
        logger.info(f"WebSocket disconnected: user_id={user_id}")

    def _discard(self, websocket: WebSocket, room: str) -> None:
        members = self.rooms.get(room)
        if members is None:
            return
        members.discard(websocket)
        if not members:
            del self.rooms[room]

    async def emit(self, room: str, event: str, data: Any) -> int:
        """Send an event to every socket in a room, returns the delivery count."""
        async with self._lock:
            members = list(self.rooms.get(room, ()))

        if not members:
            logger.debug(f"No active connections in room {room}")
            return 0

        delivered = 0
        disconnected = []
        for websocket in members:
            try:
                await websocket.send_json({"event": event, "data": data})
                delivered += 1
            except Exception as e:
                logger.error(f"Error sending {event} to room {room}: {e}")
                disconnected.append(websocket)

        # Clean up disconnected sockets
        if disconnected:
            async with self._lock:
                for ws in disconnected:
                    for name in list(self.rooms):
                        self._discard(ws, name)

        logger.debug(f"Emitted {event} to {delivered} socket(s) in {room}")
        return delivered

    def get_room_size(self, room: str) -> int:
        return len(self.rooms.get(room, set()))


# Global instance
manager = ConnectionManager()
