"""WebSocket endpoint for the real-time channel."""

import logging
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from event_portal.api.deps import get_user_from_token
from event_portal.db import engine
from event_portal.services.websocket_manager import conversation_room, manager, user_room

logger = logging.getLogger(__name__)

router = APIRouter()


def _authenticate(token: str) -> UUID:
    with Session(engine) as session:
        return get_user_from_token(session, token).id


async def _handle_frame(websocket: WebSocket, user_id: UUID, frame: dict) -> None:
    event = frame.get("event")
    data = frame.get("data") or {}
    if not isinstance(data, dict):
        await _send_error(websocket, "data must be an object")
        return

    if event == "ping":
        await websocket.send_json({"event": "pong", "data": {}})

    elif event == "join-user-room":
        # Only the authenticated user's own room
        requested = str(data.get("user_id") or user_id)
        if requested != str(user_id):
            await _send_error(websocket, "Cannot join another user's room")
            return
        room = user_room(user_id)
        await manager.join(websocket, room)
        await websocket.send_json({"event": "joined", "data": {"room": room}})

    elif event in ("join-conversation", "leave-conversation"):
        try:
            event_id = UUID(str(data.get("event_id")))
            other_user_id = UUID(str(data.get("other_user_id")))
        except ValueError:
            await _send_error(websocket, "event_id and other_user_id are required")
            return
        room = conversation_room(event_id, user_id, other_user_id)
        if event == "join-conversation":
            await manager.join(websocket, room)
            await websocket.send_json({"event": "joined", "data": {"room": room}})
        else:
            await manager.leave(websocket, room)
            await websocket.send_json({"event": "left", "data": {"room": room}})

    else:
        await _send_error(websocket, f"Unknown event: {event}")


async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"event": "error", "data": {"message": message}})


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket, token: str = Query(default="")):
    """
    Real-time channel for messaging events.

    Client connects with: ws://<host>/api/ws?token=JWT_TOKEN

    Frames in both directions look like ``{"event": "...", "data": {...}}``.
    The socket joins ``user-<id>`` on connect; conversation rooms are joined
    with ``join-conversation`` and ``{"event_id", "other_user_id"}``.
    """
    try:
        user_id = await run_in_threadpool(_authenticate, token)
    except HTTPException as e:
        logger.warning(f"WebSocket auth failed: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await manager.connect(websocket, user_id)
    try:
        await websocket.send_json({"event": "connected", "data": {"user_id": str(user_id)}})

        while True:
            try:
                frame = await websocket.receive_json()
            except ValueError:
                await _send_error(websocket, "Frames must be JSON objects")
                continue
            if not isinstance(frame, dict):
                await _send_error(websocket, "Frames must be JSON objects")
                continue
            await _handle_frame(websocket, user_id, frame)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected gracefully for user {user_id}")
    finally:
        await manager.disconnect(websocket, user_id)
