from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlmodel import Session, select

from event_portal.api.deps import get_current_user
from event_portal.db import SessionDep
from event_portal.models import MAX_MESSAGE_LENGTH, Event, Message, User
from event_portal.schemas import (
    ApiResponse,
    MessageCreate,
    MessageRead,
    Pagination,
    UnreadCount,
)
from event_portal.services import realtime
from event_portal.services.messaging import (
    count_unread,
    list_conversation,
    mark_conversation_read,
    serialize_messages,
)
from event_portal.services.websocket_manager import conversation_room, user_room

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "/conversation/{event_id}/{user_id}",
    response_model=ApiResponse[List[MessageRead]],
    summary="Get conversation for an event",
)
def get_conversation(
    event_id: UUID,
    user_id: UUID,
    session: SessionDep,
    background_tasks: BackgroundTasks,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[MessageRead]]:
    """
    Return one page of the conversation and mark the other side's messages read.

    The sender is told about the read receipt only when something actually
    changed, so reopening an already-read conversation stays silent.
    """
    messages, total = list_conversation(
        session,
        event_id=event_id,
        current_user_id=current_user.id,
        other_user_id=user_id,
        skip=(page - 1) * limit,
        limit=limit,
    )
    data = serialize_messages(session, messages)

    changed = mark_conversation_read(
        session, event_id=event_id, reader_id=current_user.id, sender_id=user_id
    )
    if changed > 0:
        background_tasks.add_task(
            realtime.emit,
            user_room(user_id),
            realtime.MESSAGES_READ,
            {
                "event_id": str(event_id),
                "reader_id": str(current_user.id),
                "conversation_id": f"{event_id}-{current_user.id}",
            },
        )

    return ApiResponse(
        data=data,
        pagination=Pagination.create(total=total, page=page, limit=limit),
    )


@router.post(
    "/send",
    response_model=ApiResponse[MessageRead],
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
def send_message(
    payload: MessageCreate,
    session: SessionDep,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[MessageRead]:
    if not payload.event_id or not payload.receiver_id or payload.content is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Event ID, receiver ID, and content are required",
        )

    content = payload.content.strip()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Message content cannot be empty",
        )
    if len(content) > MAX_MESSAGE_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Message cannot exceed {MAX_MESSAGE_LENGTH} characters",
        )
    if payload.receiver_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot send a message to yourself",
        )
    if not session.get(Event, payload.event_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )

    message = Message(
        event_id=payload.event_id,
        sender_id=current_user.id,
        receiver_id=payload.receiver_id,
        content=content,
        message_type=payload.message_type or "text",
    )
    session.add(message)
    session.commit()
    session.refresh(message)

    data = serialize_messages(session, [message])[0]
    frame = {
        "message": data.model_dump(mode="json"),
        "conversation_id": f"{message.event_id}-{current_user.id}",
    }
    background_tasks.add_task(
        realtime.emit, user_room(message.receiver_id), realtime.NEW_MESSAGE, frame
    )
    background_tasks.add_task(
        realtime.emit,
        conversation_room(message.event_id, current_user.id, message.receiver_id),
        realtime.NEW_MESSAGE,
        frame,
    )
    logger.info(f"Message {message.id} sent by {current_user.email} on event {message.event_id}")

    return ApiResponse(message="Message sent successfully", data=data)


@router.get(
    "/unread-count/{event_id}/{user_id}",
    response_model=ApiResponse[UnreadCount],
    summary="Unread messages from a user about an event",
)
def get_conversation_unread_count(
    event_id: UUID,
    user_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UnreadCount]:
    unread = count_unread(
        session, receiver_id=current_user.id, event_id=event_id, sender_id=user_id
    )
    return ApiResponse(data=UnreadCount(unread_count=unread))


@router.get(
    "/unread-count",
    response_model=ApiResponse[UnreadCount],
    summary="Total unread messages",
)
def get_total_unread_count(
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UnreadCount]:
    return ApiResponse(data=UnreadCount(unread_count=count_unread(session, receiver_id=current_user.id)))


def _get_own_message(
    session: Session,
    message_id: UUID,
    *,
    receiver_id: Optional[UUID] = None,
    sender_id: Optional[UUID] = None,
) -> Message:
    statement = select(Message).where(Message.id == message_id, Message.is_deleted == False)  # noqa: E712
    if receiver_id:
        statement = statement.where(Message.receiver_id == receiver_id)
    if sender_id:
        statement = statement.where(Message.sender_id == sender_id)
    message = session.exec(statement).first()
    if not message:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Message not found",
        )
    return message


@router.put(
    "/{message_id}/read",
    response_model=ApiResponse[MessageRead],
    summary="Mark a message as read",
)
def mark_message_read(
    message_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[MessageRead]:
    message = _get_own_message(session, message_id, receiver_id=current_user.id)
    message.is_read = True
    session.add(message)
    session.commit()
    session.refresh(message)
    return ApiResponse(
        message="Message marked as read",
        data=serialize_messages(session, [message])[0],
    )


@router.delete(
    "/{message_id}",
    response_model=ApiResponse[None],
    summary="Delete a message",
)
def delete_message(
    message_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    """Soft delete, only the sender may remove a message."""
    message = _get_own_message(session, message_id, sender_id=current_user.id)
    message.is_deleted = True
    message.deleted_at = datetime.now(timezone.utc)
    session.add(message)
    session.commit()
    logger.info(f"Message {message_id} deleted by {current_user.email}")
    return ApiResponse(message="Message deleted successfully")
