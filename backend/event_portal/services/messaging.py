from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Tuple
from uuid import UUID

from sqlalchemy import and_, or_, update
from sqlmodel import Session, func, select

from event_portal.models import Message, User
from event_portal.schemas import MessageRead, UserSummary

logger = logging.getLogger(__name__)


def conversation_filter(event_id: UUID, user_a: UUID, user_b: UUID):
    """Visible messages exchanged by two users about one event, either direction."""
    return and_(
        Message.event_id == event_id,
        Message.is_deleted == False,  # noqa: E712
        or_(
            and_(Message.sender_id == user_a, Message.receiver_id == user_b),
            and_(Message.sender_id == user_b, Message.receiver_id == user_a),
        ),
    )


def list_conversation(
    session: Session,
    *,
    event_id: UUID,
    current_user_id: UUID,
    other_user_id: UUID,
    skip: int,
    limit: int,
) -> Tuple[List[Message], int]:
    """Newest page of the conversation, returned oldest first, plus the total."""
    condition = conversation_filter(event_id, current_user_id, other_user_id)
    messages = session.exec(
        select(Message)
        .where(condition)
        .order_by(Message.timestamp.desc(), Message.id.desc())
        .offset(skip)
        .limit(limit)
    ).all()
    total = session.exec(select(func.count()).select_from(Message).where(condition)).one()
    return list(reversed(messages)), total


def mark_conversation_read(
    session: Session,
    *,
    event_id: UUID,
    reader_id: UUID,
    sender_id: UUID,
) -> int:
    """
    Flag every unread message ``sender_id`` sent to ``reader_id`` in the event.

    Runs as a single UPDATE and returns the number of rows that changed, so a
    second call on an already-read conversation returns 0.
    """
    result = session.exec(
        update(Message)
        .where(
            Message.event_id == event_id,
            Message.sender_id == sender_id,
            Message.receiver_id == reader_id,
            Message.is_read == False,  # noqa: E712
            Message.is_deleted == False,  # noqa: E712
        )
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    session.commit()
    changed = result.rowcount or 0
    if changed:
        logger.info(f"Marked {changed} message(s) from {sender_id} as read by {reader_id}")
    return changed


def count_unread(
    session: Session,
    *,
    receiver_id: UUID,
    event_id: UUID | None = None,
    sender_id: UUID | None = None,
) -> int:
    statement = (
        select(func.count())
        .select_from(Message)
        .where(
            Message.receiver_id == receiver_id,
            Message.is_read == False,  # noqa: E712
            Message.is_deleted == False,  # noqa: E712
        )
    )
    if event_id:
        statement = statement.where(Message.event_id == event_id)
    if sender_id:
        statement = statement.where(Message.sender_id == sender_id)
    return session.exec(statement).one()


def serialize_messages(session: Session, messages: Iterable[Message]) -> List[MessageRead]:
    """Attach sender/receiver summaries, loading each user once."""
    messages = list(messages)
    user_ids = {m.sender_id for m in messages} | {m.receiver_id for m in messages}
    users: Dict[UUID, User] = {}
    if user_ids:
        users = {u.id: u for u in session.exec(select(User).where(User.id.in_(user_ids))).all()}

    result = []
    for message in messages:
        sender = users.get(message.sender_id)
        receiver = users.get(message.receiver_id)
        result.append(
            MessageRead.model_validate(message).model_copy(
                update={
                    "sender": UserSummary.model_validate(sender) if sender else None,
                    "receiver": UserSummary.model_validate(receiver) if receiver else None,
                }
            )
        )
    return result
