from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

MAX_MESSAGE_LENGTH = 2000


class Message(SQLModel, table=True):
    """Message between two participants of an event."""

    __tablename__ = "messages"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    event_id: UUID = Field(foreign_key="events.id", nullable=False, index=True)
    sender_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    receiver_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    content: str = Field(max_length=MAX_MESSAGE_LENGTH)
    message_type: str = Field(default="text", max_length=20)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False, index=True)
    is_read: bool = Field(default=False, index=True)
    # Soft delete
    is_deleted: bool = Field(default=False, index=True)
    deleted_at: Optional[datetime] = Field(default=None, nullable=True)
