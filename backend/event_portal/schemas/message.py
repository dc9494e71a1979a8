from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from event_portal.schemas.user import UserSummary


class MessageCreate(BaseModel):
    # Presence and length are validated by the handler
    event_id: Optional[UUID] = None
    receiver_id: Optional[UUID] = None
    content: Optional[str] = None
    message_type: str = "text"


class MessageRead(BaseModel):
    id: UUID
    event_id: UUID
    sender_id: UUID
    receiver_id: UUID
    content: str
    message_type: str
    timestamp: datetime
    is_read: bool
    sender: Optional[UserSummary] = None
    receiver: Optional[UserSummary] = None

    model_config = ConfigDict(from_attributes=True)


class UnreadCount(BaseModel):
    unread_count: int
