from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


class User(SQLModel, table=True):
    """Portal user, either a department representative or an administrator."""

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    email: str = Field(index=True, unique=True, max_length=255)
    name: Optional[str] = Field(default=None, max_length=255)
    # Department name, stored upper-cased like Department.name
    department: Optional[str] = Field(default=None, max_length=255, index=True)
    hashed_password: str = Field(max_length=255)
    is_active: bool = Field(default=True)
    role: str = Field(default="user", max_length=50)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
