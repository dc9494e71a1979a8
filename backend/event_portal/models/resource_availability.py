from __future__ import annotations

import datetime as dt
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class ResourceAvailability(SQLModel, table=True):
    """Whether a department can supply one of its requirements on a given date."""

    __tablename__ = "resource_availabilities"
    __table_args__ = (
        UniqueConstraint(
            "department_id",
            "requirement_id",
            "date",
            name="uq_resource_availability_key",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    department_id: UUID = Field(foreign_key="departments.id", nullable=False, index=True)
    department_name: Optional[str] = Field(default=None, max_length=255)
    # No foreign key: rows outlive a requirement removed from the catalog
    requirement_id: UUID = Field(nullable=False, index=True)
    requirement_text: str = Field(max_length=1000)
    date: dt.date = Field(nullable=False, index=True)
    is_available: bool = Field(default=True)
    notes: str = Field(default="", max_length=2000)
    quantity: int = Field(default=1)
    max_capacity: int = Field(default=1)
    set_by: Optional[UUID] = Field(default=None, foreign_key="users.id", nullable=True)
    created_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc), nullable=False)
    updated_at: dt.datetime = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc), nullable=False)

    def touch(self) -> None:
        self.updated_at = dt.datetime.now(dt.timezone.utc)
