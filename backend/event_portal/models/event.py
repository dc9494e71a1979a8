from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel


class Event(SQLModel, table=True):
    """Venue and time slot request created by a department representative."""

    __tablename__ = "events"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    owner_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    title: str = Field(max_length=255)
    requestor: str = Field(max_length=255)
    location: str = Field(max_length=255)
    start_date: date = Field(nullable=False, index=True)
    start_time: time = Field(nullable=False)
    end_date: date = Field(nullable=False, index=True)
    end_time: time = Field(nullable=False)
    participants: int = Field(default=0)
    vip: int = Field(default=0)
    vvip: int = Field(default=0)
    without_gov: bool = Field(default=False)
    multiple_locations: bool = Field(default=False)
    description: Optional[str] = Field(default=None, max_length=5000)
    contact_number: Optional[str] = Field(default=None, max_length=50)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    # [{filename, original_name, mimetype, size}]
    attachments: list = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    # Upper-cased department names
    tagged_departments: list = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )
    # {department name: [{requirement_id, name, selected, notes}]}
    department_requirements: dict = Field(
        default_factory=dict, sa_column=Column(JSON, nullable=False)
    )
    status: str = Field(default="submitted", max_length=20, index=True)
    submitted_at: Optional[datetime] = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)

    @property
    def starts_at(self) -> datetime:
        return datetime.combine(self.start_date, self.start_time)

    @property
    def ends_at(self) -> datetime:
        return datetime.combine(self.end_date, self.end_time)
