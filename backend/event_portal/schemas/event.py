from __future__ import annotations

from datetime import date, datetime, time
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

EventStatus = Literal["draft", "submitted", "approved", "rejected", "completed"]


class AttachmentInfo(BaseModel):
    filename: str
    original_name: Optional[str] = None
    mimetype: Optional[str] = None
    size: Optional[int] = Field(default=None, ge=0)


class RequirementSelection(BaseModel):
    requirement_id: UUID
    name: str
    selected: bool = True
    notes: str = ""


class EventBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    requestor: str = Field(min_length=1, max_length=255)
    location: str = Field(min_length=1, max_length=255)
    start_date: date
    start_time: time
    end_date: date
    end_time: time
    participants: int = Field(default=0, ge=0)
    vip: int = Field(default=0, ge=0)
    vvip: int = Field(default=0, ge=0)
    without_gov: bool = False
    multiple_locations: bool = False
    description: Optional[str] = Field(default=None, max_length=5000)
    contact_number: Optional[str] = Field(default=None, max_length=50)
    contact_email: Optional[str] = Field(default=None, max_length=255)
    attachments: List[AttachmentInfo] = Field(default_factory=list)
    tagged_departments: List[str] = Field(default_factory=list)
    department_requirements: Dict[str, List[RequirementSelection]] = Field(
        default_factory=dict
    )

    @model_validator(mode="after")
    def check_ends_after_start(self) -> EventBase:
        if datetime.combine(self.end_date, self.end_time) < datetime.combine(
            self.start_date, self.start_time
        ):
            raise ValueError("end must be greater than or equal to start")
        return self


class EventCreate(EventBase):
    status: Literal["draft", "submitted"] = "submitted"


class EventUpdate(BaseModel):
    """Owner-editable fields: location and schedule."""

    location: Optional[str] = Field(default=None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    start_time: Optional[time] = None
    end_date: Optional[date] = None
    end_time: Optional[time] = None


class EventStatusUpdate(BaseModel):
    status: EventStatus


class EventRead(EventBase):
    id: UUID
    owner_id: UUID
    status: str
    submitted_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)