from __future__ import annotations

import datetime as dt
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from event_portal.schemas.user import UserSummary


class AvailabilityFields(BaseModel):
    """Mutable fields; ``None`` means "keep the stored value" on update."""

    is_available: Optional[bool] = None
    notes: Optional[str] = Field(default=None, max_length=2000)
    quantity: Optional[int] = Field(default=None, ge=0)
    max_capacity: Optional[int] = Field(default=None, ge=0)


class AvailabilitySet(AvailabilityFields):
    # Key fields are checked by the handler to return a single 400 message
    department_id: Optional[UUID] = None
    department_name: Optional[str] = None
    requirement_id: Optional[UUID] = None
    requirement_text: Optional[str] = None
    date: Optional[dt.date] = None


class BulkAvailabilityItem(AvailabilityFields):
    requirement_id: Optional[UUID] = None
    requirement_text: Optional[str] = None


class BulkAvailabilitySet(BaseModel):
    department_id: Optional[UUID] = None
    department_name: Optional[str] = None
    date: Optional[dt.date] = None
    requirements: Optional[List[BulkAvailabilityItem]] = None


class AvailabilityRead(BaseModel):
    id: UUID
    department_id: UUID
    department_name: Optional[str] = None
    requirement_id: UUID
    requirement_text: str
    date: dt.date
    is_available: bool
    notes: str
    quantity: int
    max_capacity: int
    set_by: Optional[UserSummary] = None
    created_at: dt.datetime
    updated_at: dt.datetime

    model_config = ConfigDict(from_attributes=True)


class BulkItemError(BaseModel):
    requirement_id: Optional[UUID] = None
    error: str


class BulkAvailabilityResult(BaseModel):
    successful: int
    failed: int
    results: List[AvailabilityRead] = []
    errors: List[BulkItemError] = []


class AvailabilitySummary(BaseModel):
    requirement_id: UUID
    requirement_text: str
    total_days: int
    available_days: int
    unavailable_days: int
    availability_rate: float


class CleanupResult(BaseModel):
    deleted_count: int
    cutoff_date: dt.date
