from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RequirementRead(BaseModel):
    id: UUID
    text: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class RequirementCreate(BaseModel):
    requirement: Optional[str] = None


class DepartmentCreate(BaseModel):
    # Presence is checked by the handler so a missing name gets the usual message
    name: Optional[str] = None
    requirements: List[str] = Field(default_factory=list)
    is_visible: bool = True


class DepartmentVisibilityUpdate(BaseModel):
    # Left untyped so non-boolean values reach the handler's check
    is_visible: Any = None


class DepartmentRead(BaseModel):
    id: UUID
    name: str
    is_visible: bool
    requirements: List[RequirementRead] = []
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DepartmentRequirementsRead(BaseModel):
    department_id: UUID
    department_name: str
    requirements: List[RequirementRead] = []


class DepartmentSyncItem(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    is_visible: bool = True


class DepartmentSyncRequest(BaseModel):
    departments: Optional[List[DepartmentSyncItem]] = None


class DepartmentSyncRead(DepartmentRead):
    user_count: int = 0
