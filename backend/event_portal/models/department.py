from __future__ import annotations

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel


def normalize_department_name(name: str) -> str:
    """Department names are compared and stored trimmed and upper-cased."""
    return name.strip().upper()


class Department(SQLModel, table=True):
    """Organizational unit with a catalog of requirements it can fulfill."""

    __tablename__ = "departments"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    name: str = Field(max_length=255, unique=True, index=True)
    is_visible: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)

    def touch(self) -> None:
        """Update timestamp."""
        self.updated_at = datetime.now(timezone.utc)


class DepartmentRequirement(SQLModel, table=True):
    """Resource or service a department can provide, kept in insertion order."""

    __tablename__ = "department_requirements"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    department_id: UUID = Field(
        foreign_key="departments.id", nullable=False, index=True
    )
    text: str = Field(max_length=1000)
    position: int = Field(default=0, nullable=False)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), nullable=False)
