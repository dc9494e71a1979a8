from __future__ import annotations

import datetime as dt
import logging
from typing import Dict, List, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from event_portal.core.config import settings
from event_portal.models import ResourceAvailability
from event_portal.schemas.resource_availability import (
    AvailabilityFields,
    AvailabilitySummary,
)

logger = logging.getLogger(__name__)

DUPLICATE_AVAILABILITY_MESSAGE = (
    "Availability already exists for this requirement on this date"
)


class DuplicateAvailabilityError(Exception):
    """Raised when a racing insert hits the natural-key constraint."""

    def __init__(self, message: str = DUPLICATE_AVAILABILITY_MESSAGE):
        super().__init__(message)


def find_availability(
    session: Session,
    department_id: UUID,
    requirement_id: UUID,
    date: dt.date,
) -> Optional[ResourceAvailability]:
    return session.exec(
        select(ResourceAvailability).where(
            ResourceAvailability.department_id == department_id,
            ResourceAvailability.requirement_id == requirement_id,
            ResourceAvailability.date == date,
        )
    ).first()


def upsert_availability(
    session: Session,
    *,
    department_id: UUID,
    department_name: Optional[str],
    requirement_id: UUID,
    requirement_text: Optional[str],
    date: dt.date,
    fields: AvailabilityFields,
    set_by: UUID,
) -> ResourceAvailability:
    """
    Insert or update the row for (department, requirement, date).

    On update only the fields that were provided change; ``set_by`` always
    moves to the caller. New rows default to available, quantity 1 and
    capacity 1.
    """
    availability = find_availability(session, department_id, requirement_id, date)

    if availability:
        for field, value in fields.model_dump(
            include=set(AvailabilityFields.model_fields), exclude_none=True
        ).items():
            setattr(availability, field, value)
        availability.set_by = set_by
        availability.touch()
    else:
        availability = ResourceAvailability(
            department_id=department_id,
            department_name=department_name,
            requirement_id=requirement_id,
            requirement_text=requirement_text or "",
            date=date,
            is_available=True if fields.is_available is None else fields.is_available,
            notes=fields.notes or "",
            quantity=fields.quantity or 1,
            max_capacity=fields.max_capacity or 1,
            set_by=set_by,
        )

    session.add(availability)
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        raise DuplicateAvailabilityError() from exc
    session.refresh(availability)
    return availability


def summarize_availability(
    rows: List[ResourceAvailability],
) -> List[AvailabilitySummary]:
    """Per-requirement day counts and availability percentage."""
    summary_map: Dict[UUID, AvailabilitySummary] = {}

    for row in rows:
        entry = summary_map.get(row.requirement_id)
        if entry is None:
            entry = AvailabilitySummary(
                requirement_id=row.requirement_id,
                requirement_text=row.requirement_text,
                total_days=0,
                available_days=0,
                unavailable_days=0,
                availability_rate=0.0,
            )
            summary_map[row.requirement_id] = entry
        entry.total_days += 1
        if row.is_available:
            entry.available_days += 1
        else:
            entry.unavailable_days += 1

    for entry in summary_map.values():
        entry.availability_rate = entry.available_days / entry.total_days * 100

    return sorted(summary_map.values(), key=lambda item: item.requirement_text)


def local_today() -> dt.date:
    """Current date in the timezone the daily cleanup runs in."""
    return dt.datetime.now(ZoneInfo(settings.CLEANUP_TIMEZONE)).date()


def cleanup_past_resource_availabilities(
    session: Session, today: Optional[dt.date] = None
) -> int:
    """Delete availability rows dated strictly before ``today``."""
    cutoff = today or local_today()
    logger.info(f"Starting cleanup of resource availabilities before {cutoff}")

    result = session.exec(
        delete(ResourceAvailability).where(ResourceAvailability.date < cutoff)
    )
    session.commit()

    deleted = result.rowcount or 0
    logger.info(f"Cleanup completed: deleted {deleted} past resource availability records")
    return deleted
