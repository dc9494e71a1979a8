from __future__ import annotations

import calendar
import datetime as dt
import logging
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from event_portal.api.deps import get_current_user
from event_portal.api.routes.departments import get_department_or_404, serialize_departments
from event_portal.db import SessionDep
from event_portal.models import ResourceAvailability, User
from event_portal.schemas import (
    ApiResponse,
    AvailabilityRead,
    AvailabilitySet,
    AvailabilitySummary,
    BulkAvailabilityResult,
    BulkAvailabilitySet,
    BulkItemError,
    CleanupResult,
    DepartmentRequirementsRead,
    UserSummary,
)
from event_portal.services.availability import (
    DuplicateAvailabilityError,
    cleanup_past_resource_availabilities,
    find_availability,
    local_today,
    summarize_availability,
    upsert_availability,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def serialize_availability(
    session: Session, rows: List[ResourceAvailability]
) -> List[AvailabilityRead]:
    """Expand ``set_by`` into a user summary, loading each user once."""
    user_ids = {row.set_by for row in rows if row.set_by}
    users: Dict[UUID, User] = {}
    if user_ids:
        users = {u.id: u for u in session.exec(select(User).where(User.id.in_(user_ids))).all()}

    result = []
    for row in rows:
        setter = users.get(row.set_by) if row.set_by else None
        # getattr reloads attributes expired by an earlier commit
        data = {field: getattr(row, field) for field in ResourceAvailability.model_fields}
        data["set_by"] = UserSummary.model_validate(setter) if setter else None
        result.append(AvailabilityRead(**data))
    return result


@router.get(
    "/department/{department_id}/requirements",
    response_model=ApiResponse[DepartmentRequirementsRead],
    summary="Get department requirements for the availability calendar",
)
def get_department_requirements(
    department_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[DepartmentRequirementsRead]:
    department = serialize_departments(session, [get_department_or_404(session, department_id)])[0]
    return ApiResponse(
        data=DepartmentRequirementsRead(
            department_id=department.id,
            department_name=department.name,
            requirements=department.requirements,
        )
    )


@router.get(
    "/department/{department_id}/availability",
    response_model=ApiResponse[List[AvailabilityRead]],
    summary="Get department availability",
)
def get_department_availability(
    department_id: UUID,
    session: SessionDep,
    start_date: Optional[dt.date] = Query(default=None),
    end_date: Optional[dt.date] = Query(default=None),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[AvailabilityRead]]:
    """Both dates give an inclusive range, a lone start date means that day only."""
    statement = select(ResourceAvailability).where(
        ResourceAvailability.department_id == department_id
    )
    if start_date and end_date:
        statement = statement.where(
            ResourceAvailability.date >= start_date,
            ResourceAvailability.date <= end_date,
        )
    elif start_date:
        statement = statement.where(ResourceAvailability.date == start_date)

    rows = session.exec(
        statement.order_by(ResourceAvailability.date, ResourceAvailability.requirement_text)
    ).all()
    return ApiResponse(data=serialize_availability(session, list(rows)))


@router.post(
    "/availability",
    response_model=ApiResponse[AvailabilityRead],
    summary="Set availability for a requirement on a date",
)
def set_availability(
    payload: AvailabilitySet,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[AvailabilityRead]:
    if (
        not payload.department_id
        or not payload.requirement_id
        or not payload.requirement_text
        or not payload.date
    ):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Department ID, requirement ID, requirement text, and date are required",
        )

    get_department_or_404(session, payload.department_id)

    try:
        availability = upsert_availability(
            session,
            department_id=payload.department_id,
            department_name=payload.department_name,
            requirement_id=payload.requirement_id,
            requirement_text=payload.requirement_text,
            date=payload.date,
            fields=payload,
            set_by=current_user.id,
        )
    except DuplicateAvailabilityError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from None

    return ApiResponse(
        message="Availability updated successfully",
        data=serialize_availability(session, [availability])[0],
    )


@router.post(
    "/availability/bulk",
    response_model=ApiResponse[BulkAvailabilityResult],
    summary="Set availability for several requirements on a date",
)
def bulk_set_availability(
    payload: BulkAvailabilitySet,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[BulkAvailabilityResult]:
    """Items are applied one by one; failures are reported, not raised."""
    if not payload.department_id or not payload.date or payload.requirements is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Department ID, date, and requirements array are required",
        )

    get_department_or_404(session, payload.department_id)

    results: List[ResourceAvailability] = []
    errors: List[BulkItemError] = []

    for item in payload.requirements:
        if not item.requirement_id:
            errors.append(BulkItemError(requirement_id=None, error="Requirement ID is required"))
            continue
        if not item.requirement_text and not find_availability(
            session, payload.department_id, item.requirement_id, payload.date
        ):
            errors.append(
                BulkItemError(
                    requirement_id=item.requirement_id,
                    error="Requirement text is required",
                )
            )
            continue
        try:
            results.append(
                upsert_availability(
                    session,
                    department_id=payload.department_id,
                    department_name=payload.department_name,
                    requirement_id=item.requirement_id,
                    requirement_text=item.requirement_text,
                    date=payload.date,
                    fields=item,
                    set_by=current_user.id,
                )
            )
        except DuplicateAvailabilityError as exc:
            errors.append(BulkItemError(requirement_id=item.requirement_id, error=str(exc)))
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error(f"Failed to save availability for {item.requirement_id}: {exc}")
            errors.append(BulkItemError(requirement_id=item.requirement_id, error=str(exc)))

    logger.info(
        f"Bulk availability for department {payload.department_id} on {payload.date}: "
        f"{len(results)} saved, {len(errors)} failed"
    )
    return ApiResponse(
        message="Bulk availability update completed",
        data=BulkAvailabilityResult(
            successful=len(results),
            failed=len(errors),
            results=serialize_availability(session, results),
            errors=errors,
        ),
    )


@router.delete(
    "/availability/{department_id}/{requirement_id}/{date}",
    response_model=ApiResponse[None],
    summary="Delete availability for a requirement on a date",
)
def delete_availability(
    department_id: UUID,
    requirement_id: UUID,
    date: dt.date,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    availability = find_availability(session, department_id, requirement_id, date)
    if not availability:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Availability record not found",
        )
    session.delete(availability)
    session.commit()
    return ApiResponse(message="Availability deleted successfully")


@router.get(
    "/department/{department_id}/summary",
    response_model=ApiResponse[List[AvailabilitySummary]],
    summary="Availability summary per requirement",
)
def get_availability_summary(
    department_id: UUID,
    session: SessionDep,
    month: Optional[int] = Query(default=None, ge=1, le=12),
    year: Optional[int] = Query(default=None, ge=1970, le=9999),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[AvailabilitySummary]]:
    statement = select(ResourceAvailability).where(
        ResourceAvailability.department_id == department_id
    )
    if month and year:
        first_day = dt.date(year, month, 1)
        last_day = dt.date(year, month, calendar.monthrange(year, month)[1])
        statement = statement.where(
            ResourceAvailability.date >= first_day,
            ResourceAvailability.date <= last_day,
        )

    rows = session.exec(statement).all()
    return ApiResponse(data=summarize_availability(list(rows)))


@router.post(
    "/cleanup-past",
    response_model=ApiResponse[CleanupResult],
    summary="Delete availability rows dated before today",
)
def cleanup_past(
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[CleanupResult]:
    """Manual fallback for the daily scheduled cleanup."""
    today = local_today()
    deleted = cleanup_past_resource_availabilities(session, today)
    return ApiResponse(
        message=f"Deleted {deleted} past resource availability records",
        data=CleanupResult(deleted_count=deleted, cutoff_date=today),
    )
