from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set, Tuple
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete
from sqlmodel import Session, func, select

from event_portal.api.deps import get_current_user, require_admin
from event_portal.db import SessionDep
from event_portal.models import Department, Event, Message, User, normalize_department_name
from event_portal.schemas import (
    ApiResponse,
    EventCreate,
    EventRead,
    EventStatusUpdate,
    EventUpdate,
    Pagination,
)

logger = logging.getLogger(__name__)

router = APIRouter()

EDITABLE_STATUSES = ("draft", "submitted", "rejected")

# (from, to) -> who may perform it
STATUS_TRANSITIONS: Dict[Tuple[str, str], str] = {
    ("draft", "submitted"): "owner",
    ("rejected", "submitted"): "owner",
    ("submitted", "approved"): "admin",
    ("submitted", "rejected"): "admin",
    ("approved", "completed"): "admin",
}


def _normalize_tagging(
    session: Session, payload: EventCreate
) -> Tuple[List[str], Dict[str, list]]:
    """Upper-case tagged department names and check they exist."""
    tagged: List[str] = []
    for name in payload.tagged_departments:
        normalized = normalize_department_name(name)
        if normalized and normalized not in tagged:
            tagged.append(normalized)

    if tagged:
        known: Set[str] = set(
            session.exec(select(Department.name).where(Department.name.in_(tagged))).all()
        )
        for name in tagged:
            if name not in known:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail=f"Unknown department: {name}",
                )

    requirements: Dict[str, list] = {}
    for name, selections in payload.department_requirements.items():
        normalized = normalize_department_name(name)
        if normalized not in tagged:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Requirements given for untagged department: {normalized}",
            )
        requirements[normalized] = [s.model_dump(mode="json") for s in selections]

    return tagged, requirements


def get_event_or_404(session: Session, event_id: UUID) -> Event:
    event = session.get(Event, event_id)
    if not event:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Event not found",
        )
    return event


def can_view_event(event: Event, user: User) -> bool:
    if user.is_admin or event.owner_id == user.id:
        return True
    return (
        event.status != "draft"
        and user.department is not None
        and user.department in (event.tagged_departments or [])
    )


@router.post(
    "/",
    response_model=ApiResponse[EventRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create event request",
)
def create_event(
    payload: EventCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[EventRead]:
    tagged, requirements = _normalize_tagging(session, payload)

    event = Event(
        **payload.model_dump(
            exclude={"tagged_departments", "department_requirements", "status"}
        ),
        owner_id=current_user.id,
        tagged_departments=tagged,
        department_requirements=requirements,
        status=payload.status,
        submitted_at=datetime.now(timezone.utc) if payload.status == "submitted" else None,
    )
    session.add(event)
    session.commit()
    session.refresh(event)
    logger.info(f"Event {event.id} created by {current_user.email} with status {event.status}")

    return ApiResponse(message="Event created successfully", data=EventRead.model_validate(event))


@router.get(
    "/",
    response_model=ApiResponse[List[EventRead]],
    summary="List all events",
)
def list_events(
    session: SessionDep,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    current_user: User = Depends(require_admin),
) -> ApiResponse[List[EventRead]]:
    conditions = []
    if status_filter:
        conditions.append(Event.status == status_filter)

    events = session.exec(
        select(Event)
        .where(*conditions)
        .order_by(Event.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()
    total = session.exec(select(func.count()).select_from(Event).where(*conditions)).one()

    return ApiResponse(
        data=[EventRead.model_validate(e) for e in events],
        pagination=Pagination.create(total=total, page=page, limit=limit),
    )


@router.get(
    "/my",
    response_model=ApiResponse[List[EventRead]],
    summary="List my events",
)
def list_my_events(
    session: SessionDep,
    status_filter: Optional[str] = Query(default=None, alias="status"),
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[EventRead]]:
    statement = select(Event).where(Event.owner_id == current_user.id)
    if status_filter:
        statement = statement.where(Event.status == status_filter)
    events = session.exec(statement.order_by(Event.created_at.desc())).all()
    return ApiResponse(data=[EventRead.model_validate(e) for e in events])


@router.get(
    "/tagged",
    response_model=ApiResponse[List[EventRead]],
    summary="List events tagging my department",
)
def list_tagged_events(
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[EventRead]]:
    if not current_user.department:
        return ApiResponse(data=[])

    # Tagged names live in a JSON column, filtering happens here
    events = session.exec(
        select(Event).where(Event.status != "draft").order_by(Event.start_date, Event.start_time)
    ).all()
    tagged = [e for e in events if current_user.department in (e.tagged_departments or [])]
    return ApiResponse(data=[EventRead.model_validate(e) for e in tagged])


@router.get(
    "/{event_id}",
    response_model=ApiResponse[EventRead],
    summary="Get event",
)
def get_event(
    event_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[EventRead]:
    event = get_event_or_404(session, event_id)
    if not can_view_event(event, current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You do not have access to this event",
        )
    return ApiResponse(data=EventRead.model_validate(event))


@router.put(
    "/{event_id}",
    response_model=ApiResponse[EventRead],
    summary="Update event location and schedule",
)
def update_event(
    event_id: UUID,
    payload: EventUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[EventRead]:
    event = get_event_or_404(session, event_id)
    if event.owner_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only update your own events",
        )
    if event.status not in EDITABLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Cannot update an event with status {event.status}",
        )

    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(event, field, value)

    if event.ends_at < event.starts_at:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="End must be greater than or equal to start",
        )

    event.touch()
    session.add(event)
    session.commit()
    session.refresh(event)
    return ApiResponse(message="Event updated successfully", data=EventRead.model_validate(event))


@router.patch(
    "/{event_id}/status",
    response_model=ApiResponse[EventRead],
    summary="Change event status",
)
def update_event_status(
    event_id: UUID,
    payload: EventStatusUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[EventRead]:
    event = get_event_or_404(session, event_id)
    actor = STATUS_TRANSITIONS.get((event.status, payload.status))
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid status transition from {event.status} to {payload.status}",
        )
    if actor == "admin" and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    if actor == "owner" and event.owner_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the event owner can submit this event",
        )

    previous = event.status
    event.status = payload.status
    if payload.status == "submitted":
        event.submitted_at = datetime.now(timezone.utc)
    event.touch()
    session.add(event)
    session.commit()
    session.refresh(event)
    logger.info(f"Event {event.id} moved from {previous} to {event.status} by {current_user.email}")

    return ApiResponse(
        message=f"Event status updated to {event.status}",
        data=EventRead.model_validate(event),
    )


@router.delete(
    "/{event_id}",
    response_model=ApiResponse[None],
    summary="Delete event",
)
def delete_event(
    event_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[None]:
    event = get_event_or_404(session, event_id)
    if event.owner_id != current_user.id and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own events",
        )

    session.exec(delete(Message).where(Message.event_id == event.id))
    session.delete(event)
    session.commit()
    logger.info(f"Event {event_id} deleted by {current_user.email}")
    return ApiResponse(message="Event deleted successfully")
