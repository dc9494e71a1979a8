from __future__ import annotations

import logging
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, func, select

from event_portal.api.deps import require_admin
from event_portal.db import SessionDep
from event_portal.models import (
    Department,
    DepartmentRequirement,
    ResourceAvailability,
    User,
    normalize_department_name,
)
from event_portal.schemas import (
    ApiResponse,
    DepartmentCreate,
    DepartmentRead,
    DepartmentSyncRead,
    DepartmentSyncRequest,
    DepartmentVisibilityUpdate,
    Pagination,
    RequirementCreate,
    RequirementRead,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _load_requirements(
    session: Session, department_ids: List[UUID]
) -> Dict[UUID, List[DepartmentRequirement]]:
    grouped: Dict[UUID, List[DepartmentRequirement]] = {dept_id: [] for dept_id in department_ids}
    if not department_ids:
        return grouped
    statement = (
        select(DepartmentRequirement)
        .where(DepartmentRequirement.department_id.in_(department_ids))
        .order_by(DepartmentRequirement.position, DepartmentRequirement.created_at)
    )
    for requirement in session.exec(statement).all():
        grouped[requirement.department_id].append(requirement)
    return grouped


def serialize_departments(session: Session, departments: List[Department]) -> List[DepartmentRead]:
    requirements = _load_requirements(session, [d.id for d in departments])
    return [
        DepartmentRead.model_validate(department).model_copy(
            update={
                "requirements": [
                    RequirementRead.model_validate(r) for r in requirements[department.id]
                ]
            }
        )
        for department in departments
    ]


def get_department_or_404(session: Session, department_id: UUID) -> Department:
    department = session.get(Department, department_id)
    if not department:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Department not found",
        )
    return department


def _append_requirement(session: Session, department: Department, text: str) -> DepartmentRequirement:
    last_position = session.exec(
        select(func.max(DepartmentRequirement.position)).where(
            DepartmentRequirement.department_id == department.id
        )
    ).one()
    requirement = DepartmentRequirement(
        department_id=department.id,
        text=text,
        position=(last_position if last_position is not None else -1) + 1,
    )
    session.add(requirement)
    session.flush()
    return requirement


@router.get(
    "/",
    response_model=ApiResponse[List[DepartmentRead]],
    summary="List departments",
)
def list_departments(
    session: SessionDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    search: str = Query(default=""),
    visible: Optional[bool] = Query(default=None),
    current_user: User = Depends(require_admin),
) -> ApiResponse[List[DepartmentRead]]:
    """Paginated department directory sorted by name."""
    conditions = []
    if search:
        conditions.append(Department.name.ilike(f"%{search.strip()}%"))
    if visible is not None:
        conditions.append(Department.is_visible == visible)

    statement = select(Department).where(*conditions).order_by(Department.name)
    departments = session.exec(statement.offset((page - 1) * limit).limit(limit)).all()
    total = session.exec(
        select(func.count()).select_from(Department).where(*conditions)
    ).one()

    return ApiResponse(
        data=serialize_departments(session, list(departments)),
        pagination=Pagination.create(total=total, page=page, limit=limit),
    )


@router.get(
    "/visible",
    response_model=ApiResponse[List[DepartmentRead]],
    summary="List visible departments",
)
def list_visible_departments(session: SessionDep) -> ApiResponse[List[DepartmentRead]]:
    """Public catalog used by the event request form."""
    departments = session.exec(
        select(Department).where(Department.is_visible == True).order_by(Department.name)  # noqa: E712
    ).all()
    return ApiResponse(data=serialize_departments(session, list(departments)))


@router.post(
    "/",
    response_model=ApiResponse[DepartmentRead],
    status_code=status.HTTP_201_CREATED,
    summary="Create department",
)
def create_department(
    payload: DepartmentCreate,
    session: SessionDep,
    current_user: User = Depends(require_admin),
) -> ApiResponse[DepartmentRead]:
    if not payload.name or not payload.name.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Department name is required",
        )

    name = normalize_department_name(payload.name)
    existing = session.exec(select(Department).where(Department.name == name)).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Department already exists",
        )

    department = Department(name=name, is_visible=payload.is_visible)
    session.add(department)
    try:
        session.flush()
        for text in payload.requirements:
            if text.strip():
                _append_requirement(session, department, text.strip())
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Department already exists",
        ) from None
    session.refresh(department)
    logger.info(f"Created department {department.name}")

    return ApiResponse(
        message="Department created successfully",
        data=serialize_departments(session, [department])[0],
    )


@router.get(
    "/{department_id}/requirements",
    response_model=ApiResponse[List[RequirementRead]],
    summary="Get department requirements",
)
def get_department_requirements(
    department_id: UUID,
    session: SessionDep,
    current_user: User = Depends(require_admin),
) -> ApiResponse[List[RequirementRead]]:
    department = get_department_or_404(session, department_id)
    requirements = _load_requirements(session, [department.id])[department.id]
    return ApiResponse(data=[RequirementRead.model_validate(r) for r in requirements])


@router.post(
    "/{department_id}/requirements",
    response_model=ApiResponse[RequirementRead],
    status_code=status.HTTP_201_CREATED,
    summary="Add requirement",
)
def add_department_requirement(
    department_id: UUID,
    payload: RequirementCreate,
    session: SessionDep,
    current_user: User = Depends(require_admin),
) -> ApiResponse[RequirementRead]:
    if not payload.requirement or not payload.requirement.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Requirement text is required",
        )

    department = get_department_or_404(session, department_id)
    requirement = _append_requirement(session, department, payload.requirement.strip())
    department.touch()
    session.add(department)
    session.commit()
    session.refresh(requirement)

    return ApiResponse(
        message="Requirement added successfully",
        data=RequirementRead.model_validate(requirement),
    )


@router.delete(
    "/{department_id}/requirements/{requirement_id}",
    response_model=ApiResponse[None],
    summary="Delete requirement",
)
def delete_department_requirement(
    department_id: UUID,
    requirement_id: UUID,
    session: SessionDep,
    current_user: User = Depends(require_admin),
) -> ApiResponse[None]:
    department = get_department_or_404(session, department_id)
    requirement = session.get(DepartmentRequirement, requirement_id)
    if not requirement or requirement.department_id != department.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Requirement not found",
        )

    session.delete(requirement)
    department.touch()
    session.add(department)
    session.commit()
    return ApiResponse(message="Requirement deleted successfully")


@router.put(
    "/{department_id}/visibility",
    response_model=ApiResponse[DepartmentRead],
    summary="Toggle department visibility",
)
def update_department_visibility(
    department_id: UUID,
    payload: DepartmentVisibilityUpdate,
    session: SessionDep,
    current_user: User = Depends(require_admin),
) -> ApiResponse[DepartmentRead]:
    if not isinstance(payload.is_visible, bool):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="is_visible must be a boolean value",
        )

    department = get_department_or_404(session, department_id)
    department.is_visible = payload.is_visible
    department.touch()
    session.add(department)
    session.commit()
    session.refresh(department)

    return ApiResponse(
        message="Department visibility updated successfully",
        data=serialize_departments(session, [department])[0],
    )


@router.delete(
    "/{department_id}",
    response_model=ApiResponse[None],
    summary="Delete department",
)
def delete_department(
    department_id: UUID,
    session: SessionDep,
    current_user: User = Depends(require_admin),
) -> ApiResponse[None]:
    """Hard delete; hiding through the visibility flag is the normal path."""
    department = get_department_or_404(session, department_id)
    session.exec(
        delete(ResourceAvailability).where(ResourceAvailability.department_id == department.id)
    )
    session.exec(
        delete(DepartmentRequirement).where(DepartmentRequirement.department_id == department.id)
    )
    session.delete(department)
    session.commit()
    logger.info(f"Deleted department {department.name}")
    return ApiResponse(message="Department deleted successfully")


@router.post(
    "/sync",
    response_model=ApiResponse[List[DepartmentSyncRead]],
    summary="Ensure a list of departments exists",
)
def sync_departments(
    payload: DepartmentSyncRequest,
    session: SessionDep,
    current_user: User = Depends(require_admin),
) -> ApiResponse[List[DepartmentSyncRead]]:
    if payload.departments is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Departments array is required",
        )

    names = [normalize_department_name(item.name) for item in payload.departments]
    if not all(names):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Department name is required",
        )

    synced: List[Department] = []
    for item, name in zip(payload.departments, names):
        department = session.exec(select(Department).where(Department.name == name)).first()
        if not department:
            department = Department(name=name, is_visible=item.is_visible)
            session.add(department)
            session.flush()
        if all(d.id != department.id for d in synced):
            synced.append(department)
    session.commit()

    user_counts = dict(
        session.exec(
            select(User.department, func.count())
            .where(User.department.in_([d.name for d in synced]))
            .group_by(User.department)
        ).all()
    )
    result = [
        DepartmentSyncRead(
            **department_read.model_dump(),
            user_count=user_counts.get(department_read.name, 0),
        )
        for department_read in serialize_departments(session, synced)
    ]
    return ApiResponse(message="Departments synced successfully", data=result)
