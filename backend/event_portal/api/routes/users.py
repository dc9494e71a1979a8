from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from sqlmodel import select

from event_portal.api.deps import get_current_user
from event_portal.db import SessionDep
from event_portal.models import User, normalize_department_name
from event_portal.schemas import ApiResponse, UserRead

router = APIRouter()


@router.get("/me", response_model=ApiResponse[UserRead], summary="Get current user profile")
def get_current_user_profile(
    current_user: User = Depends(get_current_user),
) -> ApiResponse[UserRead]:
    return ApiResponse(data=UserRead.model_validate(current_user))


@router.get(
    "/department/{department_name}",
    response_model=ApiResponse[List[UserRead]],
    summary="List active users of a department",
)
def list_department_users(
    department_name: str,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> ApiResponse[List[UserRead]]:
    """Used to find who to talk to about an event in a tagged department."""
    statement = (
        select(User)
        .where(
            User.department == normalize_department_name(department_name),
            User.is_active == True,  # noqa: E712
        )
        .order_by(User.email)
    )
    users = session.exec(statement).all()
    return ApiResponse(data=[UserRead.model_validate(u) for u in users])
