from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlmodel import select

from event_portal.core.security import (
    create_access_token,
    get_password_hash,
    verify_password,
)
from event_portal.db import SessionDep
from event_portal.models import User, normalize_department_name
from event_portal.schemas import ApiResponse, Token, UserCreate, UserLogin, UserRead

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=ApiResponse[UserRead],
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
def register_user(payload: UserCreate, session: SessionDep) -> ApiResponse[UserRead]:
    email = payload.email.lower()
    existing = session.exec(select(User).where(User.email == email)).one_or_none()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email is already registered",
        )

    user = User(
        email=email,
        name=payload.name,
        department=normalize_department_name(payload.department) if payload.department else None,
        hashed_password=get_password_hash(payload.password),
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"Registered user {user.email}")

    return ApiResponse(message="User registered successfully", data=UserRead.model_validate(user))


@router.post(
    "/login",
    response_model=ApiResponse[Token],
    summary="Login and obtain an access token",
)
def login(payload: UserLogin, session: SessionDep) -> ApiResponse[Token]:
    email = payload.email.lower()
    user = session.exec(select(User).where(User.email == email)).one_or_none()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect email or password",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive",
        )

    return ApiResponse(
        message="Login successful",
        data=Token(access_token=create_access_token(user.id), user=UserRead.model_validate(user)),
    )
