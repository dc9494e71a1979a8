"""Shared fixtures for the API test suites."""

import os
import unittest
from typing import Optional
from unittest.mock import AsyncMock, patch

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402

import event_portal.models  # noqa: E402,F401
from event_portal.core.security import create_access_token  # noqa: E402
from event_portal.db import get_session  # noqa: E402
from event_portal.main import app  # noqa: E402
from event_portal.models import Department, DepartmentRequirement, User  # noqa: E402


class ApiTestCase(unittest.TestCase):
    """In-memory database, overridden session dependency and a muted realtime emitter."""

    def setUp(self):
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        SQLModel.metadata.create_all(self.engine)
        self.session = Session(self.engine)

        def override_get_session():
            with Session(self.engine) as session:
                yield session

        app.dependency_overrides[get_session] = override_get_session
        self.client = TestClient(app)

        emit_patcher = patch("event_portal.services.realtime.emit", new_callable=AsyncMock)
        self.emit = emit_patcher.start()
        self.addCleanup(emit_patcher.stop)

    def tearDown(self):
        app.dependency_overrides.clear()
        self.session.close()
        SQLModel.metadata.drop_all(self.engine)
        self.engine.dispose()

    def create_user(
        self,
        email: str,
        department: Optional[str] = None,
        role: str = "user",
    ) -> User:
        user = User(
            email=email,
            name=email.split("@")[0],
            department=department,
            hashed_password="not-a-real-hash",
            role=role,
        )
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def create_department(self, name: str, requirements=(), is_visible: bool = True) -> Department:
        department = Department(name=name, is_visible=is_visible)
        self.session.add(department)
        self.session.flush()
        for position, text in enumerate(requirements):
            self.session.add(
                DepartmentRequirement(department_id=department.id, text=text, position=position)
            )
        self.session.commit()
        self.session.refresh(department)
        return department

    def auth_headers(self, user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
