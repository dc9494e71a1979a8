from __future__ import annotations

import logging
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends
from sqlalchemy import Engine
from sqlmodel import Session, SQLModel, create_engine

from event_portal.core.config import settings

logger = logging.getLogger(__name__)


def _build_engine():
    connect_args = {}
    if settings.DATABASE_URL.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    return create_engine(settings.DATABASE_URL, connect_args=connect_args)


engine = _build_engine()


def init_db(bind: Engine | None = None) -> list[str]:
    """
    Create the portal schema on startup.

    Covers users, departments and their requirement lists, events, the
    resource availability ledger and event messages. Existing tables are
    left untouched. Returns the table names registered on the metadata.
    """
    import event_portal.models  # noqa: F401

    bind = bind or engine
    SQLModel.metadata.create_all(bind=bind)
    tables = sorted(SQLModel.metadata.tables)
    logger.info(f"Portal schema ready on {bind.url.render_as_string()}: {', '.join(tables)}")
    return tables


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


SessionDep = Annotated[Session, Depends(get_session)]
