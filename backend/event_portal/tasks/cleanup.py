"""Celery tasks for scheduled maintenance."""

from __future__ import annotations

import logging

from sqlmodel import Session

from event_portal.celery_app import celery_app
from event_portal.db import engine
from event_portal.services.availability import (
    cleanup_past_resource_availabilities,
    local_today,
)

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    name="event_portal.tasks.cleanup.cleanup_past_resource_availabilities_task",
    max_retries=3,
)
def cleanup_past_resource_availabilities_task(self) -> dict:
    """
    Delete resource availability rows dated before today.

    Runs daily from Celery beat; database errors are retried.
    """
    today = local_today()
    try:
        with Session(engine) as session:
            deleted = cleanup_past_resource_availabilities(session, today)
    except Exception as exc:
        logger.error(f"Scheduled availability cleanup failed: {exc}")
        raise self.retry(exc=exc)

    return {"success": True, "deleted_count": deleted, "cutoff_date": today.isoformat()}
