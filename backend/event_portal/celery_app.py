"""Celery application configuration."""

from __future__ import annotations

import logging

from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging

from event_portal.core.config import settings
from event_portal.core.logging_config import configure_logging

logger = logging.getLogger(__name__)

celery_app = Celery(
    "event_portal",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["event_portal.tasks.cleanup"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Beat crontabs are read in the cleanup timezone
    timezone=settings.CLEANUP_TIMEZONE,
    enable_utc=True,
    broker_connection_retry_on_startup=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_default_retry_delay=60,
    result_expires=3600,
    worker_prefetch_multiplier=1,
)

celery_app.conf.beat_schedule = {
    "cleanup-past-resource-availabilities": {
        "task": "event_portal.tasks.cleanup.cleanup_past_resource_availabilities_task",
        "schedule": crontab(hour=settings.CLEANUP_HOUR, minute=settings.CLEANUP_MINUTE),
    },
}


@setup_logging.connect
def _configure_worker_logging(**kwargs) -> None:
    configure_logging()


logger.info(f"Celery app configured with broker: {settings.CELERY_BROKER_URL}")
