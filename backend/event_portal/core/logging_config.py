import logging
import sys

from event_portal.core.config import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(level: str | None = None) -> logging.Logger:
    """Console-only logging for the API and the Celery worker."""
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    # Remove any pre-existing handlers to avoid duplicates
    if root.hasHandlers():
        root.handlers.clear()
    root.addHandler(handler)
    return root
