import datetime as dt
import unittest
from unittest.mock import patch
from uuid import uuid4

from celery.exceptions import Retry
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import select

from support import ApiTestCase

from event_portal.celery_app import celery_app
from event_portal.core.config import settings
from event_portal.models import ResourceAvailability
from event_portal.tasks.cleanup import cleanup_past_resource_availabilities_task

TASK_NAME = "event_portal.tasks.cleanup.cleanup_past_resource_availabilities_task"


class CleanupTaskTests(ApiTestCase):
    def setUp(self):
        super().setUp()
        self.today = dt.date(2030, 1, 15)
        for target, value in (("engine", self.engine), ("local_today", lambda: self.today)):
            patcher = patch(f"event_portal.tasks.cleanup.{target}", value)
            patcher.start()
            self.addCleanup(patcher.stop)

    def _add_rows(self, *days):
        department = self.create_department("PGSO")
        requirement = uuid4()
        for day in days:
            self.session.add(
                ResourceAvailability(
                    department_id=department.id,
                    requirement_id=requirement,
                    requirement_text="Tables",
                    date=day,
                )
            )
        self.session.commit()

    def test_task_deletes_past_rows(self):
        self._add_rows(dt.date(2030, 1, 13), dt.date(2030, 1, 14), self.today)

        result = cleanup_past_resource_availabilities_task.apply().get()

        self.assertEqual(
            result, {"success": True, "deleted_count": 2, "cutoff_date": "2030-01-15"}
        )
        remaining = self.session.exec(select(ResourceAvailability)).all()
        self.assertEqual([r.date for r in remaining], [self.today])

    def test_task_with_nothing_to_delete(self):
        result = cleanup_past_resource_availabilities_task.apply().get()

        self.assertEqual(result["deleted_count"], 0)

    def test_database_error_schedules_retry(self):
        error = SQLAlchemyError("database unavailable")

        with patch(
            "event_portal.tasks.cleanup.cleanup_past_resource_availabilities",
            side_effect=error,
        ), patch.object(
            cleanup_past_resource_availabilities_task, "retry", side_effect=Retry()
        ) as retry:
            with self.assertRaises(Retry):
                cleanup_past_resource_availabilities_task.run()

        retry.assert_called_once()
        self.assertIs(retry.call_args.kwargs["exc"], error)


class BeatScheduleTests(unittest.TestCase):
    def test_cleanup_runs_daily_in_configured_timezone(self):
        entry = celery_app.conf.beat_schedule["cleanup-past-resource-availabilities"]

        self.assertEqual(entry["task"], TASK_NAME)
        self.assertEqual(entry["schedule"].hour, {settings.CLEANUP_HOUR})
        self.assertEqual(entry["schedule"].minute, {settings.CLEANUP_MINUTE})
        self.assertEqual(celery_app.conf.timezone, settings.CLEANUP_TIMEZONE)

    def test_task_is_registered_with_retries(self):
        self.assertIn(TASK_NAME, celery_app.tasks)
        self.assertEqual(cleanup_past_resource_availabilities_task.max_retries, 3)


if __name__ == "__main__":
    unittest.main()
