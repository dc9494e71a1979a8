import unittest

from sqlalchemy import inspect
from sqlalchemy.pool import StaticPool
from sqlmodel import create_engine

import support  # noqa: F401

from event_portal.db import init_db

PORTAL_TABLES = [
    "department_requirements",
    "departments",
    "events",
    "messages",
    "resource_availabilities",
    "users",
]


class InitDbTests(unittest.TestCase):
    def setUp(self):
        self.engine = create_engine(
            "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
        )
        self.addCleanup(self.engine.dispose)

    def test_creates_portal_schema(self):
        with self.assertLogs("event_portal.db", level="INFO") as logs:
            tables = init_db(self.engine)

        self.assertEqual(tables, PORTAL_TABLES)
        self.assertEqual(sorted(inspect(self.engine).get_table_names()), PORTAL_TABLES)
        self.assertIn("Portal schema ready", logs.output[0])

    def test_is_safe_to_run_twice(self):
        init_db(self.engine)

        self.assertEqual(init_db(self.engine), PORTAL_TABLES)


if __name__ == "__main__":
    unittest.main()
