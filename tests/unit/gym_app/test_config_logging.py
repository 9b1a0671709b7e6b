"""
Unit tests for settings, logging setup and service wiring.

@testCovers gym_app/config.py
@testCovers gym_app/lib/logging_utils.py
@testCovers gym_app/lib/dependencies.py
"""

import logging
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from gym_app.config import Settings, get_settings
from gym_app.lib import dependencies
from gym_app.lib.core.database_init import initialize_database
from gym_app.lib.logging_utils import (
    LOG_FORMAT,
    CategoryFilter,
    setup_logging,
)


class TestSettings(unittest.TestCase):

    def setUp(self):
        get_settings.cache_clear()

    def tearDown(self):
        get_settings.cache_clear()

    def test_defaults(self):
        """Without environment the store lives under data/."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        self.assertEqual(settings.db_path, Path("data") / "gym_app.db")
        self.assertTrue(settings.migration_backups)
        self.assertEqual(settings.log_level, "INFO")
        self.assertEqual(settings.log_categories, [])
        self.assertIsNone(settings.log_file)

    def test_environment_overrides(self):
        """Environment variables replace the defaults."""
        env = {
            "DATA_ROOT": "/var/lib/gym",
            "DB_FILENAME": "store.db",
            "MIGRATION_BACKUPS": "false",
            "LOG_LEVEL": "debug",
            "LOG_CATEGORIES": "gym_app.lib.ordering, gym_app.lib.core",
            "LOG_FILE": "/var/log/gym.log",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings(_env_file=None)

        self.assertEqual(settings.db_path, Path("/var/lib/gym/store.db"))
        self.assertFalse(settings.migration_backups)
        self.assertEqual(settings.log_level, "DEBUG")
        self.assertEqual(settings.log_categories, ["gym_app.lib.ordering", "gym_app.lib.core"])
        self.assertEqual(settings.log_file, Path("/var/log/gym.log"))

    def test_get_settings_is_cached(self):
        """The same instance is returned until the cache is cleared."""
        self.assertIs(get_settings(), get_settings())


class TestSetupLogging(unittest.TestCase):

    def setUp(self):
        """Remember the root logger configuration."""
        self.test_dir = Path(tempfile.mkdtemp())
        root = logging.getLogger()
        self.saved_handlers = list(root.handlers)
        self.saved_level = root.level

    def tearDown(self):
        """Restore the root logger configuration."""
        root = logging.getLogger()
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = self.saved_handlers
        root.setLevel(self.saved_level)
        shutil.rmtree(self.test_dir)

    def test_replaces_root_handlers(self):
        """One console handler with the standard format."""
        setup_logging("warning")

        root = logging.getLogger()
        self.assertEqual(root.level, logging.WARNING)
        self.assertEqual(len(root.handlers), 1)
        self.assertEqual(root.handlers[0].formatter._fmt, LOG_FORMAT)

    def test_log_file_receives_records(self):
        """A log file gets the same records, creating its directory."""
        log_file = self.test_dir / "logs" / "gym.log"
        setup_logging("INFO", log_file=log_file)

        logging.getLogger("gym_app.test").info("hello from the test")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        self.assertIn("[INFO    ] gym_app.test - hello from the test", content)

    def test_categories_filter_by_prefix(self):
        """Only records from listed logger prefixes pass."""
        log_file = self.test_dir / "gym.log"
        setup_logging("INFO", log_categories=["gym_app.lib.ordering"], log_file=log_file)

        logging.getLogger("gym_app.lib.ordering").info("kept")
        logging.getLogger("gym_app.lib.soft_delete").info("dropped")
        for handler in logging.getLogger().handlers:
            handler.flush()

        content = log_file.read_text(encoding="utf-8")
        self.assertIn("kept", content)
        self.assertNotIn("dropped", content)

    def test_category_filter_without_categories(self):
        """An empty category list lets everything through."""
        record = logging.LogRecord("anything", logging.INFO, __file__, 1, "msg", None, None)
        self.assertTrue(CategoryFilter([]).filter(record))
        self.assertFalse(CategoryFilter(["gym_app"]).filter(record))


class TestDependencies(unittest.TestCase):

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        self.logger = logging.getLogger("test_dependencies")
        self.logger.setLevel(logging.ERROR)
        dependencies.get_services.cache_clear()
        root = logging.getLogger()
        self.saved_handlers = list(root.handlers)
        self.saved_level = root.level

    def tearDown(self):
        dependencies.get_services.cache_clear()
        root = logging.getLogger()
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = self.saved_handlers
        root.setLevel(self.saved_level)
        shutil.rmtree(self.test_dir)

    def test_build_services_shares_store(self):
        """All services work on the same store handle."""
        db, report = initialize_database(self.test_dir / "gym.db", backup=False, log=self.logger)
        services = dependencies.build_services(db, report)

        person = services.people.create_person("Ana", "Lopez", "1")
        exercise = services.exercises.create_exercise("Squat", "SQ")
        routine = services.routines.create_routine("Legs", "LEG")
        services.routines.add_exercise_to_routine(routine.id, exercise.id)

        self.assertIs(services.schema_report, report)
        self.assertEqual(services.people.get_person(person.id).name, "Ana")
        self.assertEqual(services.database_path, (self.test_dir / "gym.db").resolve())

    def test_get_services_uses_settings(self):
        """The process-wide services open the configured store once."""
        settings = Settings(_env_file=None, DATA_ROOT=str(self.test_dir), MIGRATION_BACKUPS=False)

        with patch.object(dependencies, "get_settings", return_value=settings):
            services = dependencies.get_services()
            self.assertIs(dependencies.get_services(), services)
            self.assertEqual(dependencies.database_path(), (self.test_dir / "gym_app.db").resolve())

        self.assertTrue(services.schema_report.ok)

    def test_get_services_applies_log_settings(self):
        """LOG_LEVEL and LOG_FILE take effect when the services are built."""
        log_file = self.test_dir / "logs" / "gym.log"
        settings = Settings(
            _env_file=None,
            DATA_ROOT=str(self.test_dir),
            MIGRATION_BACKUPS=False,
            LOG_LEVEL="warning",
            LOG_FILE=str(log_file),
        )

        with patch.object(dependencies, "get_settings", return_value=settings):
            dependencies.get_services()

        root = logging.getLogger()
        self.assertEqual(root.level, logging.WARNING)
        self.assertEqual(len(root.handlers), 2)
        self.assertTrue(log_file.exists())


if __name__ == '__main__':
    unittest.main()
