"""
Unit tests for the store handle.

@testCovers gym_app/lib/core/database.py
"""

import logging
import shutil
import sqlite3
import tempfile
import unittest
from pathlib import Path

from gym_app.lib.core.database import (
    DatabaseManager,
    UnavailableDatabase,
    open_database,
)
from gym_app.lib.errors import StorageError, ValidationError


class TestDatabaseManager(unittest.TestCase):
    """Connections and transactions on a real store."""

    def setUp(self):
        """Create temporary directory for test database."""
        self.test_dir = Path(tempfile.mkdtemp())
        self.db_path = self.test_dir / "nested" / "test.db"
        self.logger = logging.getLogger("test_database")
        self.logger.setLevel(logging.ERROR)
        self.db = DatabaseManager(self.db_path, self.logger)
        with self.db.transaction() as conn:
            conn.execute("CREATE TABLE items (id INTEGER PRIMARY KEY, name TEXT NOT NULL)")

    def tearDown(self):
        """Clean up temporary directory."""
        shutil.rmtree(self.test_dir)

    def test_creates_parent_directory_and_file(self):
        """Opening the store creates missing directories."""
        self.assertTrue(self.db_path.exists())
        self.assertTrue(self.db.available)

    def test_database_path_is_resolved(self):
        """database_path is absolute for raw-file readers."""
        self.assertTrue(self.db.database_path.is_absolute())
        self.assertEqual(self.db.database_path, self.db_path.resolve())

    def test_connection_settings(self):
        """Rows are dict-like and foreign keys are enforced."""
        with self.db.get_connection() as conn:
            self.assertIs(conn.row_factory, sqlite3.Row)
            self.assertEqual(conn.execute("PRAGMA foreign_keys").fetchone()[0], 1)

    def test_journal_mode_is_not_wal(self):
        """The store stays a single self-contained file."""
        with self.db.get_connection() as conn:
            mode = conn.execute("PRAGMA journal_mode").fetchone()[0]
        self.assertNotEqual(mode.lower(), "wal")

    def test_transaction_commits(self):
        """Statements in a successful block are persisted."""
        with self.db.transaction() as conn:
            conn.execute("INSERT INTO items (name) VALUES ('a')")
            conn.execute("INSERT INTO items (name) VALUES ('b')")

        rows = self.db.execute_query("SELECT name FROM items ORDER BY name")
        self.assertEqual([r["name"] for r in rows], ["a", "b"])

    def test_transaction_rolls_back_on_sqlite_error(self):
        """A failing statement undoes the whole block and surfaces as StorageError."""
        with self.assertRaises(StorageError):
            with self.db.transaction() as conn:
                conn.execute("INSERT INTO items (name) VALUES ('a')")
                conn.execute("INSERT INTO items (name) VALUES (NULL)")

        self.assertEqual(self.db.execute_query("SELECT * FROM items"), [])

    def test_storage_error_chains_original(self):
        """The driver error stays available as the cause."""
        with self.assertRaises(StorageError) as ctx:
            self.db.execute_query("SELECT * FROM missing_table")
        self.assertIsInstance(ctx.exception.__cause__, sqlite3.Error)

    def test_other_exceptions_propagate_unchanged(self):
        """Non-driver errors roll back and keep their type."""
        with self.assertRaises(ValidationError):
            with self.db.transaction() as conn:
                conn.execute("INSERT INTO items (name) VALUES ('a')")
                raise ValidationError("rejected")

        self.assertEqual(self.db.execute_query("SELECT * FROM items"), [])

    def test_execute_update_returns_rowcount(self):
        """execute_update reports affected rows."""
        self.db.execute_update("INSERT INTO items (name) VALUES ('a')")
        self.db.execute_update("INSERT INTO items (name) VALUES ('b')")
        self.assertEqual(self.db.execute_update("UPDATE items SET name = 'c'"), 2)

    def test_execute_query_fetch_one(self):
        """fetch_one returns a dict or None."""
        self.db.execute_update("INSERT INTO items (name) VALUES ('a')")
        row = self.db.execute_query("SELECT name FROM items", fetch_one=True)
        self.assertEqual(row, {"name": "a"})
        self.assertIsNone(
            self.db.execute_query("SELECT name FROM items WHERE name = 'z'", fetch_one=True)
        )

    def test_join_transaction_reuses_connection(self):
        """Work passed an open transaction commits or rolls back with it."""
        with self.assertRaises(StorageError):
            with self.db.transaction() as conn:
                with self.db.join_transaction(conn) as joined:
                    self.assertIs(joined, conn)
                    joined.execute("INSERT INTO items (name) VALUES ('a')")
                conn.execute("INSERT INTO items (name) VALUES (NULL)")

        self.assertEqual(self.db.execute_query("SELECT * FROM items"), [])


class TestUnavailableDatabase(unittest.TestCase):
    """Handle returned when the store cannot be opened."""

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        self.logger = logging.getLogger("test_database_unavailable")
        self.logger.setLevel(logging.CRITICAL)

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_open_database_falls_back(self):
        """A path that cannot be created yields the unavailable variant."""
        blocker = self.test_dir / "blocker"
        blocker.write_text("not a directory")

        db = open_database(blocker / "test.db", self.logger)

        self.assertIsInstance(db, UnavailableDatabase)
        self.assertFalse(db.available)

    def test_every_access_raises_storage_error(self):
        """Reads and writes fail the same way."""
        db = UnavailableDatabase(self.test_dir / "x.db", "disk on fire", self.logger)

        with self.assertRaises(StorageError) as ctx:
            db.execute_query("SELECT 1")
        self.assertIn("disk on fire", ctx.exception.message)

        with self.assertRaises(StorageError):
            db.execute_update("DELETE FROM items")

        with self.assertRaises(StorageError):
            with db.transaction():
                pass

    def test_open_database_returns_manager_when_possible(self):
        """The real variant is chosen when the store opens."""
        db = open_database(self.test_dir / "ok.db", self.logger)
        self.assertIsInstance(db, DatabaseManager)


if __name__ == '__main__':
    unittest.main()
