"""
Database handle for the SQLite store.

Provides per-call connection management and transactions through context
managers, so every connection is released on every exit path and batch
operations share one live transaction.

Two variants implement the same interface:
- DatabaseManager: the real store
- UnavailableDatabase: returned by open_database() when the store cannot be
  opened at startup; every access raises StorageError
"""

import logging
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from ..errors import StorageError

# Seconds a statement waits on another writer before failing with "database is locked"
BUSY_TIMEOUT = 30.0


class Database(ABC):
    """
    Common interface of the store handle.

    Repositories only ever talk to this interface; which variant they got is
    decided once in open_database().
    """

    available = True

    def __init__(self, db_path: Path, logger: Optional[logging.Logger] = None):
        self.db_path = Path(db_path)
        self.logger = logger or logging.getLogger(__name__)

    @property
    def database_path(self) -> Path:
        """Resolved filesystem path of the store, for raw-file readers such as backups."""
        return self.db_path.resolve()

    @abstractmethod
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager yielding a connection that is closed on exit."""

    @abstractmethod
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """Context manager committing on success and rolling back on error."""

    @contextmanager
    def join_transaction(
        self,
        conn: Optional[sqlite3.Connection] = None
    ) -> Generator[sqlite3.Connection, None, None]:
        """Reuse the caller's transaction when given one, otherwise open a new one."""
        if conn is not None:
            yield conn
        else:
            with self.transaction() as own:
                yield own

    def execute_query(
        self,
        query: str,
        params: tuple = (),
        fetch_one: bool = False
    ) -> Optional[list | dict]:
        """
        Execute a SELECT query and return results.

        Args:
            query: SQL query string
            params: Query parameters
            fetch_one: If True, return single row; if False, return all rows

        Returns:
            Single row (dict) if fetch_one=True, list of rows otherwise
        """
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)

            if fetch_one:
                row = cursor.fetchone()
                return dict(row) if row else None
            rows = cursor.fetchall()
            return [dict(row) for row in rows]

    def execute_update(self, query: str, params: tuple = ()) -> int:
        """
        Execute an INSERT, UPDATE, or DELETE query in its own transaction.

        Returns:
            Number of affected rows
        """
        with self.transaction() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return cursor.rowcount


class DatabaseManager(Database):
    """
    Manages connections and transactions for the SQLite store.

    There is no pool: each get_connection() opens a fresh connection and
    closes it when the block exits. Concurrent writers are serialized by
    SQLite itself (last writer wins).
    """

    def __init__(self, db_path: Path, logger: Optional[logging.Logger] = None):
        """
        Initialize database manager.

        Args:
            db_path: Path to SQLite database file
            logger: Optional logger instance

        Raises:
            StorageError: If the store cannot be created or opened
        """
        super().__init__(db_path, logger)
        self._ensure_db_exists()

    def _ensure_db_exists(self) -> None:
        """Create the parent directory and check that the store opens."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = self._connect()
            try:
                conn.execute("SELECT 1").fetchone()
            finally:
                conn.close()
        except (OSError, sqlite3.Error) as e:
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e

    def _connect(self) -> sqlite3.Connection:
        # Autocommit mode: transactions are opened explicitly with BEGIN
        conn = sqlite3.connect(str(self.db_path), timeout=BUSY_TIMEOUT, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database connections.

        Yields a connection with row_factory set to sqlite3.Row
        for dict-like access to query results.

        Usage:
            with db.get_connection() as conn:
                conn.execute("SELECT * FROM people")

        Raises:
            StorageError: On any sqlite3 error while connecting or inside the block
        """
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StorageError(f"Cannot connect to database: {e}") from e

        try:
            yield conn
        except sqlite3.Error as e:
            raise StorageError(str(e)) from e
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager for database transactions.

        Automatically commits on success, rolls back on exception.

        Usage:
            with db.transaction() as conn:
                conn.execute("DELETE FROM workout_entries WHERE ...")
                conn.execute("INSERT INTO workout_entries ...")
                # Auto-commit on exit (or rollback on exception)
        """
        with self.get_connection() as conn:
            conn.execute("BEGIN")
            try:
                yield conn
                conn.commit()
                self.logger.debug("Transaction committed")
            except Exception:
                try:
                    conn.rollback()
                except sqlite3.OperationalError as rollback_error:
                    # SQLite may already have rolled back on its own
                    self.logger.debug(f"Rollback skipped: {rollback_error}")
                raise


class UnavailableDatabase(Database):
    """
    Stand-in handle used when the store could not be opened at startup.

    Keeps the rest of the application constructible; every operation fails
    with StorageError carrying the original reason.
    """

    available = False

    def __init__(self, db_path: Path, reason: str, logger: Optional[logging.Logger] = None):
        super().__init__(db_path, logger)
        self.reason = reason

    def _unavailable(self) -> StorageError:
        return StorageError(f"Database unavailable: {self.reason}")

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        raise self._unavailable()
        yield  # pragma: no cover

    @contextmanager
    def transaction(self) -> Generator[sqlite3.Connection, None, None]:
        raise self._unavailable()
        yield  # pragma: no cover


def open_database(db_path: Path, logger: Optional[logging.Logger] = None) -> Database:
    """
    Open the store, falling back to UnavailableDatabase if that fails.

    Args:
        db_path: Path to SQLite database file
        logger: Optional logger instance

    Returns:
        DatabaseManager, or UnavailableDatabase when the store cannot be opened
    """
    logger = logger or logging.getLogger(__name__)
    try:
        return DatabaseManager(db_path, logger)
    except StorageError as e:
        logger.error(f"Database unavailable, continuing without storage: {e}")
        return UnavailableDatabase(db_path, str(e), logger)
