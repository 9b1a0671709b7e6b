"""
Migration manager for the SQLite store.

Handles per-table version tracking, migration execution and backups.
"""

import sqlite3
import shutil
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional
import logging

from .base import Migration
from ..db_schema import ManagedTable, get_table_columns, table_exists


class MigrationManager:
    """
    Manages table migrations with versioning and backups.

    Features:
    - Per-table version tracking in the schema_versions ledger
    - One transaction per table: creation or every pending step, plus indexes
    - Automatic database backup before pending migrations
    - Migrations guarded by check_can_apply, so re-running is a no-op
    """

    def __init__(self, db_path: Path, logger: Optional[logging.Logger] = None):
        """
        Initialize migration manager.

        Args:
            db_path: Path to SQLite database file
            logger: Optional logger instance
        """
        self.db_path = Path(db_path)
        self.logger = logger or logging.getLogger(__name__)
        self._migrations: List[Migration] = []

    def register_migration(self, migration: Migration) -> None:
        """
        Register a migration.

        Args:
            migration: Migration instance to register
        """
        self._migrations.append(migration)
        # Sort by table, then version, to ensure correct order
        self._migrations.sort(key=lambda m: (m.table, m.version))

    def register_migrations(self, migrations: List[Migration]) -> None:
        """
        Register multiple migrations.

        Args:
            migrations: List of migration instances
        """
        for migration in migrations:
            self.register_migration(migration)

    def _connect(self) -> sqlite3.Connection:
        # Foreign key enforcement stays off while tables are rebuilt
        conn = sqlite3.connect(str(self.db_path), timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_ledger_table(self, conn: sqlite3.Connection) -> None:
        """
        Ensure schema_versions table exists.

        Args:
            conn: SQLite connection
        """
        conn.execute("""
            CREATE TABLE IF NOT EXISTS schema_versions (
                table_name TEXT NOT NULL,
                version INTEGER NOT NULL,
                description TEXT NOT NULL,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                success BOOLEAN DEFAULT 1,
                PRIMARY KEY (table_name, version)
            )
        """)

    def get_table_version(self, conn: sqlite3.Connection, table_name: str) -> int:
        """
        Get the recorded version of a table.

        Args:
            conn: SQLite connection
            table_name: Managed table name

        Returns:
            Current version number (0 if the table is not in the ledger)
        """
        cursor = conn.execute("""
            SELECT MAX(version) AS max_version
            FROM schema_versions
            WHERE table_name = ? AND success = 1
        """, (table_name,))
        row = cursor.fetchone()
        return row[0] if row[0] is not None else 0

    def _record_version(
        self,
        conn: sqlite3.Connection,
        table_name: str,
        version: int,
        description: str,
        success: bool = True
    ) -> None:
        """
        Record a table version in the ledger.

        Args:
            conn: SQLite connection
            table_name: Managed table name
            version: Version reached (or attempted)
            description: What produced this version
            success: Whether the step succeeded
        """
        conn.execute("""
            INSERT OR REPLACE INTO schema_versions (table_name, version, description, applied_at, success)
            VALUES (?, ?, ?, CURRENT_TIMESTAMP, ?)
        """, (table_name, version, description, success))

    def backup_database(self) -> Path:
        """
        Create a backup of the database.

        Returns:
            Path to backup file

        Raises:
            IOError: If backup fails
        """
        if not self.db_path.exists():
            raise IOError(f"Database file does not exist: {self.db_path}")

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = self.db_path.parent / f"{self.db_path.stem}_backup_{timestamp}{self.db_path.suffix}"

        self.logger.info(f"Creating database backup: {backup_path}")
        shutil.copy2(self.db_path, backup_path)

        return backup_path

    def _migrations_for(self, table_name: str, current_version: int) -> List[Migration]:
        """
        Get migrations of a table that need to be applied.

        Args:
            table_name: Managed table name
            current_version: Current table version

        Returns:
            List of pending migrations in order
        """
        return [
            m for m in self._migrations
            if m.table == table_name and m.version > current_version
        ]

    def _effective_version(self, conn: sqlite3.Connection, table: ManagedTable) -> Optional[int]:
        """
        Version of a table as the ledger sees it, falling back to shape detection.

        Returns:
            Version number, or None if the table does not exist yet
        """
        version = self.get_table_version(conn, table.name)
        if version:
            return version
        if not table_exists(conn, table.name):
            return None
        return table.detect_version(get_table_columns(conn, table.name))

    def has_pending(self, tables: Iterable[ManagedTable]) -> bool:
        """
        Check whether any existing table still needs migrations.

        Creating a missing table does not count as pending.
        """
        conn = self._connect()
        try:
            self._ensure_ledger_table(conn)
            for table in tables:
                version = self._effective_version(conn, table)
                if version is not None and self._migrations_for(table.name, version):
                    return True
            return False
        finally:
            conn.close()

    def ensure_table(self, table: ManagedTable) -> int:
        """
        Bring one table to its latest version.

        In a single transaction: create the table if missing, otherwise seed
        the ledger from the detected shape when needed and apply every pending
        migration in order; then (re)create the table's indexes.

        Args:
            table: Managed table definition

        Returns:
            The table's version after the call

        Raises:
            Exception: If creation or any migration fails (the transaction is
                rolled back and the failure recorded in the ledger)
        """
        conn = self._connect()
        migration: Optional[Migration] = None
        try:
            self._ensure_ledger_table(conn)
            conn.execute("BEGIN")
            try:
                version = self.get_table_version(conn, table.name)
                if not version:
                    version = self._seed_table(conn, table)

                for migration in self._migrations_for(table.name, version):
                    self.logger.info(
                        f"Applying migration {table.name} v{migration.version}: {migration.description}"
                    )
                    if migration.check_can_apply(conn):
                        migration.upgrade(conn)
                    self._record_version(conn, table.name, migration.version, migration.description)
                    version = migration.version
                    self.logger.info(f"Successfully migrated {table.name} to v{version}")
                migration = None

                for index_sql in table.indexes:
                    conn.execute(index_sql)

                conn.execute("COMMIT")
                return version

            except Exception as e:
                if conn.in_transaction:
                    conn.execute("ROLLBACK")
                self.logger.error(f"Schema update of {table.name} failed: {e}")
                if migration is not None:
                    self._record_failure(conn, table.name, migration)
                raise
        finally:
            conn.close()

    def _seed_table(self, conn: sqlite3.Connection, table: ManagedTable) -> int:
        """Create a missing table, or record the detected version of an existing one."""
        if not table_exists(conn, table.name):
            conn.execute(table.create_sql)
            self._record_version(conn, table.name, table.latest_version, f"Create {table.name} table")
            self.logger.info(f"Created table {table.name} at v{table.latest_version}")
            return table.latest_version

        version = table.detect_version(get_table_columns(conn, table.name))
        self._record_version(conn, table.name, version, "Baseline detected from existing schema")
        self.logger.info(f"Detected existing {table.name} table at v{version}")
        return version

    def _record_failure(self, conn: sqlite3.Connection, table_name: str, migration: Migration) -> None:
        try:
            self._record_version(conn, table_name, migration.version, migration.description, success=False)
        except sqlite3.Error as e:
            self.logger.error(f"Could not record failed migration {table_name} v{migration.version}: {e}")

    def get_history(self) -> List[dict]:
        """
        Get the schema version ledger.

        Returns:
            List of ledger rows ordered by table and version
        """
        if not self.db_path.exists():
            return []

        conn = self._connect()
        try:
            self._ensure_ledger_table(conn)
            cursor = conn.execute("""
                SELECT table_name, version, description, applied_at, success
                FROM schema_versions
                ORDER BY table_name, version
            """)
            return [dict(row) for row in cursor.fetchall()]
        finally:
            conn.close()
