"""
Startup schema management.

ensure_schema() brings every managed table to its latest version. It is
best effort: a failure on one table is logged and reported, the remaining
tables are still processed, and the caller is never interrupted by an
exception.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .database import Database
from .db_schema import MANAGED_TABLES, ManagedTable
from .migrations import MigrationManager
from .migrations.versions import ALL_MIGRATIONS


@dataclass
class SchemaReport:
    """Outcome of ensure_schema(), per managed table."""

    versions: Dict[str, int] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)
    backup_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return not self.errors


def create_migration_manager(db_path: Path, logger: Optional[logging.Logger] = None) -> MigrationManager:
    """Migration manager with every known migration registered."""
    manager = MigrationManager(db_path, logger)
    manager.register_migrations([migration_class(logger) for migration_class in ALL_MIGRATIONS])
    return manager


def ensure_schema(
    db: Database,
    logger: Optional[logging.Logger] = None,
    backup: bool = True,
    tables: Optional[List[ManagedTable]] = None
) -> SchemaReport:
    """
    Create or migrate every managed table. Never raises.

    Args:
        db: Store handle
        logger: Optional logger instance
        backup: Copy the store file aside before applying pending migrations
        tables: Tables to process (defaults to all managed tables)

    Returns:
        SchemaReport with the resulting version or error text per table
    """
    logger = logger or logging.getLogger(__name__)
    tables = tables if tables is not None else MANAGED_TABLES
    report = SchemaReport()

    if not db.available:
        logger.error("Database unavailable, skipping schema management")
        for table in tables:
            report.errors[table.name] = "database unavailable"
        return report

    manager = create_migration_manager(db.db_path, logger)

    if backup:
        try:
            if manager.has_pending(tables):
                report.backup_path = manager.backup_database()
        except (OSError, sqlite3.Error) as e:
            logger.error(f"Failed to create backup before migrations: {e}")

    for table in tables:
        try:
            report.versions[table.name] = manager.ensure_table(table)
        except Exception as e:
            logger.error(f"Schema for {table.name} left as is after failure: {e}")
            report.errors[table.name] = str(e)

    if report.ok:
        logger.info("Database schema is up to date")
    else:
        logger.error(f"Schema management finished with errors in: {', '.join(report.errors)}")
        if report.backup_path:
            logger.info(f"Database backup available at: {report.backup_path}")
    return report
