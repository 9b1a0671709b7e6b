"""
Database initialization at application startup.

Opens the store and brings its schema up to date before any other access,
so repositories never see a half-migrated table.
"""

from pathlib import Path
from typing import Optional, Tuple

from .database import Database, open_database
from .schema_manager import SchemaReport, ensure_schema
from ..logging_utils import get_logger


logger = get_logger(__name__)


def initialize_database(
    db_path: Path,
    backup: bool = True,
    log=None
) -> Tuple[Database, SchemaReport]:
    """
    Open the store and run schema management once.

    Never raises: an unopenable store yields an UnavailableDatabase, a failed
    migration is reported in the SchemaReport and logged.

    Args:
        db_path: Path to the database file
        backup: Back up the store before pending migrations
        log: Optional logger instance

    Returns:
        Tuple of (store handle, schema report)
    """
    log = log or logger
    log.info(f"Initializing database at {db_path}")

    db = open_database(db_path, log)
    report = ensure_schema(db, log, backup=backup)

    if db.available:
        log.debug(f"Database ready: {db.database_path}")
    return db, report


def get_database_path(db: Optional[Database]) -> Optional[Path]:
    """Resolved store path for raw-file readers, None without a handle."""
    if db is None:
        return None
    return db.database_path
