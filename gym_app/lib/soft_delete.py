"""
Logical deletion for reference tables (people, exercise).

A deleted row keeps existing so historical workout and routine entries still
join against it; it only drops out of the default listings. Deletion sets
deleted_at and clears is_active, restore reverses both.
"""

import logging
from typing import Optional

from .core.database import Database
from .errors import NotFoundError

SOFT_DELETE_TABLES = ("people", "exercise")


def active_filter(alias: Optional[str] = None) -> str:
    """SQL condition selecting rows that are not soft deleted."""
    p = f"{alias}." if alias else ""
    return (
        f"({p}deleted_at IS NULL OR {p}deleted_at = '') "
        f"AND ({p}is_active = 1 OR {p}is_active IS NULL)"
    )


def deleted_filter(alias: Optional[str] = None) -> str:
    """SQL condition selecting soft deleted rows."""
    p = f"{alias}." if alias else ""
    return f"{p}deleted_at IS NOT NULL AND {p}deleted_at != '' AND {p}is_active = 0"


class SoftDeleteLedger:
    """Toggles and counts logical visibility of rows in one reference table."""

    def __init__(self, db: Database, table: str, logger: Optional[logging.Logger] = None):
        if table not in SOFT_DELETE_TABLES:
            raise ValueError(f"{table} does not support soft delete")
        self.db = db
        self.table = table
        self.logger = logger or logging.getLogger(__name__)

    def delete(self, row_id: int) -> None:
        """
        Mark a row as deleted.

        Raises:
            NotFoundError: If no row has this id
        """
        rowcount = self.db.execute_update(
            f"UPDATE {self.table} SET deleted_at = datetime('now'), is_active = 0 WHERE id = ?",
            (row_id,)
        )
        if rowcount == 0:
            raise NotFoundError(f"{self.table} row not found: {row_id}")
        self.logger.debug(f"Soft deleted {self.table} {row_id}")

    def restore(self, row_id: int) -> None:
        """
        Make a deleted row visible again.

        Raises:
            NotFoundError: If no row has this id
        """
        rowcount = self.db.execute_update(
            f"UPDATE {self.table} SET deleted_at = NULL, is_active = 1 WHERE id = ?",
            (row_id,)
        )
        if rowcount == 0:
            raise NotFoundError(f"{self.table} row not found: {row_id}")
        self.logger.debug(f"Restored {self.table} {row_id}")

    def count_active(self) -> int:
        row = self.db.execute_query(
            f"SELECT COUNT(*) AS count FROM {self.table} WHERE {active_filter()}",
            fetch_one=True
        )
        return row["count"] if row else 0

    def count_deleted(self) -> int:
        row = self.db.execute_query(
            f"SELECT COUNT(*) AS count FROM {self.table} WHERE {deleted_filter()}",
            fetch_one=True
        )
        return row["count"] if row else 0
