"""
Migration 002 (people, exercise): Add soft delete columns

Before: rows can only be removed physically
After: deleted_at DATETIME NULL and is_active BOOLEAN DEFAULT 1 mark rows as
logically deleted; existing rows stay active
"""

import sqlite3
from ..base import Migration
from ..utils import add_column_if_missing
from ...db_schema import get_table_columns


class _AddSoftDeleteColumns(Migration):
    """Shared implementation for the reference tables."""

    @property
    def version(self) -> int:
        return 2

    @property
    def description(self) -> str:
        return f"Add deleted_at and is_active columns to {self.table}"

    def check_can_apply(self, conn: sqlite3.Connection) -> bool:
        columns = get_table_columns(conn, self.table)
        if not columns:
            self.logger.info(f"{self.table} table does not exist yet, skipping migration")
            return False
        if "deleted_at" in columns and "is_active" in columns:
            self.logger.info("Migration already applied (soft delete columns exist)")
            return False
        return True

    def upgrade(self, conn: sqlite3.Connection) -> None:
        add_column_if_missing(conn, self.table, "deleted_at", "DATETIME NULL", self.logger)
        add_column_if_missing(conn, self.table, "is_active", "BOOLEAN DEFAULT 1", self.logger)


class Migration002PeopleSoftDelete(_AddSoftDeleteColumns):

    @property
    def table(self) -> str:
        return "people"


class Migration002ExerciseSoftDelete(_AddSoftDeleteColumns):

    @property
    def table(self) -> str:
        return "exercise"
