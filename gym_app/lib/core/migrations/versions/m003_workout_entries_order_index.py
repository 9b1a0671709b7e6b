"""
Migration 003 (workout_entries): Add order_index column

Display order hint within a person's day. Existing rows get 0.
"""

import sqlite3
from ..base import Migration
from ..utils import add_column_if_missing
from ...db_schema import get_table_columns


class Migration003WorkoutEntriesOrderIndex(Migration):

    @property
    def table(self) -> str:
        return "workout_entries"

    @property
    def version(self) -> int:
        return 3

    @property
    def description(self) -> str:
        return "Add order_index column to workout_entries"

    def check_can_apply(self, conn: sqlite3.Connection) -> bool:
        columns = get_table_columns(conn, "workout_entries")
        if "order_index" in columns:
            self.logger.info("Migration already applied (order_index column exists)")
            return False
        return bool(columns)

    def upgrade(self, conn: sqlite3.Connection) -> None:
        add_column_if_missing(conn, "workout_entries", "order_index", "INTEGER DEFAULT 0", self.logger)
