"""
Migration 004 (workout_entries): Add group_number column

Before: a day's exercises are a flat list
After: exercises are clustered into groups 1..N; every existing row joins
group 1, which keeps each existing day contiguous
"""

import sqlite3
from ..base import Migration
from ..utils import add_column_if_missing
from ...db_schema import get_table_columns


class Migration004WorkoutEntriesGroupNumber(Migration):

    @property
    def table(self) -> str:
        return "workout_entries"

    @property
    def version(self) -> int:
        return 4

    @property
    def description(self) -> str:
        return "Add group_number column to workout_entries"

    def check_can_apply(self, conn: sqlite3.Connection) -> bool:
        columns = get_table_columns(conn, "workout_entries")
        if "group_number" in columns:
            self.logger.info("Migration already applied (group_number column exists)")
            return False
        return bool(columns)

    def upgrade(self, conn: sqlite3.Connection) -> None:
        add_column_if_missing(conn, "workout_entries", "group_number", "INTEGER DEFAULT 1", self.logger)
