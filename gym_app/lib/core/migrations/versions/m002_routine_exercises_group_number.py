"""
Migration 002 (routine_exercises): Add group_number column

Existing template entries all join group 1.
"""

import sqlite3
from ..base import Migration
from ..utils import add_column_if_missing
from ...db_schema import get_table_columns


class Migration002RoutineExercisesGroupNumber(Migration):

    @property
    def table(self) -> str:
        return "routine_exercises"

    @property
    def version(self) -> int:
        return 2

    @property
    def description(self) -> str:
        return "Add group_number column to routine_exercises"

    def check_can_apply(self, conn: sqlite3.Connection) -> bool:
        columns = get_table_columns(conn, "routine_exercises")
        if "group_number" in columns:
            self.logger.info("Migration already applied (group_number column exists)")
            return False
        return bool(columns)

    def upgrade(self, conn: sqlite3.Connection) -> None:
        add_column_if_missing(conn, "routine_exercises", "group_number", "INTEGER DEFAULT 1", self.logger)
