"""
Migration 002 (workout_entries): Change date column from TEXT to DATE

SQLite cannot change a column's declared type in place, so the table is
rebuilt: a shadow table with the new shape is filled row by row, then
replaces the original.

Before: date TEXT, values may be free text, timestamps or NULL
After: date DATE NOT NULL, every value is a valid YYYY-MM-DD day.
Malformed values are replaced with today's UTC date.
"""

import sqlite3
from ..base import Migration
from ..utils import normalize_date, today_utc
from ...db_schema import get_table_columns


# Column definitions of the rebuilt table, in order
REBUILT_COLUMNS = [
    ("id", "INTEGER PRIMARY KEY AUTOINCREMENT"),
    ("person_id", "INTEGER NOT NULL"),
    ("exercise_id", "INTEGER NOT NULL"),
    ("date", "DATE NOT NULL"),
    ("sets", "INTEGER"),
    ("reps", "INTEGER"),
    ("weight", "REAL"),
    ("notes", "TEXT"),
    ("created_at", "DATETIME DEFAULT CURRENT_TIMESTAMP"),
    ("updated_at", "DATETIME DEFAULT CURRENT_TIMESTAMP"),
]

# Later columns carried over only if the legacy table already has them
OPTIONAL_COLUMNS = [
    ("order_index", "INTEGER DEFAULT 0"),
    ("group_number", "INTEGER DEFAULT 1"),
]

FOREIGN_KEYS = [
    "FOREIGN KEY (person_id) REFERENCES people (id) ON DELETE CASCADE",
    "FOREIGN KEY (exercise_id) REFERENCES exercise (id) ON DELETE CASCADE",
]


class Migration002WorkoutEntriesDateType(Migration):
    """
    Rebuild workout_entries with a DATE typed date column.

    Schema changes:
    1. Create workout_entries_new with date DATE NOT NULL
    2. Copy every row, normalizing its date
    3. Verify the row count, drop the original, rename the shadow table
    """

    @property
    def table(self) -> str:
        return "workout_entries"

    @property
    def version(self) -> int:
        return 2

    @property
    def description(self) -> str:
        return "Change workout_entries.date from TEXT to DATE with normalized values"

    def check_can_apply(self, conn: sqlite3.Connection) -> bool:
        """Only a table whose date column is still declared TEXT needs the rebuild."""
        columns = get_table_columns(conn, "workout_entries")
        if not columns:
            self.logger.info("workout_entries table does not exist yet, skipping migration")
            return False
        if columns.get("date") != "TEXT":
            self.logger.info("Migration already applied (date column is not TEXT)")
            return False
        return True

    def upgrade(self, conn: sqlite3.Connection) -> None:
        """Apply migration: copy-rebuild with per-row date normalization."""
        self.logger.info("Starting workout_entries rebuild for date column type")
        legacy_columns = get_table_columns(conn, "workout_entries")

        definitions = REBUILT_COLUMNS + [
            (name, definition) for name, definition in OPTIONAL_COLUMNS
            if name in legacy_columns
        ]
        copy_columns = [name for name, _ in definitions if name in legacy_columns]
        date_position = copy_columns.index("date")

        original_count = conn.execute("SELECT COUNT(*) FROM workout_entries").fetchone()[0]
        self.logger.info(f"Original row count: {original_count}")

        body = ",\n    ".join(
            [f"{name} {definition}" for name, definition in definitions] + FOREIGN_KEYS
        )
        conn.execute("DROP TABLE IF EXISTS workout_entries_new")
        conn.execute(f"CREATE TABLE workout_entries_new (\n    {body}\n)")

        column_list = ", ".join(copy_columns)
        placeholders = ", ".join("?" for _ in copy_columns)
        insert_sql = f"INSERT INTO workout_entries_new ({column_list}) VALUES ({placeholders})"

        today = today_utc()
        normalized = 0
        for row in conn.execute(f"SELECT {column_list} FROM workout_entries").fetchall():
            values = list(row)
            fixed = normalize_date(values[date_position], today)
            if fixed != values[date_position]:
                normalized += 1
            values[date_position] = fixed
            conn.execute(insert_sql, values)

        # Verify row count
        new_count = conn.execute("SELECT COUNT(*) FROM workout_entries_new").fetchone()[0]
        if original_count != new_count:
            raise RuntimeError(f"Row count mismatch: {original_count} -> {new_count}")

        # Replace old table
        conn.execute("DROP TABLE workout_entries")
        conn.execute("ALTER TABLE workout_entries_new RENAME TO workout_entries")

        if normalized:
            self.logger.warning(f"Replaced {normalized} malformed date(s) with {today}")
        self.logger.info("Migration complete: workout_entries.date is now DATE")
