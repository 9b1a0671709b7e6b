"""
Database schema for the gym tracking store.

This module defines, per managed table:
- the current CREATE TABLE statement (used for fresh stores)
- its supporting indexes
- the latest schema version and how to recognise older on-disk shapes

Version history:
- people:            v1 (id, name, last_name, phone), v2 adds deleted_at, is_active
- exercise:          v1 (id, name, code), v2 adds deleted_at, is_active
- routines:          v1
- workout_entries:   v1 date TEXT, v2 date DATE (rebuild), v3 order_index, v4 group_number
- routine_exercises: v1, v2 adds group_number

Version detection from column metadata is only used once per table, to seed
the schema_versions ledger of a store created before the ledger existed.
From then on the ledger is authoritative.
"""

import sqlite3
from dataclasses import dataclass, field
from typing import Callable, Dict, List


CREATE_PEOPLE_TABLE = """
CREATE TABLE IF NOT EXISTS people (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    last_name TEXT NOT NULL,
    phone TEXT NOT NULL,
    deleted_at DATETIME NULL,          -- Soft delete marker
    is_active BOOLEAN DEFAULT 1        -- Cleared together with deleted_at being set
)
"""

# Table name is singular on disk; existing stores depend on it
CREATE_EXERCISE_TABLE = """
CREATE TABLE IF NOT EXISTS exercise (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    code TEXT NOT NULL UNIQUE,
    deleted_at DATETIME NULL,
    is_active BOOLEAN DEFAULT 1
)
"""

CREATE_ROUTINES_TABLE = """
CREATE TABLE IF NOT EXISTS routines (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    code TEXT NOT NULL UNIQUE,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
)
"""

CREATE_WORKOUT_ENTRIES_TABLE = """
CREATE TABLE IF NOT EXISTS workout_entries (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    person_id INTEGER NOT NULL,
    exercise_id INTEGER NOT NULL,
    date DATE NOT NULL,                -- Calendar day, YYYY-MM-DD
    sets INTEGER,
    reps INTEGER,
    weight REAL,
    notes TEXT,
    order_index INTEGER DEFAULT 0,     -- Display order hint within (person_id, date)
    group_number INTEGER DEFAULT 1,    -- Contiguous 1..N within (person_id, date)
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (person_id) REFERENCES people (id) ON DELETE CASCADE,
    FOREIGN KEY (exercise_id) REFERENCES exercise (id) ON DELETE CASCADE
)
"""

CREATE_ROUTINE_EXERCISES_TABLE = """
CREATE TABLE IF NOT EXISTS routine_exercises (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    routine_id INTEGER NOT NULL,
    exercise_id INTEGER NOT NULL,
    order_index INTEGER NOT NULL DEFAULT 0,
    sets INTEGER,
    reps INTEGER,
    weight REAL,
    notes TEXT,
    group_number INTEGER DEFAULT 1,    -- Contiguous 1..N within routine_id
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (routine_id) REFERENCES routines (id) ON DELETE CASCADE,
    FOREIGN KEY (exercise_id) REFERENCES exercise (id) ON DELETE CASCADE,
    UNIQUE(routine_id, exercise_id)
)
"""


def get_table_columns(conn: sqlite3.Connection, table_name: str) -> Dict[str, str]:
    """
    Read a table's columns from the catalog.

    Returns:
        Mapping of column name to declared type (upper case), empty if the
        table does not exist
    """
    cursor = conn.execute(f"PRAGMA table_info({table_name})")
    return {row[1]: (row[2] or "").upper() for row in cursor.fetchall()}


def table_exists(conn: sqlite3.Connection, table_name: str) -> bool:
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
        (table_name,)
    )
    return cursor.fetchone() is not None


def _detect_soft_delete_version(columns: Dict[str, str]) -> int:
    if "deleted_at" in columns and "is_active" in columns:
        return 2
    return 1


def _detect_workout_entries_version(columns: Dict[str, str]) -> int:
    if columns.get("date") == "TEXT":
        return 1
    if "order_index" not in columns:
        return 2
    if "group_number" not in columns:
        return 3
    return 4


def _detect_routine_exercises_version(columns: Dict[str, str]) -> int:
    return 2 if "group_number" in columns else 1


@dataclass
class ManagedTable:
    """A table whose shape is tracked in the schema_versions ledger."""

    name: str
    create_sql: str
    latest_version: int
    detect_version: Callable[[Dict[str, str]], int]
    indexes: List[str] = field(default_factory=list)

    def __repr__(self) -> str:
        return f"<ManagedTable {self.name} v{self.latest_version}>"


# Parents first, so a fresh store is created in dependency order
MANAGED_TABLES: List[ManagedTable] = [
    ManagedTable(
        name="people",
        create_sql=CREATE_PEOPLE_TABLE,
        latest_version=2,
        detect_version=_detect_soft_delete_version,
    ),
    ManagedTable(
        name="exercise",
        create_sql=CREATE_EXERCISE_TABLE,
        latest_version=2,
        detect_version=_detect_soft_delete_version,
    ),
    ManagedTable(
        name="routines",
        create_sql=CREATE_ROUTINES_TABLE,
        latest_version=1,
        detect_version=lambda columns: 1,
    ),
    ManagedTable(
        name="workout_entries",
        create_sql=CREATE_WORKOUT_ENTRIES_TABLE,
        latest_version=4,
        detect_version=_detect_workout_entries_version,
        indexes=[
            "CREATE INDEX IF NOT EXISTS idx_workout_entries_person_date ON workout_entries(person_id, date)",
        ],
    ),
    ManagedTable(
        name="routine_exercises",
        create_sql=CREATE_ROUTINE_EXERCISES_TABLE,
        latest_version=2,
        detect_version=_detect_routine_exercises_version,
        indexes=[
            "CREATE INDEX IF NOT EXISTS idx_routine_exercises_routine_id ON routine_exercises(routine_id)",
            "CREATE INDEX IF NOT EXISTS idx_routine_exercises_order ON routine_exercises(routine_id, order_index)",
        ],
    ),
]


def get_managed_table(name: str) -> ManagedTable:
    """Look up a managed table definition by name."""
    for table in MANAGED_TABLES:
        if table.name == name:
            return table
    raise KeyError(f"Unknown managed table: {name}")
