"""
Utility functions for schema migrations.
"""

import re
import sqlite3
from datetime import date, datetime, timezone
from typing import Any, Optional

from ..db_schema import get_table_columns

ISO_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def add_column_if_missing(
    conn: sqlite3.Connection,
    table_name: str,
    column_name: str,
    column_definition: str,
    logger: Any
) -> bool:
    """
    Add a column to a table unless it is already there.

    Args:
        conn: SQLite database connection
        table_name: Table to alter
        column_name: Name of the column to add
        column_definition: Type and constraints (e.g. 'INTEGER DEFAULT 1')
        logger: Logger instance

    Returns:
        True if the column was added
    """
    if column_name in get_table_columns(conn, table_name):
        logger.debug(f"{table_name}.{column_name} already exists")
        return False

    logger.info(f"Adding {column_name} column to {table_name} table")
    conn.execute(f"ALTER TABLE {table_name} ADD COLUMN {column_name} {column_definition}")
    return True


def today_utc() -> str:
    return datetime.now(timezone.utc).date().isoformat()


def normalize_date(value: Optional[Any], default: Optional[str] = None) -> str:
    """
    Normalize a stored date value to YYYY-MM-DD.

    Values that already are a valid 10 character ISO date are kept. Anything
    else (NULL, free text, timestamps, impossible dates) becomes the default,
    which is today's UTC date unless given.

    Args:
        value: Raw value read from the legacy column
        default: Replacement for malformed values

    Returns:
        Normalized date string
    """
    fallback = default or today_utc()
    if not isinstance(value, str) or not ISO_DATE_PATTERN.fullmatch(value):
        return fallback
    try:
        return date.fromisoformat(value).isoformat()
    except ValueError:
        # Right shape, impossible day such as 2024-02-30
        return fallback
