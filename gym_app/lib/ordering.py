"""
Display order and group numbering within a scope.

A scope is the set of rows the group rule applies to: a person's day for
workout entries, a routine for routine entries.

- update_order() writes order_index values exactly as given. order_index is
  a display hint; it is never checked for uniqueness or gaps.
- renumber_groups() compacts the scope's group numbers to 1..N, keeping their
  relative order and touching only rows whose number changes.
"""

import logging
import sqlite3
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple, Union

from .core.database import Database


@dataclass(frozen=True)
class WorkoutScope:
    """All workout entries of one person on one day."""

    person_id: int
    date: str

    table = "workout_entries"

    def where(self) -> Tuple[str, tuple]:
        return "person_id = ? AND date(date) = date(?)", (self.person_id, self.date)


@dataclass(frozen=True)
class RoutineScope:
    """All entries of one routine template."""

    routine_id: int

    table = "routine_exercises"

    def where(self) -> Tuple[str, tuple]:
        return "routine_id = ?", (self.routine_id,)


Scope = Union[WorkoutScope, RoutineScope]


def get_scope_groups(
    conn: sqlite3.Connection,
    scope: Scope,
    exclude_ids: Iterable[int] = ()
) -> set[int]:
    """
    Distinct group numbers persisted in a scope.

    Args:
        conn: Connection, usually inside the transaction about to write
        scope: Scope to read
        exclude_ids: Row ids to leave out (rows being replaced or deleted)

    Returns:
        Set of group numbers; NULL counts as group 1
    """
    where, params = scope.where()
    exclude = list(exclude_ids)
    if exclude:
        placeholders = ",".join("?" for _ in exclude)
        where = f"{where} AND id NOT IN ({placeholders})"
        params = params + tuple(exclude)
    cursor = conn.execute(
        f"SELECT DISTINCT COALESCE(group_number, 1) FROM {scope.table} WHERE {where}",
        params
    )
    return {row[0] for row in cursor.fetchall()}


class OrderingEngine:
    """Applies order and group rewrites inside a single transaction."""

    def __init__(self, db: Database, logger: Optional[logging.Logger] = None):
        self.db = db
        self.logger = logger or logging.getLogger(__name__)

    def update_order(
        self,
        table: str,
        pairs: Iterable[Tuple[int, int]],
        key_column: str = "id",
        scope: Optional[Scope] = None,
        conn: Optional[sqlite3.Connection] = None
    ) -> int:
        """
        Write each (key, order_index) pair unconditionally.

        Args:
            table: workout_entries or routine_exercises
            pairs: (key, new_order) tuples, key matched against key_column
            key_column: Column identifying the row, "id" or "exercise_id"
            scope: Optional scope restricting which rows may be written
            conn: Existing transaction to join

        Returns:
            Number of rows written
        """
        sql = f"UPDATE {table} SET order_index = ?, updated_at = CURRENT_TIMESTAMP WHERE {key_column} = ?"
        scope_params: tuple = ()
        if scope is not None:
            where, scope_params = scope.where()
            sql = f"{sql} AND {where}"

        written = 0
        with self.db.join_transaction(conn) as tx:
            for key, new_order in pairs:
                cursor = tx.execute(sql, (new_order, key) + scope_params)
                written += cursor.rowcount

        self.logger.debug(f"Updated order_index of {written} row(s) in {table}")
        return written

    def renumber_groups(self, scope: Scope, conn: Optional[sqlite3.Connection] = None) -> int:
        """
        Compact a scope's group numbers to 1..N.

        Groups keep their relative order. All changes are made by a single
        UPDATE so a remapping never collides with a number still in use.
        Running it again immediately changes nothing.

        Args:
            scope: Scope to renumber
            conn: Existing transaction to join

        Returns:
            Number of rows whose group number changed
        """
        where, params = scope.where()
        with self.db.join_transaction(conn) as tx:
            cursor = tx.execute(
                f"SELECT DISTINCT COALESCE(group_number, 1) FROM {scope.table} "
                f"WHERE {where} ORDER BY 1",
                params
            )
            groups = [row[0] for row in cursor.fetchall()]
            mapping = {
                old: new for new, old in enumerate(groups, start=1) if old != new
            }
            if not mapping:
                return 0

            cases = " ".join("WHEN ? THEN ?" for _ in mapping)
            case_params = tuple(value for pair in mapping.items() for value in pair)
            placeholders = ",".join("?" for _ in mapping)
            cursor = tx.execute(
                f"UPDATE {scope.table} "
                f"SET group_number = CASE COALESCE(group_number, 1) {cases} END, "
                f"updated_at = CURRENT_TIMESTAMP "
                f"WHERE {where} AND COALESCE(group_number, 1) IN ({placeholders})",
                case_params + params + tuple(mapping)
            )
            changed = cursor.rowcount

        self.logger.info(f"Renumbered groups in {scope}: {mapping} ({changed} row(s))")
        return changed
