"""
Routine repository (template store).

A routine is a named, reusable list of exercises. Its entries follow the
same group rule as a workout session, scoped by routine_id. Routines and
their entries are hard deleted.
"""

import sqlite3
from typing import Iterable, List, Optional, Tuple

from ..core.database import Database
from ..errors import NotFoundError, ValidationError
from ..group_validator import ensure_valid_group, ensure_valid_groups
from ..models import (
    Routine,
    RoutineExercise,
    RoutineExerciseWithDetails,
    RoutineWithExercises,
)
from ..ordering import OrderingEngine, RoutineScope, get_scope_groups

ENTRY_COLUMNS = (
    "routine_id", "exercise_id", "order_index", "sets", "reps", "weight", "notes",
    "group_number",
)


class RoutineRepository:
    """
    Repository for routines and their exercise templates.

    Handles:
    - Routine CRUD (hard delete, entries removed in the same transaction)
    - Whole-template replacement in one transaction
    - Single-entry add/update/remove, gated by the group rule
    - Reordering and group renumbering through OrderingEngine
    """

    def __init__(self, db: Database, logger=None):
        """
        Initialize repository.

        Args:
            db: Store handle
            logger: Optional logger instance
        """
        self.db = db
        self.logger = logger
        self.ordering = OrderingEngine(db, logger)

    def _row_to_routine(self, row: sqlite3.Row | dict) -> Routine:
        return Routine.model_validate(dict(row))

    def _row_to_entry(self, row: sqlite3.Row | dict) -> RoutineExercise:
        return RoutineExercise.model_validate(dict(row))

    def _require_routine(self, conn: sqlite3.Connection, routine_id: int) -> None:
        row = conn.execute("SELECT 1 FROM routines WHERE id = ?", (routine_id,)).fetchone()
        if not row:
            raise NotFoundError(f"Routine not found: {routine_id}")

    def _insert_entry(self, conn: sqlite3.Connection, entry: RoutineExercise, routine_id: int) -> int:
        data = entry.model_dump(include=set(ENTRY_COLUMNS))
        data["routine_id"] = routine_id
        cursor = conn.execute(
            f"INSERT INTO routine_exercises ({', '.join(ENTRY_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in ENTRY_COLUMNS)})",
            tuple(data[c] for c in ENTRY_COLUMNS)
        )
        return cursor.lastrowid

    # Routines

    def create_routine(self, routine: Routine) -> Routine:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO routines (name, code) VALUES (?, ?)",
                (routine.name, routine.code)
            )
            new_id = cursor.lastrowid

        if self.logger:
            self.logger.debug(f"Created routine {new_id} ({routine.code})")
        return self.get_routine_by_id(new_id)

    def create_routine_with_exercises(
        self,
        routine: Routine,
        exercises: List[RoutineExercise]
    ) -> RoutineWithExercises:
        """
        Create a routine and its template in one transaction.

        The entries' routine_id is ignored and set to the new routine.
        """
        ensure_valid_groups(set(), [entry.group_number for entry in exercises])

        with self.db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO routines (name, code) VALUES (?, ?)",
                (routine.name, routine.code)
            )
            routine_id = cursor.lastrowid
            for entry in exercises:
                self._insert_entry(conn, entry, routine_id)

        if self.logger:
            self.logger.debug(f"Created routine {routine_id} with {len(exercises)} exercises")
        return self.get_routine_with_exercises(routine_id)

    def get_routine_by_id(self, routine_id: int) -> Optional[Routine]:
        row = self.db.execute_query(
            "SELECT * FROM routines WHERE id = ?", (routine_id,), fetch_one=True
        )
        return self._row_to_routine(row) if row else None

    def get_routine_with_exercises(self, routine_id: int) -> Optional[RoutineWithExercises]:
        routine = self.get_routine_by_id(routine_id)
        if routine is None:
            return None
        return RoutineWithExercises(
            **routine.model_dump(),
            exercises=self.get_routine_exercises(routine_id)
        )

    def update_routine(self, routine: Routine) -> Routine:
        """
        Rename a routine or change its code.

        Raises:
            NotFoundError: If the routine does not exist
        """
        rowcount = self.db.execute_update(
            "UPDATE routines SET name = ?, code = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
            (routine.name, routine.code, routine.id)
        )
        if rowcount == 0:
            raise NotFoundError(f"Routine not found: {routine.id}")
        return self.get_routine_by_id(routine.id)

    def delete_routine(self, routine_id: int) -> None:
        """
        Hard delete a routine and its entries. There is no restore.

        Raises:
            NotFoundError: If the routine does not exist
        """
        with self.db.transaction() as conn:
            conn.execute("DELETE FROM routine_exercises WHERE routine_id = ?", (routine_id,))
            cursor = conn.execute("DELETE FROM routines WHERE id = ?", (routine_id,))
            if cursor.rowcount == 0:
                raise NotFoundError(f"Routine not found: {routine_id}")

        if self.logger:
            self.logger.debug(f"Deleted routine {routine_id}")

    def list_routines(self) -> List[Routine]:
        rows = self.db.execute_query("SELECT * FROM routines ORDER BY name, id")
        return [self._row_to_routine(row) for row in rows]

    def search_routines(self, query: str) -> List[Routine]:
        pattern = f"%{query.strip().lower()}%"
        rows = self.db.execute_query(
            "SELECT * FROM routines WHERE LOWER(name) LIKE ? OR LOWER(code) LIKE ? ORDER BY name, id",
            (pattern, pattern)
        )
        return [self._row_to_routine(row) for row in rows]

    # Template entries

    def get_routine_exercises(self, routine_id: int) -> List[RoutineExerciseWithDetails]:
        """Entries of a routine with exercise display fields, by order_index."""
        rows = self.db.execute_query(
            """
            SELECT re.*, e.name AS exercise_name, e.code AS exercise_code
            FROM routine_exercises re
            JOIN exercise e ON re.exercise_id = e.id
            WHERE re.routine_id = ?
            ORDER BY re.order_index ASC, re.id ASC
            """,
            (routine_id,)
        )
        return [RoutineExerciseWithDetails.model_validate(dict(row)) for row in rows]

    def get_routine_exercise(self, entry_id: int) -> Optional[RoutineExercise]:
        row = self.db.execute_query(
            "SELECT * FROM routine_exercises WHERE id = ?", (entry_id,), fetch_one=True
        )
        return self._row_to_entry(row) if row else None

    def existing_groups(self, routine_id: int) -> set[int]:
        with self.db.get_connection() as conn:
            return get_scope_groups(conn, RoutineScope(routine_id))

    def add_exercise_to_routine(self, entry: RoutineExercise) -> RoutineExercise:
        """
        Add one exercise to a routine.

        Raises:
            NotFoundError: If the routine does not exist
            ValidationError: If the group would break contiguity
            StorageError: If the exercise is already in the routine
        """
        with self.db.transaction() as conn:
            self._require_routine(conn, entry.routine_id)
            ensure_valid_group(
                get_scope_groups(conn, RoutineScope(entry.routine_id)),
                entry.group_number
            )
            new_id = self._insert_entry(conn, entry, entry.routine_id)

        return self.get_routine_exercise(new_id)

    def update_routine_exercise(self, entry: RoutineExercise) -> RoutineExercise:
        """
        Update an entry's order, prescription and group.

        The group is checked against the routine's other entries. The entry
        stays in its routine with its exercise; both ids must match the
        stored row.

        Raises:
            NotFoundError: If the entry does not exist in the given routine
            ValidationError: If the exercise id differs from the stored one,
                or the group would break contiguity
        """
        with self.db.transaction() as conn:
            row = conn.execute(
                "SELECT routine_id, exercise_id FROM routine_exercises WHERE id = ?", (entry.id,)
            ).fetchone()
            if not row or row["routine_id"] != entry.routine_id:
                raise NotFoundError(
                    f"Routine exercise {entry.id} not found in routine {entry.routine_id}"
                )
            if row["exercise_id"] != entry.exercise_id:
                raise ValidationError(
                    "The exercise of a routine entry cannot be changed; remove it and add the new one"
                )

            ensure_valid_group(
                get_scope_groups(conn, RoutineScope(row["routine_id"]), exclude_ids=[entry.id]),
                entry.group_number
            )
            conn.execute(
                """
                UPDATE routine_exercises
                SET order_index = ?, sets = ?, reps = ?, weight = ?, notes = ?,
                    group_number = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (entry.order_index, entry.sets, entry.reps, entry.weight, entry.notes,
                 entry.group_number, entry.id)
            )

        return self.get_routine_exercise(entry.id)

    def remove_exercise_from_routine(self, routine_id: int, exercise_id: int) -> None:
        """
        Remove an exercise from a routine.

        Groups are not compacted; call renumber_routine_groups() afterwards
        if the removal left a gap.

        Raises:
            NotFoundError: If the exercise is not in the routine
        """
        rowcount = self.db.execute_update(
            "DELETE FROM routine_exercises WHERE routine_id = ? AND exercise_id = ?",
            (routine_id, exercise_id)
        )
        if rowcount == 0:
            raise NotFoundError(f"Exercise {exercise_id} is not in routine {routine_id}")

    def replace_routine_exercises(
        self,
        routine_id: int,
        exercises: List[RoutineExercise]
    ) -> List[RoutineExerciseWithDetails]:
        """
        Replace a routine's whole template in one transaction.

        Raises:
            NotFoundError: If the routine does not exist
            ValidationError: If the new groups are not contiguous from 1
        """
        ensure_valid_groups(set(), [entry.group_number for entry in exercises])

        with self.db.transaction() as conn:
            self._require_routine(conn, routine_id)
            conn.execute("DELETE FROM routine_exercises WHERE routine_id = ?", (routine_id,))
            for entry in exercises:
                self._insert_entry(conn, entry, routine_id)

        if self.logger:
            self.logger.debug(f"Replaced routine {routine_id} template with {len(exercises)} exercises")
        return self.get_routine_exercises(routine_id)

    def reorder_routine_exercises(self, routine_id: int, exercise_orders: Iterable[Tuple[int, int]]) -> int:
        """Write (exercise_id, order_index) pairs of one routine unconditionally."""
        return self.ordering.update_order(
            "routine_exercises",
            exercise_orders,
            key_column="exercise_id",
            scope=RoutineScope(routine_id)
        )

    def renumber_routine_groups(self, routine_id: int) -> int:
        """Compact a routine's groups to 1..N; returns the number of rows changed."""
        return self.ordering.renumber_groups(RoutineScope(routine_id))
