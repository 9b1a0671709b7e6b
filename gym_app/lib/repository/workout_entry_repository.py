"""
Workout entry repository (session store).

A session is all entries of one person on one day. Entries are mostly
written in whole-session batches: replace_session() swaps a day's entries,
replace_session_granular() applies a computed diff. Both run in a single
transaction, so a failed insert never loses the deleted rows.

Every write that introduces or changes a group number checks the group rule
inside the transaction, against what is persisted in the target scope,
before anything is written. Hard deletes are not checked; call
renumber_groups() afterwards to close gaps.
"""

import sqlite3
from collections import defaultdict
from typing import Iterable, List, Optional, Tuple

from ..core.database import Database
from ..errors import NotFoundError
from ..group_validator import ensure_valid_group, ensure_valid_groups
from ..models import WorkoutEntry, WorkoutEntryWithDetails
from ..ordering import OrderingEngine, WorkoutScope, get_scope_groups

INSERT_COLUMNS = (
    "person_id", "exercise_id", "date", "sets", "reps", "weight", "notes",
    "order_index", "group_number",
)

DETAILS_QUERY = """
    SELECT we.*,
           p.name AS person_name,
           p.last_name AS person_last_name,
           e.name AS exercise_name,
           e.code AS exercise_code
    FROM workout_entries we
    JOIN people p ON we.person_id = p.id
    JOIN exercise e ON we.exercise_id = e.id
"""

# Newest day first, then display order, then newest entry
DETAILS_ORDER = "ORDER BY we.date DESC, we.order_index ASC, we.created_at DESC, we.id DESC"


class WorkoutEntryRepository:
    """
    Repository for workout entries using Pydantic models.

    Handles:
    - Atomic whole-day and diff-based session replacement
    - Group rule checks against persisted state
    - Display order and group renumbering through OrderingEngine
    - Reads joined with person and exercise display fields
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

    def _row_to_model(self, row: sqlite3.Row | dict) -> WorkoutEntry:
        return WorkoutEntry.model_validate(dict(row))

    def _row_to_details(self, row: sqlite3.Row | dict) -> WorkoutEntryWithDetails:
        return WorkoutEntryWithDetails.model_validate(dict(row))

    def _insert(self, conn: sqlite3.Connection, entry: WorkoutEntry) -> int:
        data = entry.model_dump(include=set(INSERT_COLUMNS))
        cursor = conn.execute(
            f"INSERT INTO workout_entries ({', '.join(INSERT_COLUMNS)}) "
            f"VALUES ({', '.join('?' for _ in INSERT_COLUMNS)})",
            tuple(data[c] for c in INSERT_COLUMNS)
        )
        return cursor.lastrowid

    def _get_many(self, ids: List[int]) -> List[WorkoutEntry]:
        if not ids:
            return []
        placeholders = ",".join("?" for _ in ids)
        rows = self.db.execute_query(
            f"SELECT * FROM workout_entries WHERE id IN ({placeholders})", tuple(ids)
        )
        by_id = {row["id"]: self._row_to_model(row) for row in rows}
        return [by_id[i] for i in ids if i in by_id]

    # Single-row operations

    def create(self, entry: WorkoutEntry) -> WorkoutEntry:
        """
        Insert one entry after checking its group against the day's groups.

        Raises:
            ValidationError: If the group would break contiguity
            StorageError: On any store failure
        """
        scope = WorkoutScope(entry.person_id, entry.date)
        with self.db.transaction() as conn:
            ensure_valid_group(get_scope_groups(conn, scope), entry.group_number)
            new_id = self._insert(conn, entry)

        if self.logger:
            self.logger.debug(f"Inserted workout entry {new_id}")
        return self.get_by_id(new_id)

    def create_batch(self, entries: List[WorkoutEntry]) -> List[WorkoutEntry]:
        """
        Insert several entries of one session together.

        The batch's groups are checked as a whole, together with what is
        already persisted for the first entry's person and date.
        """
        if not entries:
            return []

        first = entries[0]
        scope = WorkoutScope(first.person_id, first.date)
        with self.db.transaction() as conn:
            ensure_valid_groups(
                get_scope_groups(conn, scope),
                [entry.group_number for entry in entries]
            )
            new_ids = [self._insert(conn, entry) for entry in entries]

        if self.logger:
            self.logger.debug(f"Inserted {len(new_ids)} workout entries for {scope}")
        return self._get_many(new_ids)

    def get_by_id(self, entry_id: int) -> Optional[WorkoutEntry]:
        row = self.db.execute_query(
            "SELECT * FROM workout_entries WHERE id = ?", (entry_id,), fetch_one=True
        )
        return self._row_to_model(row) if row else None

    def update(self, entry: WorkoutEntry) -> WorkoutEntry:
        """
        Update an entry, possibly moving it to another day or group.

        The group is checked against the target day's groups without the
        entry itself.

        Raises:
            NotFoundError: If the entry does not exist
            ValidationError: If the group would break contiguity
        """
        scope = WorkoutScope(entry.person_id, entry.date)
        with self.db.transaction() as conn:
            exists = conn.execute(
                "SELECT 1 FROM workout_entries WHERE id = ?", (entry.id,)
            ).fetchone()
            if not exists:
                raise NotFoundError(f"Workout entry not found: {entry.id}")

            ensure_valid_group(
                get_scope_groups(conn, scope, exclude_ids=[entry.id]),
                entry.group_number
            )
            conn.execute(
                """
                UPDATE workout_entries
                SET person_id = ?, exercise_id = ?, date = ?, sets = ?, reps = ?,
                    weight = ?, notes = ?, order_index = ?, group_number = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (entry.person_id, entry.exercise_id, entry.date, entry.sets, entry.reps,
                 entry.weight, entry.notes, entry.order_index, entry.group_number, entry.id)
            )

        return self.get_by_id(entry.id)

    def delete(self, entry_id: int) -> None:
        """
        Hard delete one entry. There is no restore.

        Raises:
            NotFoundError: If the entry does not exist
        """
        rowcount = self.db.execute_update(
            "DELETE FROM workout_entries WHERE id = ?", (entry_id,)
        )
        if rowcount == 0:
            raise NotFoundError(f"Workout entry not found: {entry_id}")
        if self.logger:
            self.logger.debug(f"Deleted workout entry {entry_id}")

    def delete_by_person_and_date(self, person_id: int, date: str) -> int:
        """Hard delete a whole session; returns the number of rows removed."""
        return self.db.execute_update(
            "DELETE FROM workout_entries WHERE person_id = ? AND date(date) = date(?)",
            (person_id, date)
        )

    # Session replacement

    def replace_session(self, person_id: int, date: str, entries: List[WorkoutEntry]) -> List[WorkoutEntry]:
        """
        Replace all entries of a person's day in one transaction.

        An empty list clears the day. The entries must already carry the
        session's person and date and form a contiguous group set.

        Returns:
            The inserted entries
        """
        ensure_valid_groups(set(), [entry.group_number for entry in entries])

        with self.db.transaction() as conn:
            deleted = conn.execute(
                "DELETE FROM workout_entries WHERE person_id = ? AND date(date) = date(?)",
                (person_id, date)
            ).rowcount
            new_ids = [self._insert(conn, entry) for entry in entries]

        if self.logger:
            self.logger.debug(
                f"Replaced session {person_id}/{date}: {deleted} removed, {len(new_ids)} inserted"
            )
        return self._get_many(new_ids)

    def replace_session_granular(
        self,
        ids_to_delete: List[int],
        entries_to_insert: List[WorkoutEntry]
    ) -> List[WorkoutEntry]:
        """
        Apply a diff: delete rows by id, then insert new rows, atomically.

        For every day receiving inserts, the groups persisted there minus the
        rows being deleted, together with the inserted groups, must be
        contiguous. This is checked before anything is deleted.

        Returns:
            The inserted entries
        """
        inserts_by_scope: dict[WorkoutScope, list[int]] = defaultdict(list)
        for entry in entries_to_insert:
            inserts_by_scope[WorkoutScope(entry.person_id, entry.date)].append(entry.group_number)

        with self.db.transaction() as conn:
            for scope, groups in inserts_by_scope.items():
                ensure_valid_groups(
                    get_scope_groups(conn, scope, exclude_ids=ids_to_delete),
                    groups
                )

            if ids_to_delete:
                placeholders = ",".join("?" for _ in ids_to_delete)
                conn.execute(
                    f"DELETE FROM workout_entries WHERE id IN ({placeholders})",
                    tuple(ids_to_delete)
                )
            new_ids = [self._insert(conn, entry) for entry in entries_to_insert]

        if self.logger:
            self.logger.debug(
                f"Granular replace: {len(ids_to_delete)} deleted, {len(new_ids)} inserted"
            )
        return self._get_many(new_ids)

    # Reads

    def get_by_person(self, person_id: int) -> List[WorkoutEntryWithDetails]:
        rows = self.db.execute_query(
            f"{DETAILS_QUERY} WHERE we.person_id = ? {DETAILS_ORDER}", (person_id,)
        )
        return [self._row_to_details(row) for row in rows]

    def get_by_person_and_date_range(
        self,
        person_id: int,
        start_date: str,
        end_date: str
    ) -> List[WorkoutEntryWithDetails]:
        """
        Entries of a person between two days, both inclusive.

        Returns:
            Entries ordered by date descending, order_index ascending,
            creation time descending
        """
        rows = self.db.execute_query(
            f"""{DETAILS_QUERY}
            WHERE we.person_id = ?
              AND date(we.date) >= date(?)
              AND date(we.date) <= date(?)
            {DETAILS_ORDER}""",
            (person_id, start_date, end_date)
        )
        return [self._row_to_details(row) for row in rows]

    def list_all(self) -> List[WorkoutEntryWithDetails]:
        rows = self.db.execute_query(f"{DETAILS_QUERY} {DETAILS_ORDER}")
        return [self._row_to_details(row) for row in rows]

    def existing_groups(self, person_id: int, date: str) -> set[int]:
        """Distinct group numbers persisted for a person's day."""
        with self.db.get_connection() as conn:
            return get_scope_groups(conn, WorkoutScope(person_id, date))

    # Ordering

    def update_exercise_order(self, pairs: Iterable[Tuple[int, int]]) -> int:
        """Write (entry_id, order_index) pairs unconditionally in one transaction."""
        return self.ordering.update_order("workout_entries", pairs)

    def renumber_groups(self, person_id: int, date: str) -> int:
        """Compact a day's groups to 1..N; returns the number of rows changed."""
        return self.ordering.renumber_groups(WorkoutScope(person_id, date))
