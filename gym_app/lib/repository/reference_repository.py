"""
Repositories for the soft deletable reference tables (people, exercise).

Default listings, searches and counts only see active rows. get_by_id()
resolves deleted rows as well, so past workout and routine entries can
still show who and what they refer to.
"""

import sqlite3
from typing import Generic, List, Optional, Type, TypeVar

from pydantic import BaseModel

from ..core.database import Database
from ..errors import NotFoundError
from ..models import Exercise, Person
from ..soft_delete import SoftDeleteLedger, active_filter, deleted_filter

ModelT = TypeVar("ModelT", bound=BaseModel)


class ReferenceRepository(Generic[ModelT]):
    """
    CRUD with soft delete for one reference table.

    Subclasses set the table, model, editable columns, sort order and the
    columns searched by search().
    """

    table: str
    model: Type[ModelT]
    columns: tuple[str, ...]
    order_by: str
    search_columns: tuple[str, ...]

    def __init__(self, db: Database, logger=None):
        """
        Initialize repository.

        Args:
            db: Store handle
            logger: Optional logger instance
        """
        self.db = db
        self.logger = logger
        self.ledger = SoftDeleteLedger(db, self.table, logger)

    def _row_to_model(self, row: sqlite3.Row | dict) -> ModelT:
        return self.model.model_validate(dict(row))

    def create(self, item: ModelT) -> ModelT:
        """
        Insert a new row; it starts out active.

        Returns:
            The stored row, with its id
        """
        data = item.model_dump(include=set(self.columns))
        column_names = ", ".join(self.columns)
        placeholders = ", ".join("?" for _ in self.columns)

        with self.db.transaction() as conn:
            cursor = conn.execute(
                f"INSERT INTO {self.table} ({column_names}, is_active) VALUES ({placeholders}, 1)",
                tuple(data[c] for c in self.columns)
            )
            new_id = cursor.lastrowid

        if self.logger:
            self.logger.debug(f"Inserted {self.table} {new_id}")
        return self.get_by_id(new_id)

    def get_by_id(self, item_id: int) -> Optional[ModelT]:
        """Get a row by id, whether active or soft deleted."""
        row = self.db.execute_query(
            f"SELECT * FROM {self.table} WHERE id = ?", (item_id,), fetch_one=True
        )
        return self._row_to_model(row) if row else None

    def update(self, item: ModelT) -> ModelT:
        """
        Update the editable columns of an existing row.

        Raises:
            NotFoundError: If no row has this id
        """
        data = item.model_dump(include=set(self.columns))
        assignments = ", ".join(f"{c} = ?" for c in self.columns)
        rowcount = self.db.execute_update(
            f"UPDATE {self.table} SET {assignments} WHERE id = ?",
            tuple(data[c] for c in self.columns) + (item.id,)
        )
        if rowcount == 0:
            raise NotFoundError(f"{self.table} row not found: {item.id}")
        return self.get_by_id(item.id)

    def list_all(self) -> List[ModelT]:
        """List active rows."""
        rows = self.db.execute_query(
            f"SELECT * FROM {self.table} WHERE {active_filter()} ORDER BY {self.order_by}"
        )
        return [self._row_to_model(row) for row in rows]

    def search(self, query: str) -> List[ModelT]:
        """Case-insensitive substring search over the search columns, active rows only."""
        pattern = f"%{query.strip().lower()}%"
        matches = " OR ".join(f"LOWER({c}) LIKE ?" for c in self.search_columns)
        rows = self.db.execute_query(
            f"SELECT * FROM {self.table} WHERE {active_filter()} AND ({matches}) ORDER BY {self.order_by}",
            tuple(pattern for _ in self.search_columns)
        )
        return [self._row_to_model(row) for row in rows]

    def count(self) -> int:
        return self.ledger.count_active()

    def delete(self, item_id: int) -> None:
        """Soft delete; the row stays resolvable by id."""
        self.ledger.delete(item_id)

    def restore(self, item_id: int) -> None:
        self.ledger.restore(item_id)

    def list_deleted(self) -> List[ModelT]:
        """List soft deleted rows, most recently deleted first."""
        rows = self.db.execute_query(
            f"SELECT * FROM {self.table} WHERE {deleted_filter()} ORDER BY deleted_at DESC, id DESC"
        )
        return [self._row_to_model(row) for row in rows]

    def count_deleted(self) -> int:
        return self.ledger.count_deleted()


class PersonRepository(ReferenceRepository[Person]):
    """People whose workouts are tracked."""

    table = "people"
    model = Person
    columns = ("name", "last_name", "phone")
    order_by = "name, last_name"
    search_columns = ("name", "last_name")


class ExerciseRepository(ReferenceRepository[Exercise]):
    """The exercise catalog."""

    table = "exercise"
    model = Exercise
    columns = ("name", "code")
    order_by = "name"
    search_columns = ("name", "code")

    def get_by_code(self, code: str) -> Optional[Exercise]:
        row = self.db.execute_query(
            "SELECT * FROM exercise WHERE code = ?", (code,), fetch_one=True
        )
        return self._row_to_model(row) if row else None
