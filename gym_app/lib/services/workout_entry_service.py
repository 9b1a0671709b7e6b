"""
Workout entry service.

Validates input, then delegates to WorkoutEntryRepository. Field checks and
the batch's own group contiguity are done here, before any transaction;
contiguity against persisted rows is checked by the repository inside its
transaction.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ..errors import ValidationError
from ..models import WorkoutEntry, WorkoutEntryWithDetails
from ..repository.workout_entry_repository import WorkoutEntryRepository
from .validation import (
    clean_notes,
    validate_batch_groups,
    validate_date,
    validate_group_number,
    validate_id,
    validate_prescription,
)


class WorkoutEntryService:
    """Entry point for workout sessions."""

    def __init__(self, repository: WorkoutEntryRepository, logger: Optional[logging.Logger] = None):
        self.repository = repository
        self.logger = logger or logging.getLogger(__name__)

    def _validate_entry(self, entry: WorkoutEntry, index: Optional[int] = None) -> WorkoutEntry:
        prefix = f"Exercise {index + 1}: " if index is not None else ""
        if entry.person_id <= 0:
            raise ValidationError(f"{prefix}Invalid person ID")
        if entry.exercise_id <= 0:
            raise ValidationError(f"{prefix}Invalid exercise ID")
        validate_date(entry.date)
        validate_prescription(entry.sets, entry.reps, entry.weight, entry.order_index, prefix)
        validate_group_number(entry.group_number, prefix)
        return entry.model_copy(update={"notes": clean_notes(entry.notes)})

    def _validate_entries(self, entries: List[WorkoutEntry]) -> List[WorkoutEntry]:
        return [self._validate_entry(entry, index) for index, entry in enumerate(entries)]

    def _validate_same_session(self, entries: List[WorkoutEntry], person_id: int, date: str) -> None:
        for index, entry in enumerate(entries):
            if entry.person_id != person_id:
                raise ValidationError(f"Person ID mismatch in exercise {index + 1}")
            if entry.date != date:
                raise ValidationError(f"Date mismatch in exercise {index + 1}")

    # Writes

    def create_workout_entry(self, entry: WorkoutEntry) -> WorkoutEntry:
        return self.repository.create(self._validate_entry(entry))

    def create_batch(self, entries: List[WorkoutEntry]) -> List[WorkoutEntry]:
        """
        Add entries to a day that may already hold some.

        Only fields are checked here; the repository checks the batch's
        groups together with the ones already stored for that day.
        """
        if not entries:
            return []
        return self.repository.create_batch(self._validate_entries(entries))

    def create_workout_session(self, entries: List[WorkoutEntry]) -> List[WorkoutEntry]:
        """
        Save a whole session, replacing whatever the day already had.

        Raises:
            ValidationError: If the session is empty, mixes people or dates,
                or its groups are not contiguous from 1
        """
        if not entries:
            raise ValidationError("Workout session cannot be empty")
        entries = self._validate_entries(entries)
        validate_batch_groups(entry.group_number for entry in entries)

        first = entries[0]
        self._validate_same_session(entries, first.person_id, first.date)
        return self.repository.replace_session(first.person_id, first.date, entries)

    def replace_workout_session(
        self,
        person_id: int,
        date: str,
        entries: List[WorkoutEntry]
    ) -> List[WorkoutEntry]:
        """
        Replace a person's day. An empty list clears it.

        Raises:
            ValidationError: On invalid ids, dates or groups, or entries
                belonging to another person or day
        """
        validate_id(person_id, "person ID")
        validate_date(date)
        if entries:
            entries = self._validate_entries(entries)
            validate_batch_groups(entry.group_number for entry in entries)
            self._validate_same_session(entries, person_id, date)
        return self.repository.replace_session(person_id, date, entries)

    def replace_workout_session_granular(
        self,
        ids_to_delete: List[int],
        entries_to_insert: List[WorkoutEntry]
    ) -> List[WorkoutEntry]:
        for entry_id in ids_to_delete:
            validate_id(entry_id, "workout entry ID for deletion")
        entries = self._validate_entries(entries_to_insert)
        return self.repository.replace_session_granular(list(ids_to_delete), entries)

    def update_workout_entry(self, entry: WorkoutEntry) -> WorkoutEntry:
        validate_id(entry.id, "workout entry ID")
        return self.repository.update(self._validate_entry(entry))

    def delete_workout_entry(self, entry_id: int) -> None:
        validate_id(entry_id, "workout entry ID")
        self.repository.delete(entry_id)

    def delete_workout_session(self, person_id: int, date: str) -> int:
        validate_id(person_id, "person ID")
        validate_date(date)
        return self.repository.delete_by_person_and_date(person_id, date)

    def update_exercise_order(self, exercise_orders: Iterable[Tuple[int, int]]) -> int:
        """Apply (entry_id, order_index) pairs; order values are not checked for gaps."""
        exercise_orders = list(exercise_orders)
        if not exercise_orders:
            return 0
        for entry_id, order_index in exercise_orders:
            validate_id(entry_id, "workout entry ID")
            if order_index < 0:
                raise ValidationError("Order cannot be negative")
        return self.repository.update_exercise_order(exercise_orders)

    def renumber_groups(self, person_id: int, date: str) -> int:
        validate_id(person_id, "person ID")
        validate_date(date)
        return self.repository.renumber_groups(person_id, date)

    # Reads

    def get_workout_entry(self, entry_id: int) -> Optional[WorkoutEntry]:
        validate_id(entry_id, "workout entry ID")
        return self.repository.get_by_id(entry_id)

    def get_workout_entries_by_person(self, person_id: int) -> List[WorkoutEntryWithDetails]:
        validate_id(person_id, "person ID")
        return self.repository.get_by_person(person_id)

    def get_workout_entries_by_person_and_date_range(
        self,
        person_id: int,
        start_date: str,
        end_date: str
    ) -> List[WorkoutEntryWithDetails]:
        validate_id(person_id, "person ID")
        validate_date(start_date, "start date")
        validate_date(end_date, "end date")
        return self.repository.get_by_person_and_date_range(person_id, start_date, end_date)

    def list_all_workout_entries(self) -> List[WorkoutEntryWithDetails]:
        return self.repository.list_all()
