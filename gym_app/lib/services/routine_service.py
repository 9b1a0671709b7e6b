"""
Routine service.

Validates input, then delegates to RoutineRepository.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ..errors import NotFoundError, ValidationError
from ..models import (
    Routine,
    RoutineExercise,
    RoutineExerciseWithDetails,
    RoutineWithExercises,
    WorkoutEntry,
)
from ..repository.routine_repository import RoutineRepository
from .validation import (
    clean_notes,
    require_text,
    validate_batch_groups,
    validate_group_number,
    validate_id,
    validate_prescription,
)


class RoutineService:
    """Entry point for routine templates."""

    def __init__(self, repository: RoutineRepository, logger: Optional[logging.Logger] = None):
        self.repository = repository
        self.logger = logger or logging.getLogger(__name__)

    def _require_routine(self, routine_id: int) -> Routine:
        validate_id(routine_id, "routine ID")
        routine = self.repository.get_routine_by_id(routine_id)
        if routine is None:
            raise NotFoundError(f"Routine not found: {routine_id}")
        return routine

    def _validate_entry(self, entry: RoutineExercise, index: Optional[int] = None) -> RoutineExercise:
        prefix = f"Exercise {index + 1}: " if index is not None else ""
        if entry.exercise_id <= 0:
            raise ValidationError(f"{prefix}Invalid exercise ID")
        validate_prescription(entry.sets, entry.reps, entry.weight, entry.order_index, prefix)
        validate_group_number(entry.group_number, prefix)
        return entry.model_copy(update={"notes": clean_notes(entry.notes)})

    # Routines

    def create_routine(self, name: str, code: str) -> Routine:
        return self.repository.create_routine(
            Routine(name=require_text(name, "Routine name"), code=require_text(code, "Routine code"))
        )

    def get_routine_by_id(self, routine_id: int) -> Optional[Routine]:
        validate_id(routine_id, "routine ID")
        return self.repository.get_routine_by_id(routine_id)

    def get_routine_with_exercises(self, routine_id: int) -> Optional[RoutineWithExercises]:
        validate_id(routine_id, "routine ID")
        return self.repository.get_routine_with_exercises(routine_id)

    def update_routine(self, routine_id: int, name: str, code: str) -> Routine:
        validate_id(routine_id, "routine ID")
        return self.repository.update_routine(
            Routine(
                id=routine_id,
                name=require_text(name, "Routine name"),
                code=require_text(code, "Routine code"),
            )
        )

    def delete_routine(self, routine_id: int) -> None:
        validate_id(routine_id, "routine ID")
        self.repository.delete_routine(routine_id)

    def list_routines(self) -> List[Routine]:
        return self.repository.list_routines()

    def search_routines(self, query: str) -> List[Routine]:
        if not query or not query.strip():
            return self.repository.list_routines()
        return self.repository.search_routines(query)

    # Template entries

    def add_exercise_to_routine(
        self,
        routine_id: int,
        exercise_id: int,
        order_index: int = 0,
        sets: Optional[int] = None,
        reps: Optional[int] = None,
        weight: Optional[float] = None,
        notes: Optional[str] = None,
        group_number: int = 1
    ) -> RoutineExercise:
        """
        Add an exercise to an existing routine.

        Raises:
            NotFoundError: If the routine does not exist
            ValidationError: On invalid fields, or a group that would leave
                the routine's groups non-contiguous
        """
        self._require_routine(routine_id)
        entry = self._validate_entry(RoutineExercise(
            routine_id=routine_id,
            exercise_id=exercise_id,
            order_index=order_index,
            sets=sets,
            reps=reps,
            weight=weight,
            notes=notes,
            group_number=group_number,
        ))
        return self.repository.add_exercise_to_routine(entry)

    def update_routine_exercise(
        self,
        entry_id: int,
        routine_id: int,
        exercise_id: int,
        order_index: int = 0,
        sets: Optional[int] = None,
        reps: Optional[int] = None,
        weight: Optional[float] = None,
        notes: Optional[str] = None,
        group_number: int = 1
    ) -> RoutineExercise:
        """Update an entry in place; routine_id and exercise_id must be the stored ones."""
        validate_id(entry_id, "routine exercise ID")
        validate_id(routine_id, "routine ID")
        entry = self._validate_entry(RoutineExercise(
            id=entry_id,
            routine_id=routine_id,
            exercise_id=exercise_id,
            order_index=order_index,
            sets=sets,
            reps=reps,
            weight=weight,
            notes=notes,
            group_number=group_number,
        ))
        return self.repository.update_routine_exercise(entry)

    def remove_exercise_from_routine(self, routine_id: int, exercise_id: int) -> None:
        """Remove an exercise; groups are left as they are until renumbered."""
        validate_id(routine_id, "routine ID")
        validate_id(exercise_id, "exercise ID")
        self.repository.remove_exercise_from_routine(routine_id, exercise_id)

    def get_routine_exercises(self, routine_id: int) -> List[RoutineExerciseWithDetails]:
        validate_id(routine_id, "routine ID")
        return self.repository.get_routine_exercises(routine_id)

    def reorder_routine_exercises(
        self,
        routine_id: int,
        exercise_orders: Iterable[Tuple[int, int]]
    ) -> int:
        exercise_orders = list(exercise_orders)
        if not exercise_orders:
            return 0
        validate_id(routine_id, "routine ID")
        for exercise_id, order_index in exercise_orders:
            validate_id(exercise_id, "exercise ID")
            if order_index < 0:
                raise ValidationError("Order cannot be negative")
        return self.repository.reorder_routine_exercises(routine_id, exercise_orders)

    def replace_routine_exercises(
        self,
        routine_id: int,
        exercises: List[RoutineExercise]
    ) -> List[RoutineExerciseWithDetails]:
        self._require_routine(routine_id)
        exercises = [self._validate_entry(entry, index) for index, entry in enumerate(exercises)]
        validate_batch_groups(entry.group_number for entry in exercises)
        return self.repository.replace_routine_exercises(routine_id, exercises)

    def renumber_routine_groups(self, routine_id: int) -> int:
        validate_id(routine_id, "routine ID")
        return self.repository.renumber_routine_groups(routine_id)

    def create_routine_from_workout(
        self,
        name: str,
        code: str,
        workout_entries: List[WorkoutEntry]
    ) -> RoutineWithExercises:
        """
        Turn a recorded session into a new routine.

        Exercises keep their session order (as order_index 0..n-1), their
        prescription and their group numbers. The routine and its template
        are created in one transaction.
        """
        exercises = [
            RoutineExercise(
                routine_id=0,
                exercise_id=entry.exercise_id,
                order_index=index,
                sets=entry.sets,
                reps=entry.reps,
                weight=entry.weight,
                notes=entry.notes,
                group_number=entry.group_number,
            )
            for index, entry in enumerate(workout_entries)
        ]
        exercises = [self._validate_entry(entry, index) for index, entry in enumerate(exercises)]
        validate_batch_groups(entry.group_number for entry in exercises)

        routine = Routine(name=require_text(name, "Routine name"), code=require_text(code, "Routine code"))
        created = self.repository.create_routine_with_exercises(routine, exercises)
        self.logger.info(f"Created routine {created.code} from a workout with {len(exercises)} exercises")
        return created
