"""
Schema migration versions.

Each migration is a separate file in this directory, numbered by the table
version it produces.
"""

from .m002_soft_delete_columns import (
    Migration002ExerciseSoftDelete,
    Migration002PeopleSoftDelete,
)
from .m002_workout_entries_date_type import Migration002WorkoutEntriesDateType
from .m003_workout_entries_order_index import Migration003WorkoutEntriesOrderIndex
from .m004_workout_entries_group_number import Migration004WorkoutEntriesGroupNumber
from .m002_routine_exercises_group_number import Migration002RoutineExercisesGroupNumber

# All migrations; the manager orders them per table by version
ALL_MIGRATIONS = [
    Migration002PeopleSoftDelete,
    Migration002ExerciseSoftDelete,
    Migration002WorkoutEntriesDateType,
    Migration003WorkoutEntriesOrderIndex,
    Migration004WorkoutEntriesGroupNumber,
    Migration002RoutineExercisesGroupNumber,
]

__all__ = ["ALL_MIGRATIONS"]
