"""
Repository layer for data access.

Provides data access objects for the store's tables.
"""

from gym_app.lib.repository.reference_repository import ExerciseRepository, PersonRepository
from gym_app.lib.repository.routine_repository import RoutineRepository
from gym_app.lib.repository.workout_entry_repository import WorkoutEntryRepository

__all__ = ["ExerciseRepository", "PersonRepository", "RoutineRepository", "WorkoutEntryRepository"]
