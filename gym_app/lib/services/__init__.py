"""
Service layer for business logic.

Services validate input and coordinate repository access.
"""

from gym_app.lib.services.reference_service import ExerciseService, PersonService
from gym_app.lib.services.routine_service import RoutineService
from gym_app.lib.services.workout_entry_service import WorkoutEntryService

__all__ = [
    "ExerciseService",
    "PersonService",
    "RoutineService",
    "WorkoutEntryService",
]
