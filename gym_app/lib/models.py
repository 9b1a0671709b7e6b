"""
Pydantic models for people, exercises, workout sessions and routines.

These models provide type safety for data passed between the services and
the repositories. Timestamps are kept as the strings SQLite stores.
"""

from datetime import date as date_type
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional


class Person(BaseModel):
    """A person whose workouts are tracked. Soft deletable."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    name: str
    last_name: str
    phone: str
    deleted_at: Optional[str] = None
    is_active: Optional[bool] = True


class Exercise(BaseModel):
    """An exercise in the catalog. Soft deletable, code is unique."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    name: str
    code: str
    deleted_at: Optional[str] = None
    is_active: Optional[bool] = True


class WorkoutEntry(BaseModel):
    """
    One exercise performed by a person on a given day.

    order_index is a display hint only. group_number clusters the entries of
    a (person_id, date) scope and must stay contiguous from 1.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    person_id: int
    exercise_id: int
    date: str  # YYYY-MM-DD
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight: Optional[float] = None  # kg
    notes: Optional[str] = None
    order_index: int = 0
    group_number: int = 1
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator('date', mode='before')
    @classmethod
    def format_date(cls, v):
        """Accept datetime.date values and store them as ISO strings."""
        if isinstance(v, date_type):
            return v.isoformat()
        return v

    @field_validator('order_index', 'group_number', mode='before')
    @classmethod
    def default_when_null(cls, v, info):
        """Rows written before the column existed may carry NULL."""
        if v is None:
            return 1 if info.field_name == 'group_number' else 0
        return v


class WorkoutEntryWithDetails(WorkoutEntry):
    """Workout entry joined with display fields of its person and exercise."""

    person_name: str
    person_last_name: str
    exercise_name: str
    exercise_code: str


class Routine(BaseModel):
    """A reusable workout template. Hard deleted together with its entries."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    name: str
    code: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class RoutineExercise(BaseModel):
    """One exercise slot of a routine; group_number is contiguous within routine_id."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    routine_id: int
    exercise_id: int
    order_index: int = 0
    sets: Optional[int] = None
    reps: Optional[int] = None
    weight: Optional[float] = None
    notes: Optional[str] = None
    group_number: int = 1
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator('group_number', mode='before')
    @classmethod
    def default_group(cls, v):
        return 1 if v is None else v


class RoutineExerciseWithDetails(RoutineExercise):
    exercise_name: str
    exercise_code: str


class RoutineWithExercises(Routine):
    """Routine together with its template, ordered by order_index."""

    exercises: list[RoutineExerciseWithDetails] = Field(default_factory=list)
