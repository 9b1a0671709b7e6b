"""
Service wiring.

Builds the repository and service graph on top of one store handle. The
application obtains everything through get_services(), which opens the store
and runs schema management once per process.
"""

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from ..config import get_settings
from .core.database import Database
from .core.database_init import initialize_database
from .core.schema_manager import SchemaReport
from .logging_utils import get_logger, setup_logging_from_settings
from .repository import (
    ExerciseRepository,
    PersonRepository,
    RoutineRepository,
    WorkoutEntryRepository,
)
from .services import (
    ExerciseService,
    PersonService,
    RoutineService,
    WorkoutEntryService,
)


logger = get_logger(__name__)


@dataclass
class Services:
    """Everything the application talks to, sharing one store handle."""

    db: Database
    people: PersonService
    exercises: ExerciseService
    workouts: WorkoutEntryService
    routines: RoutineService
    schema_report: Optional[SchemaReport] = None

    @property
    def database_path(self) -> Path:
        return self.db.database_path


def build_services(db: Database, schema_report: Optional[SchemaReport] = None) -> Services:
    """Wire repositories and services around an already initialized store."""
    return Services(
        db=db,
        people=PersonService(PersonRepository(db, logger), logger),
        exercises=ExerciseService(ExerciseRepository(db, logger), logger),
        workouts=WorkoutEntryService(WorkoutEntryRepository(db, logger), logger),
        routines=RoutineService(RoutineRepository(db, logger), logger),
        schema_report=schema_report,
    )


@lru_cache
def get_services() -> Services:
    """Get the process-wide services, initializing the store on first use"""
    settings = get_settings()

    # Logging first, so schema management output follows LOG_LEVEL
    setup_logging_from_settings(settings)
    db, report = initialize_database(settings.db_path, backup=settings.migration_backups)
    return build_services(db, report)


def database_path() -> Path:
    """Resolved store file path, for the backup collaborator"""
    return get_services().database_path
