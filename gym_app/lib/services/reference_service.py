"""
Services for people and exercises.

Thin layer: id checks and trimming, then the reference repositories.
Deletion is logical and can be undone with restore.
"""

import logging
from typing import List, Optional

from ..models import Exercise, Person
from ..repository.reference_repository import ExerciseRepository, PersonRepository
from .validation import require_text, validate_id


class PersonService:

    def __init__(self, repository: PersonRepository, logger: Optional[logging.Logger] = None):
        self.repository = repository
        self.logger = logger or logging.getLogger(__name__)

    def create_person(self, name: str, last_name: str, phone: str) -> Person:
        return self.repository.create(Person(
            name=require_text(name, "Name"),
            last_name=require_text(last_name, "Last name"),
            phone=require_text(phone, "Phone"),
        ))

    def get_person(self, person_id: int) -> Optional[Person]:
        validate_id(person_id, "person ID")
        return self.repository.get_by_id(person_id)

    def update_person(self, person_id: int, name: str, last_name: str, phone: str) -> Person:
        validate_id(person_id, "person ID")
        return self.repository.update(Person(
            id=person_id,
            name=require_text(name, "Name"),
            last_name=require_text(last_name, "Last name"),
            phone=require_text(phone, "Phone"),
        ))

    def list_people(self) -> List[Person]:
        return self.repository.list_all()

    def search_people(self, query: str) -> List[Person]:
        if not query or not query.strip():
            return self.repository.list_all()
        return self.repository.search(query)

    def count_people(self) -> int:
        return self.repository.count()

    def delete_person(self, person_id: int) -> None:
        validate_id(person_id, "person ID")
        self.repository.delete(person_id)

    def restore_person(self, person_id: int) -> None:
        validate_id(person_id, "person ID")
        self.repository.restore(person_id)

    def list_deleted_people(self) -> List[Person]:
        return self.repository.list_deleted()

    def count_deleted_people(self) -> int:
        return self.repository.count_deleted()


class ExerciseService:

    def __init__(self, repository: ExerciseRepository, logger: Optional[logging.Logger] = None):
        self.repository = repository
        self.logger = logger or logging.getLogger(__name__)

    def create_exercise(self, name: str, code: str) -> Exercise:
        return self.repository.create(Exercise(
            name=require_text(name, "Name"),
            code=require_text(code, "Code"),
        ))

    def get_exercise(self, exercise_id: int) -> Optional[Exercise]:
        validate_id(exercise_id, "exercise ID")
        return self.repository.get_by_id(exercise_id)

    def get_exercise_by_code(self, code: str) -> Optional[Exercise]:
        return self.repository.get_by_code(require_text(code, "Code"))

    def update_exercise(self, exercise_id: int, name: str, code: str) -> Exercise:
        validate_id(exercise_id, "exercise ID")
        return self.repository.update(Exercise(
            id=exercise_id,
            name=require_text(name, "Name"),
            code=require_text(code, "Code"),
        ))

    def list_exercises(self) -> List[Exercise]:
        return self.repository.list_all()

    def search_exercises(self, query: str) -> List[Exercise]:
        if not query or not query.strip():
            return self.repository.list_all()
        return self.repository.search(query)

    def count_exercises(self) -> int:
        return self.repository.count()

    def delete_exercise(self, exercise_id: int) -> None:
        validate_id(exercise_id, "exercise ID")
        self.repository.delete(exercise_id)

    def restore_exercise(self, exercise_id: int) -> None:
        validate_id(exercise_id, "exercise ID")
        self.repository.restore(exercise_id)

    def list_deleted_exercises(self) -> List[Exercise]:
        return self.repository.list_deleted()

    def count_deleted_exercises(self) -> int:
        return self.repository.count_deleted()
