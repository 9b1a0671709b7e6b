"""
Unit tests for routine templates.

@testCovers gym_app/lib/repository/routine_repository.py
@testCovers gym_app/lib/services/routine_service.py
"""

import logging
import shutil
import tempfile
import unittest
from pathlib import Path

from gym_app.lib.core.database_init import initialize_database
from gym_app.lib.errors import NotFoundError, StorageError, ValidationError
from gym_app.lib.models import Exercise, RoutineExercise, WorkoutEntry, Person
from gym_app.lib.repository import ExerciseRepository, PersonRepository, RoutineRepository
from gym_app.lib.services import RoutineService


class TestRoutines(unittest.TestCase):
    """Routine CRUD and template mutations."""

    def setUp(self):
        """Create a fresh store with five exercises and one routine."""
        self.test_dir = Path(tempfile.mkdtemp())
        self.logger = logging.getLogger("test_routines")
        self.logger.setLevel(logging.ERROR)
        self.db, _ = initialize_database(self.test_dir / "gym.db", backup=False, log=self.logger)

        exercises = ExerciseRepository(self.db)
        self.ex = [
            exercises.create(Exercise(name=name, code=code))
            for name, code in [("Squat", "SQ"), ("Bench", "BP"), ("Row", "RW"), ("Curl", "CU"), ("Press", "PR")]
        ]
        self.repo = RoutineRepository(self.db, self.logger)
        self.service = RoutineService(self.repo, self.logger)
        self.routine = self.service.create_routine("Leg day", "LEG")

    def tearDown(self):
        """Clean up temporary directory."""
        shutil.rmtree(self.test_dir)

    def template(self, groups) -> list[RoutineExercise]:
        return [
            RoutineExercise(routine_id=self.routine.id, exercise_id=self.ex[i].id, order_index=i, group_number=g)
            for i, g in enumerate(groups)
        ]

    def groups(self) -> list[int]:
        return sorted(e.group_number for e in self.service.get_routine_exercises(self.routine.id))

    def set_groups_directly(self, groups):
        """Write persisted state the validated API would refuse."""
        self.service.replace_routine_exercises(self.routine.id, self.template([1] * len(groups)))
        with self.db.transaction() as conn:
            for i, g in enumerate(groups):
                conn.execute(
                    "UPDATE routine_exercises SET group_number = ? WHERE routine_id = ? AND exercise_id = ?",
                    (g, self.routine.id, self.ex[i].id)
                )

    # Routines

    def test_create_and_get_routine(self):
        """Routines are stored with trimmed name and code."""
        routine = self.service.create_routine("  Push  ", " PUSH ")
        self.assertEqual((routine.name, routine.code), ("Push", "PUSH"))
        self.assertEqual(self.service.get_routine_by_id(routine.id), routine)

    def test_duplicate_code_is_storage_error(self):
        """Codes are unique."""
        with self.assertRaises(StorageError):
            self.service.create_routine("Other", "LEG")

    def test_update_and_search(self):
        """Renamed routines are found by the new name."""
        self.service.update_routine(self.routine.id, "Lower body", "LOW")
        self.assertEqual([r.code for r in self.service.search_routines("lower")], ["LOW"])
        self.assertEqual(self.service.search_routines("nothing"), [])

    def test_delete_routine_removes_entries(self):
        """Deleting a routine is physical and takes its template along."""
        self.service.replace_routine_exercises(self.routine.id, self.template([1, 2]))
        self.service.delete_routine(self.routine.id)

        self.assertIsNone(self.service.get_routine_by_id(self.routine.id))
        count = self.db.execute_query(
            "SELECT COUNT(*) AS n FROM routine_exercises WHERE routine_id = ?",
            (self.routine.id,), fetch_one=True
        )
        self.assertEqual(count["n"], 0)

    def test_delete_missing_routine(self):
        """Deleting an unknown routine is NotFoundError."""
        with self.assertRaises(NotFoundError):
            self.service.delete_routine(9999)

    # Template

    def test_add_to_missing_routine(self):
        """Adding to a routine that does not exist is NotFoundError."""
        with self.assertRaises(NotFoundError):
            self.service.add_exercise_to_routine(9999, self.ex[0].id)

    def test_add_gated_by_groups(self):
        """Adds must keep the routine's groups contiguous."""
        self.service.add_exercise_to_routine(self.routine.id, self.ex[0].id, group_number=1)
        self.service.add_exercise_to_routine(self.routine.id, self.ex[1].id, group_number=2)

        with self.assertRaises(ValidationError) as ctx:
            self.service.add_exercise_to_routine(self.routine.id, self.ex[2].id, group_number=4)
        self.assertEqual(ctx.exception.message, "cannot skip groups; add group 3 first")
        self.assertEqual(self.groups(), [1, 2])

    def test_first_add_must_be_group_one(self):
        """An empty routine starts at group 1."""
        with self.assertRaises(ValidationError):
            self.service.add_exercise_to_routine(self.routine.id, self.ex[0].id, group_number=2)

    def test_same_exercise_twice_is_storage_error(self):
        """An exercise appears at most once per routine."""
        self.service.add_exercise_to_routine(self.routine.id, self.ex[0].id)
        with self.assertRaises(StorageError):
            self.service.add_exercise_to_routine(self.routine.id, self.ex[0].id)

    def test_update_gated_by_groups(self):
        """Updates are checked against the routine's other entries."""
        self.service.replace_routine_exercises(self.routine.id, self.template([1, 2]))
        first, second = self.service.get_routine_exercises(self.routine.id)

        updated = self.service.update_routine_exercise(
            second.id, self.routine.id, second.exercise_id, order_index=5, sets=4, group_number=1
        )
        self.assertEqual((updated.order_index, updated.sets, updated.group_number), (5, 4, 1))

        with self.assertRaises(ValidationError):
            self.service.update_routine_exercise(
                first.id, self.routine.id, first.exercise_id, group_number=3
            )

    def test_update_keeps_entry_in_its_routine(self):
        """An entry id paired with another routine or exercise is refused."""
        other = self.service.create_routine("Arm day", "ARM")
        self.service.replace_routine_exercises(self.routine.id, self.template([1, 1]))
        first, _ = self.service.get_routine_exercises(self.routine.id)

        with self.assertRaises(NotFoundError):
            self.service.update_routine_exercise(first.id, other.id, first.exercise_id, sets=9)
        with self.assertRaises(ValidationError):
            self.service.update_routine_exercise(first.id, self.routine.id, self.ex[4].id, sets=9)

        stored = self.repo.get_routine_exercise(first.id)
        self.assertEqual((stored.routine_id, stored.exercise_id), (self.routine.id, first.exercise_id))
        self.assertNotEqual(stored.sets, 9)
        self.assertEqual(self.service.get_routine_exercises(other.id), [])

    def test_remove_does_not_renumber(self):
        """Removal may leave a gap; renumbering is explicit."""
        self.service.replace_routine_exercises(self.routine.id, self.template([1, 2, 3]))
        self.service.remove_exercise_from_routine(self.routine.id, self.ex[1].id)
        self.assertEqual(self.groups(), [1, 3])

        self.service.renumber_routine_groups(self.routine.id)
        self.assertEqual(self.groups(), [1, 2])

    def test_remove_missing_exercise(self):
        """Removing an exercise not in the routine is NotFoundError."""
        with self.assertRaises(NotFoundError):
            self.service.remove_exercise_from_routine(self.routine.id, self.ex[3].id)

    def test_replace_template(self):
        """Replacing swaps the whole template."""
        self.service.replace_routine_exercises(self.routine.id, self.template([1, 1, 2]))
        self.service.replace_routine_exercises(self.routine.id, self.template([1]))
        exercises = self.service.get_routine_exercises(self.routine.id)
        self.assertEqual([e.exercise_code for e in exercises], ["SQ"])

    def test_replace_rejects_gap_and_keeps_old_template(self):
        """An invalid template never reaches the store."""
        self.service.replace_routine_exercises(self.routine.id, self.template([1, 2]))
        with self.assertRaises(ValidationError):
            self.service.replace_routine_exercises(self.routine.id, self.template([1, 3]))
        self.assertEqual(self.groups(), [1, 2])

    def test_replace_failure_rolls_back(self):
        """A failing insert restores the previous template."""
        self.service.replace_routine_exercises(self.routine.id, self.template([1, 2]))
        broken = self.template([1]) + [RoutineExercise(routine_id=self.routine.id, exercise_id=9999)]

        with self.assertRaises(StorageError):
            self.repo.replace_routine_exercises(self.routine.id, broken)
        self.assertEqual(self.groups(), [1, 2])

    def test_reorder_by_exercise(self):
        """Reorder writes (exercise_id, order) pairs within the routine."""
        self.service.replace_routine_exercises(self.routine.id, self.template([1, 1, 1]))
        self.service.reorder_routine_exercises(
            self.routine.id, [(self.ex[0].id, 2), (self.ex[1].id, 0), (self.ex[2].id, 1)]
        )
        exercises = self.service.get_routine_exercises(self.routine.id)
        self.assertEqual([e.exercise_code for e in exercises], ["BP", "RW", "SQ"])

    def test_reorder_scoped_to_routine(self):
        """Another routine's entries for the same exercise are not touched."""
        other = self.service.create_routine("Other", "OTH")
        self.service.add_exercise_to_routine(other.id, self.ex[0].id, order_index=0)
        self.service.add_exercise_to_routine(self.routine.id, self.ex[0].id, order_index=0)

        self.service.reorder_routine_exercises(self.routine.id, [(self.ex[0].id, 9)])

        self.assertEqual(self.service.get_routine_exercises(other.id)[0].order_index, 0)
        self.assertEqual(self.service.get_routine_exercises(self.routine.id)[0].order_index, 9)

    # Renumbering scenarios

    def test_renumber_contiguous_is_noop(self):
        """{1,1,2,2,3} is already canonical."""
        self.service.replace_routine_exercises(self.routine.id, self.template([1, 1, 2, 2, 3]))

        self.assertEqual(self.service.renumber_routine_groups(self.routine.id), 0)
        self.assertEqual(self.groups(), [1, 1, 2, 2, 3])

    def test_renumber_closes_gap(self):
        """{1,1,3,3} becomes {1,1,2,2}."""
        self.set_groups_directly([1, 1, 3, 3])

        changed = self.service.renumber_routine_groups(self.routine.id)

        self.assertEqual(changed, 2)
        self.assertEqual(self.groups(), [1, 1, 2, 2])

    def test_renumber_is_idempotent(self):
        """A second renumber changes nothing."""
        self.set_groups_directly([2, 4, 4, 5])
        self.service.renumber_routine_groups(self.routine.id)
        first = self.groups()

        self.assertEqual(self.service.renumber_routine_groups(self.routine.id), 0)
        self.assertEqual(self.groups(), first)
        self.assertEqual(first, [1, 2, 2, 3])

    # From workout

    def test_create_routine_from_workout(self):
        """A recorded session becomes a routine in session order."""
        person = PersonRepository(self.db).create(Person(name="Ana", last_name="Lopez", phone="1"))
        session = [
            WorkoutEntry(person_id=person.id, exercise_id=self.ex[2].id, date="2024-01-15",
                         sets=3, reps=10, group_number=1),
            WorkoutEntry(person_id=person.id, exercise_id=self.ex[0].id, date="2024-01-15",
                         sets=5, reps=5, weight=100, group_number=2),
        ]

        routine = self.service.create_routine_from_workout("From Monday", "MON", session)

        self.assertEqual(routine.code, "MON")
        self.assertEqual(
            [(e.exercise_code, e.order_index, e.group_number, e.sets) for e in routine.exercises],
            [("RW", 0, 1, 3), ("SQ", 1, 2, 5)],
        )

    def test_create_routine_from_workout_is_atomic(self):
        """A failing template leaves no routine behind."""
        session = [WorkoutEntry(person_id=1, exercise_id=9999, date="2024-01-15")]
        with self.assertRaises(StorageError):
            self.service.create_routine_from_workout("Broken", "BRK", session)
        self.assertEqual(self.service.search_routines("BRK"), [])


if __name__ == '__main__':
    unittest.main()
