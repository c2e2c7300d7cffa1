import asyncio

import pytest

from conftest import FlakyBackend, run
from trackademic.core.grades import (
    ProjectedGradeTracker,
    calculate_projected_grade,
    fetch_projected_grade,
    fetch_projected_grades_for_students,
    percentage_to_letter,
)


async def _add_activity(db, course_id, points, category="activity"):
    return await db.insert("activity_files", {
        "course_id": course_id,
        "category": category,
        "points": points,
        "file_name": "task.pdf",
    })


async def _add_submission(db, course_id, activity_id, student_id, awarded_points):
    return await db.insert("activity_submissions", {
        "course_id": course_id,
        "activity_file_id": activity_id,
        "student_id": student_id,
        "awarded_points": awarded_points,
        "file_name": "answer.pdf",
    })


async def _add_attendance(db, course_id, student_id, status):
    return await db.insert("attendance", {"course_id": course_id, "student_id": student_id, "status": status})


@pytest.mark.parametrize("percentage, letter", [
    (100, "A"), (90, "A"), (89.99, "B"), (80, "B"), (79.9, "C"),
    (70, "C"), (69.5, "D"), (60, "D"), (59.99, "F"), (0.1, "F"),
])
def test_percentage_to_letter_cutoffs(percentage, letter):
    assert percentage_to_letter(percentage) == letter


def test_no_data_means_no_grade():
    grade = calculate_projected_grade(0, 0, 0, 0)
    assert grade.percentage == 0
    assert grade.letter_grade == "-"
    assert grade.activities_score == 0
    assert grade.attendance_score == 0


def test_over_award_is_clamped():
    grade = calculate_projected_grade(activities_total=50, activities_earned=80, present_count=0, total_attendance=0)
    assert grade.activities_score == 100
    assert grade.percentage == pytest.approx(70.0)


def test_weighted_percentage():
    grade = calculate_projected_grade(activities_total=200, activities_earned=150, present_count=9, total_attendance=10)
    assert grade.activities_score == 75
    assert grade.attendance_score == 90
    assert grade.percentage == 75 * 0.7 + 90 * 0.3
    assert grade.letter_grade == "C"


def test_all_absent_and_ungraded_has_no_letter():
    grade = calculate_projected_grade(activities_total=100, activities_earned=0, present_count=0, total_attendance=3)
    assert grade.percentage == 0
    assert grade.letter_grade == "-"


def test_labels_round_for_display_only():
    grade = calculate_projected_grade(activities_total=3, activities_earned=2, present_count=2, total_attendance=3)
    assert grade.percentage == pytest.approx(66.6666, rel=1e-4)
    assert grade.percentage_label == "66.7%"
    assert grade.activities_label == "67%"
    dumped = grade.model_dump()
    assert dumped["percentage"] == grade.percentage
    assert dumped["percentage_label"] == "66.7%"


def test_fetch_projected_grade_scenario(seeded):
    db = seeded.backend

    async def scenario():
        activity = await _add_activity(db, seeded.course_id, 100)
        # Лекции в расчёт не входят
        await _add_activity(db, seeded.course_id, 50, category="lecture")
        await _add_submission(db, seeded.course_id, activity["id"], seeded.student_id, 80)
        for status in ("present", "present", "present", "absent"):
            await _add_attendance(db, seeded.course_id, seeded.student_id, status)
        return await fetch_projected_grade(db, seeded.course_id, seeded.student_id)

    grade = run(scenario())
    assert grade.activities_score == 80
    assert grade.attendance_score == 75
    assert grade.percentage == pytest.approx(78.5)
    assert grade.letter_grade == "C"
    assert grade.activities_total == 100
    assert grade.present_count == 3
    assert grade.total_attendance == 4


def test_attendance_only(seeded):
    db = seeded.backend

    async def scenario():
        await _add_attendance(db, seeded.course_id, seeded.student_id, "present")
        await _add_attendance(db, seeded.course_id, seeded.student_id, "present")
        return await fetch_projected_grade(db, seeded.course_id, seeded.student_id)

    grade = run(scenario())
    assert grade.activities_score == 0
    assert grade.attendance_score == 100
    assert grade.percentage == pytest.approx(30.0)
    assert grade.letter_grade == "F"


def test_ungraded_submission_counts_as_zero(seeded):
    db = seeded.backend

    async def scenario():
        first = await _add_activity(db, seeded.course_id, 50)
        second = await _add_activity(db, seeded.course_id, 50)
        await _add_submission(db, seeded.course_id, first["id"], seeded.student_id, 50)
        await _add_submission(db, seeded.course_id, second["id"], seeded.student_id, None)
        return await fetch_projected_grade(db, seeded.course_id, seeded.student_id)

    grade = run(scenario())
    assert grade.activities_earned == 50
    assert grade.activities_total == 100
    assert grade.activities_score == 50


def test_batch_grades(seeded):
    db = seeded.backend
    newcomer = "99999999-9999-4999-8999-999999999999"

    async def scenario():
        activity = await _add_activity(db, seeded.course_id, 100)
        await _add_submission(db, seeded.course_id, activity["id"], seeded.student_id, 90)
        await _add_submission(db, seeded.course_id, activity["id"], seeded.other_student_id, 60)
        await _add_attendance(db, seeded.course_id, seeded.student_id, "present")
        await _add_attendance(db, seeded.course_id, seeded.other_student_id, "absent")
        await _add_attendance(db, seeded.course_id, seeded.other_student_id, "present")
        return await fetch_projected_grades_for_students(
            db, seeded.course_id, [seeded.student_id, seeded.other_student_id, newcomer]
        )

    grades = run(scenario())
    assert set(grades) == {seeded.student_id, seeded.other_student_id, newcomer}

    assert grades[seeded.student_id].percentage == pytest.approx(90 * 0.7 + 100 * 0.3)
    assert grades[seeded.student_id].letter_grade == "A"

    assert grades[seeded.other_student_id].percentage == pytest.approx(60 * 0.7 + 50 * 0.3)
    assert grades[seeded.other_student_id].letter_grade == "F"

    # Без работ и посещений: заработано 0, но задания курса учитываются
    assert grades[newcomer].activities_earned == 0
    assert grades[newcomer].activities_total == 100
    assert grades[newcomer].percentage == 0
    assert grades[newcomer].letter_grade == "-"


def test_batch_with_no_students_does_not_query(seeded):
    db = FlakyBackend(seeded.backend, fail_on=[("select", "activity_files")])
    assert run(fetch_projected_grades_for_students(db, seeded.course_id, [])) == {}


def test_tracker_keeps_previous_data_on_failure(seeded):
    db = FlakyBackend(seeded.backend)

    async def scenario():
        await _add_attendance(seeded.backend, seeded.course_id, seeded.student_id, "present")
        tracker = ProjectedGradeTracker(db)
        first = await tracker.load(seeded.course_id, seeded.student_id)

        db.fail_on.add(("select", "attendance"))
        second = await tracker.load(seeded.course_id, seeded.student_id)
        return tracker, first, second

    tracker, first, second = run(scenario())
    assert first.percentage == pytest.approx(30.0)
    assert second == first
    assert tracker.is_loading is False


def test_tracker_failure_on_first_load_gives_zeroed_data(seeded):
    db = FlakyBackend(seeded.backend, fail_on=[("select", "activity_files")])
    tracker = ProjectedGradeTracker(db)
    data = run(tracker.load(seeded.course_id, seeded.student_id))
    assert data.percentage == 0
    assert data.letter_grade == "-"
    assert tracker.is_loading is False


def test_tracker_without_keys_does_not_fetch(seeded):
    db = FlakyBackend(seeded.backend, fail_on=[("select", "activity_files")])
    tracker = ProjectedGradeTracker(db)
    assert tracker.is_loading is True
    data = run(tracker.load(seeded.course_id, None))
    assert tracker.is_loading is False
    assert data.letter_grade == "-"


class GatedBackend(FlakyBackend):
    """Запросы по курсу из gates ждут, пока событие не будет установлено"""

    def __init__(self, inner):
        super().__init__(inner)
        self.gates = {}

    async def select(self, table, columns="*", filters=(), order_by=None, descending=False, limit=None):
        for f in filters:
            if f.column == "course_id" and f.value in self.gates:
                await self.gates[f.value].wait()
        return await super().select(table, columns, filters, order_by, descending, limit)


def test_tracker_discards_superseded_fetch(seeded):
    db = GatedBackend(seeded.backend)

    async def scenario():
        await _add_attendance(seeded.backend, seeded.course_id, seeded.student_id, "present")
        await _add_attendance(seeded.backend, seeded.other_course_id, seeded.student_id, "absent")

        gate = asyncio.Event()
        db.gates[seeded.other_course_id] = gate
        tracker = ProjectedGradeTracker(db)

        stale = asyncio.create_task(tracker.load(seeded.other_course_id, seeded.student_id))
        await asyncio.sleep(0)
        fresh = await tracker.load(seeded.course_id, seeded.student_id)
        gate.set()
        await stale
        return tracker, fresh

    tracker, fresh = run(scenario())
    assert tracker.course_id == seeded.course_id
    assert tracker.data == fresh
    assert tracker.data.attendance_score == 100
    assert tracker.is_loading is False


def test_tracker_set_keys_skips_unchanged(seeded):
    db = FlakyBackend(seeded.backend)

    async def scenario():
        tracker = ProjectedGradeTracker(db)
        await tracker.set_keys(seeded.course_id, seeded.student_id)
        # Ключи те же — повторного запроса нет, даже если бэкенд теперь падает
        db.fail_on.add(("select", "activity_files"))
        await _add_attendance(seeded.backend, seeded.course_id, seeded.student_id, "present")
        return await tracker.set_keys(seeded.course_id, seeded.student_id)

    data = run(scenario())
    assert data.total_attendance == 0
