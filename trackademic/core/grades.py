# trackademic/core/grades.py
"""
Прогнозируемая оценка студента по курсу.

70% — баллы за задания (activity), 30% — посещаемость. Веса фиксированы.
"""
import asyncio
import logging
from collections import defaultdict
from typing import Dict, Optional, Sequence

from pydantic import ValidationError

from trackademic.crud.activity import get_awarded_points, get_graded_activities
from trackademic.crud.attendance import get_attendance_statuses
from trackademic.db.backend import Backend, BackendError
from trackademic.schemas.grade import ProjectedGradeData

logger = logging.getLogger(__name__)

ACTIVITIES_WEIGHT = 0.7
ATTENDANCE_WEIGHT = 0.3

LETTER_CUTOFFS = ((90, "A"), (80, "B"), (70, "C"), (60, "D"))


def percentage_to_letter(percentage: float) -> str:
    for cutoff, letter in LETTER_CUTOFFS:
        if percentage >= cutoff:
            return letter
    return "F"


def calculate_projected_grade(
    activities_total: float,
    activities_earned: float,
    present_count: int,
    total_attendance: int,
) -> ProjectedGradeData:
    activities_score = (
        min(100.0, activities_earned / activities_total * 100) if activities_total > 0 else 0.0
    )
    attendance_score = present_count / total_attendance * 100 if total_attendance > 0 else 0.0

    if activities_total > 0 or total_attendance > 0:
        percentage = activities_score * ACTIVITIES_WEIGHT + attendance_score * ATTENDANCE_WEIGHT
    else:
        percentage = 0.0

    # Нулевой процент показываем как "нет оценки"
    letter_grade = percentage_to_letter(percentage) if percentage > 0 else "-"

    return ProjectedGradeData(
        percentage=percentage,
        letter_grade=letter_grade,
        activities_score=activities_score,
        attendance_score=attendance_score,
        activities_earned=activities_earned,
        activities_total=activities_total,
        present_count=present_count,
        total_attendance=total_attendance,
    )


async def _fetch_grade_rows(db: Backend, course_id: str, student_ids: Sequence[str]):
    return await asyncio.gather(
        get_graded_activities(db, course_id),
        get_awarded_points(db, course_id, student_ids),
        get_attendance_statuses(db, course_id, student_ids),
    )


async def fetch_projected_grade(db: Backend, course_id: str, student_id: str) -> ProjectedGradeData:
    activities, submissions, attendance = await _fetch_grade_rows(db, course_id, [student_id])

    activities_total = sum(a.points or 0 for a in activities)
    # Непроверенная работа (awarded_points = None) даёт 0, но не исключается
    activities_earned = sum(s.awarded_points or 0 for s in submissions)
    present_count = sum(1 for r in attendance if r.status == "present")

    return calculate_projected_grade(activities_total, activities_earned, present_count, len(attendance))


async def fetch_projected_grades_for_students(
    db: Backend,
    course_id: str,
    student_ids: Sequence[str],
) -> Dict[str, ProjectedGradeData]:
    """Оценки для списка студентов (ведомость преподавателя) за три запроса"""
    if not student_ids:
        return {}

    activities, submissions, attendance = await _fetch_grade_rows(db, course_id, list(student_ids))
    activities_total = sum(a.points or 0 for a in activities)

    earned_by_student: Dict[str, float] = defaultdict(float)
    for s in submissions:
        earned_by_student[s.student_id] += s.awarded_points or 0

    present_by_student: Dict[str, int] = defaultdict(int)
    total_by_student: Dict[str, int] = defaultdict(int)
    for r in attendance:
        total_by_student[r.student_id] += 1
        if r.status == "present":
            present_by_student[r.student_id] += 1

    return {
        sid: calculate_projected_grade(
            activities_total,
            earned_by_student.get(sid, 0.0),
            present_by_student.get(sid, 0),
            total_by_student.get(sid, 0),
        )
        for sid in student_ids
    }


class ProjectedGradeTracker:
    """
    Оценка одного студента, привязанная к паре (course_id, student_id).

    Ошибки загрузки не пробрасываются: остаются прежние (или нулевые) данные,
    is_loading сбрасывается. Результат запроса, ключи которого успели смениться,
    отбрасывается.
    """

    def __init__(self, db: Backend):
        self.db = db
        self.data = ProjectedGradeData()
        self.is_loading = True
        self.course_id: Optional[str] = None
        self.student_id: Optional[str] = None
        self._generation = 0

    async def load(self, course_id: Optional[str], student_id: Optional[str]) -> ProjectedGradeData:
        self._generation += 1
        generation = self._generation
        self.course_id, self.student_id = course_id, student_id

        if not course_id or not student_id:
            self.is_loading = False
            return self.data

        self.is_loading = True
        try:
            data = await fetch_projected_grade(self.db, course_id, student_id)
        except (BackendError, ValidationError) as e:
            if generation == self._generation:
                logger.warning(f"⚠️ [Grades] не удалось загрузить оценку course={course_id} student={student_id}: {e}")
                self.is_loading = False
            return self.data

        if generation != self._generation:
            return self.data

        self.data = data
        self.is_loading = False
        return data

    async def set_keys(self, course_id: Optional[str], student_id: Optional[str]) -> ProjectedGradeData:
        if (course_id, student_id) == (self.course_id, self.student_id) and not self.is_loading:
            return self.data
        return await self.load(course_id, student_id)

    def cancel(self) -> None:
        # Аналог cleanup при уходе со страницы: текущий запрос уже ничего не обновит
        self._generation += 1
