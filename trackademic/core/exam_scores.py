# trackademic/core/exam_scores.py
"""
Оценки за промежуточный и итоговый экзамены.

Преподаватель выставляет их всей группе сразу (upsert по паре курс + студент),
студент и родитель только читают. Пустое поле — оценки ещё нет.
"""
import logging
from typing import Dict, List, Sequence

from trackademic.core.courses import list_enrolled_students
from trackademic.crud import course as crud_course
from trackademic.crud import exam_score as crud_exam_score
from trackademic.crud.user import get_names_by_ids
from trackademic.db.backend import Backend
from trackademic.schemas.exam_score import ExamScoreIn, ExamScoreOut

logger = logging.getLogger(__name__)


class StudentNotEnrolled(Exception):
    def __init__(self, student_ids: Sequence[str]):
        self.student_ids = list(student_ids)
        super().__init__(f"Students not enrolled: {', '.join(self.student_ids)}")


async def list_course_scores(db: Backend, course_id: str) -> List[ExamScoreOut]:
    """Вся группа: студенты без строки в exam_scores получают пустые оценки"""
    students = await list_enrolled_students(db, course_id)
    scores = {r["student_id"]: r for r in await crud_exam_score.get_course_scores(db, course_id)}
    result = []
    for s in students:
        row = scores.get(s.student_id, {})
        result.append(ExamScoreOut(
            course_id=course_id,
            student_id=s.student_id,
            full_name=s.full_name,
            midterm_score=row.get("midterm_score"),
            final_score=row.get("final_score"),
            updated_at=row.get("updated_at"),
        ))
    return result


async def get_student_scores(db: Backend, course_id: str, student_id: str) -> ExamScoreOut:
    row = await crud_exam_score.get_student_score(db, course_id, student_id) or {}
    names = await get_names_by_ids(db, [student_id])
    return ExamScoreOut(
        course_id=course_id,
        student_id=student_id,
        full_name=names.get(student_id),
        midterm_score=row.get("midterm_score"),
        final_score=row.get("final_score"),
        updated_at=row.get("updated_at"),
    )


async def list_scores_for_students(db: Backend, student_ids: Sequence[str]) -> Dict[str, List[ExamScoreOut]]:
    """Оценки привязанных детей по всем курсам, сгруппированные по студенту"""
    rows = await crud_exam_score.get_scores_for_students(db, student_ids)
    names = await get_names_by_ids(db, student_ids)

    titles = {}
    for course_id in {r["course_id"] for r in rows}:
        course = await crud_course.get_course(db, course_id)
        titles[course_id] = course.title if course else None

    result: Dict[str, List[ExamScoreOut]] = {sid: [] for sid in student_ids}
    for r in rows:
        result.setdefault(r["student_id"], []).append(ExamScoreOut(
            **r,
            full_name=names.get(r["student_id"]),
            course_title=titles.get(r["course_id"]),
        ))
    return result


async def save_course_scores(db: Backend, course_id: str, scores: Sequence[ExamScoreIn]) -> List[ExamScoreOut]:
    enrolled = {e["student_id"] for e in await crud_course.get_enrollments(db, course_id)}
    strangers = [s.student_id for s in scores if s.student_id not in enrolled]
    if strangers:
        raise StudentNotEnrolled(strangers)

    for s in scores:
        await crud_exam_score.upsert_score(db, course_id, s.student_id, s.midterm_score, s.final_score)
    logger.info(f"✅ [Scores] сохранено оценок: {len(scores)} для course={course_id}")
    return await list_course_scores(db, course_id)
