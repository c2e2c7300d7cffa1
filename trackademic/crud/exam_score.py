# trackademic/crud/exam_score.py
from typing import List, Optional, Sequence

from trackademic.db.backend import Backend, Row, eq, in_

EXAM_SCORE_COLUMNS = "course_id, student_id, midterm_score, final_score, updated_at"


async def get_course_scores(db: Backend, course_id: str) -> List[Row]:
    return await db.select("exam_scores", EXAM_SCORE_COLUMNS, [eq("course_id", course_id)])


async def get_student_score(db: Backend, course_id: str, student_id: str) -> Optional[Row]:
    return await db.select_one(
        "exam_scores", EXAM_SCORE_COLUMNS, [eq("course_id", course_id), eq("student_id", student_id)]
    )


async def get_scores_for_students(db: Backend, student_ids: Sequence[str]) -> List[Row]:
    if not student_ids:
        return []
    return await db.select("exam_scores", EXAM_SCORE_COLUMNS, [in_("student_id", student_ids)])


async def upsert_score(
    db: Backend,
    course_id: str,
    student_id: str,
    midterm_score: Optional[float],
    final_score: Optional[float],
) -> Row:
    return await db.upsert(
        "exam_scores",
        {
            "course_id": course_id,
            "student_id": student_id,
            "midterm_score": midterm_score,
            "final_score": final_score,
        },
        on_conflict=("course_id", "student_id"),
    )
