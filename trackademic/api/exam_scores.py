from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException

from trackademic.api.deps import (
    ensure_can_view_student,
    get_backend,
    get_current_user,
    get_owned_course,
    get_visible_course,
    require_parent,
)
from trackademic.core import exam_scores as score_service
from trackademic.crud import user as crud_user
from trackademic.db.backend import Backend
from trackademic.schemas.course import CourseOut
from trackademic.schemas.exam_score import ExamScoreOut, ExamScoresUpdate
from trackademic.schemas.user import CurrentUser

router = APIRouter()


# Преподаватель — вся группа; студент — своя строка; родитель — привязанные дети из этого курса
@router.get("/courses/{course_id}/exam-scores", response_model=List[ExamScoreOut])
async def get_course_exam_scores(
    student_id: Optional[str] = None,
    course: CourseOut = Depends(get_visible_course),
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(get_current_user),
):
    if current_user.role == "instructor" and student_id is None:
        if course.instructor_id != current_user.id:
            raise HTTPException(status_code=403, detail="You are not authorized to view this course")
        return await score_service.list_course_scores(db, course.id)

    if student_id:
        student_ids = [student_id]
    elif current_user.role == "parent":
        linked = await crud_user.get_linked_student_ids(db, current_user.id)
        student_ids = [
            sid for sid in linked if await crud_user.is_student_enrolled(db, course.id, sid)
        ]
    else:
        student_ids = [current_user.id]

    result = []
    for sid in student_ids:
        await ensure_can_view_student(db, current_user, course, sid)
        result.append(await score_service.get_student_scores(db, course.id, sid))
    return result


@router.put("/courses/{course_id}/exam-scores", response_model=List[ExamScoreOut])
async def save_course_exam_scores(
    update: ExamScoresUpdate,
    course: CourseOut = Depends(get_owned_course),
    db: Backend = Depends(get_backend),
):
    try:
        return await score_service.save_course_scores(db, course.id, update.scores)
    except score_service.StudentNotEnrolled as e:
        raise HTTPException(status_code=400, detail=f"Students are not enrolled in this course: {', '.join(e.student_ids)}")


@router.get("/parents/exam-scores", response_model=Dict[str, List[ExamScoreOut]])
async def get_children_exam_scores(
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(require_parent),
):
    student_ids = await crud_user.get_linked_student_ids(db, current_user.id)
    return await score_service.list_scores_for_students(db, student_ids)
