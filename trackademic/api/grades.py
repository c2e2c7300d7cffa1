# trackademic/api/grades.py
from typing import List

from fastapi import APIRouter, Depends

from trackademic.api.deps import (
    ensure_can_view_student,
    get_backend,
    get_current_user,
    get_owned_course,
    get_visible_course,
    require_student,
)
from trackademic.core.courses import list_enrolled_students
from trackademic.core.grades import ProjectedGradeTracker, fetch_projected_grades_for_students
from trackademic.db.backend import Backend
from trackademic.schemas.course import CourseOut
from trackademic.schemas.grade import ProjectedGradeData, StudentGrade
from trackademic.schemas.user import CurrentUser

router = APIRouter()


@router.get("/courses/{course_id}/grades/me", response_model=ProjectedGradeData)
async def get_my_projected_grade(
    course: CourseOut = Depends(get_visible_course),
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(require_student),
):
    await ensure_can_view_student(db, current_user, course, current_user.id)
    return await ProjectedGradeTracker(db).load(course.id, current_user.id)


@router.get("/courses/{course_id}/grades/students/{student_id}", response_model=ProjectedGradeData)
async def get_student_projected_grade(
    student_id: str,
    course: CourseOut = Depends(get_visible_course),
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(get_current_user),
):
    await ensure_can_view_student(db, current_user, course, student_id)
    return await ProjectedGradeTracker(db).load(course.id, student_id)


# Ведомость преподавателя: все записанные студенты одним пакетом
@router.get("/courses/{course_id}/grades", response_model=List[StudentGrade])
async def get_course_projected_grades(
    course: CourseOut = Depends(get_owned_course),
    db: Backend = Depends(get_backend),
):
    students = await list_enrolled_students(db, course.id)
    grades = await fetch_projected_grades_for_students(db, course.id, [s.student_id for s in students])
    return [
        StudentGrade(student_id=s.student_id, full_name=s.full_name, grade=grades[s.student_id])
        for s in students
    ]
