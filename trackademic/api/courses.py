# trackademic/api/courses.py
from typing import List, Literal

from fastapi import APIRouter, Depends, HTTPException

from trackademic.api.deps import get_backend, get_current_user, get_owned_course, require_instructor, require_student
from trackademic.core import courses as course_service
from trackademic.core.qr import build_course_qr
from trackademic.crud import course as crud_course
from trackademic.crud import user as crud_user
from trackademic.db.backend import Backend
from trackademic.schemas.course import CourseCreate, CourseOut, CourseQR, EnrolledStudent, EnrollRequest
from trackademic.schemas.user import CurrentUser

router = APIRouter()


# Преподаватель — свои курсы, студент — где записан, родитель — курсы привязанных учеников
@router.get("/courses", response_model=List[CourseOut])
async def list_courses(db: Backend = Depends(get_backend), current_user: CurrentUser = Depends(get_current_user)):
    if current_user.role == "instructor":
        return await crud_course.get_courses_by_instructor(db, current_user.id)
    if current_user.role == "student":
        return await crud_course.get_courses_for_student(db, current_user.id)

    courses = {}
    for student_id in await crud_user.get_linked_student_ids(db, current_user.id):
        for course in await crud_course.get_courses_for_student(db, student_id):
            courses.setdefault(course.id, course)
    return list(courses.values())


@router.post("/courses", response_model=CourseOut, status_code=201)
async def create_course(
    course_in: CourseCreate,
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(require_instructor),
):
    if not course_in.title.strip():
        raise HTTPException(status_code=400, detail="Course title is required")
    return await course_service.create_course(db, current_user.id, course_in.title, course_in.description)


@router.delete("/courses/{course_id}")
async def delete_course(course: CourseOut = Depends(get_owned_course), db: Backend = Depends(get_backend)):
    await crud_course.delete_course(db, course.id)
    return {"message": "Course deleted"}


@router.post("/courses/enroll", response_model=CourseOut, status_code=201)
async def enroll_in_course(
    request: EnrollRequest,
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(require_student),
):
    try:
        return await course_service.enroll_by_code(db, current_user.id, request.code)
    except course_service.CourseNotFound:
        raise HTTPException(status_code=404, detail="Invalid course code. Please check and try again.")
    except course_service.AlreadyEnrolled:
        raise HTTPException(status_code=409, detail="You are already enrolled in this course.")


@router.get("/courses/{course_id}/qr", response_model=CourseQR)
async def get_course_qr(role: Literal["student", "parent"] = "student", course: CourseOut = Depends(get_owned_course)):
    if not course.course_code:
        raise HTTPException(status_code=404, detail="Course has no code")
    return CourseQR(role=role, text=build_course_qr(role, course.course_code))


@router.get("/courses/{course_id}/students", response_model=List[EnrolledStudent])
async def list_course_students(course: CourseOut = Depends(get_owned_course), db: Backend = Depends(get_backend)):
    return await course_service.list_enrolled_students(db, course.id)
