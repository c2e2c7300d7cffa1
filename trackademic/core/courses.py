# trackademic/core/courses.py
import logging
from typing import List, Optional

from trackademic.crud import course as crud_course
from trackademic.crud.user import get_names_by_ids
from trackademic.db.backend import Backend
from trackademic.schemas.course import CourseOut, EnrolledStudent

logger = logging.getLogger(__name__)


class CourseNotFound(Exception):
    pass


class AlreadyEnrolled(Exception):
    pass


async def create_course(db: Backend, instructor_id: str, title: str, description: Optional[str] = None) -> CourseOut:
    code = await crud_course.generate_course_code(db)
    course = await crud_course.create_course(db, instructor_id, title.strip(), description, code)
    logger.info(f"✅ [Courses] курс {course.id} создан, код {code}")
    return course


async def enroll_by_code(db: Backend, student_id: str, code: str) -> CourseOut:
    normalized = code.strip().upper()
    found = await crud_course.find_course_by_code(db, normalized) if normalized else None
    if not found:
        raise CourseNotFound(normalized)

    course_id = found["id"]
    if await crud_course.get_enrollment(db, course_id, student_id):
        raise AlreadyEnrolled(course_id)

    await crud_course.create_enrollment(db, course_id, student_id)
    logger.info(f"✅ [Courses] student={student_id} записан на course={course_id}")
    course = await crud_course.get_course(db, course_id)
    if course is None:
        raise CourseNotFound(normalized)
    return course


async def list_enrolled_students(db: Backend, course_id: str) -> List[EnrolledStudent]:
    enrollments = await crud_course.get_enrollments(db, course_id)
    names = await get_names_by_ids(db, [e["student_id"] for e in enrollments])
    return [
        EnrolledStudent(student_id=e["student_id"], full_name=names.get(e["student_id"]), enrolled_at=e.get("enrolled_at"))
        for e in enrollments
    ]
