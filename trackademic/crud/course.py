# trackademic/crud/course.py
from typing import List, Optional

from trackademic.db.backend import Backend, Row, eq, in_
from trackademic.schemas.course import CourseOut


async def get_course(db: Backend, course_id: str) -> Optional[CourseOut]:
    row = await db.select_one("courses", filters=[eq("id", course_id)])
    return CourseOut(**row) if row else None


async def generate_course_code(db: Backend) -> str:
    return await db.rpc("generate_course_code")


async def create_course(db: Backend, instructor_id: str, title: str, description: Optional[str], code: str) -> CourseOut:
    row = await db.insert("courses", {
        "title": title,
        "description": description,
        "course_code": code,
        "instructor_id": instructor_id,
    })
    return CourseOut(**row)


async def delete_course(db: Backend, course_id: str) -> None:
    await db.delete("courses", [eq("id", course_id)])


async def get_courses_by_instructor(db: Backend, instructor_id: str) -> List[CourseOut]:
    rows = await db.select("courses", filters=[eq("instructor_id", instructor_id)], order_by="created_at", descending=True)
    return [CourseOut(**r) for r in rows]


async def get_courses_for_student(db: Backend, student_id: str) -> List[CourseOut]:
    enrollments = await db.select("enrollments", "course_id", [eq("student_id", student_id)])
    if not enrollments:
        return []
    rows = await db.select("courses", filters=[in_("id", [e["course_id"] for e in enrollments])], order_by="title")
    return [CourseOut(**r) for r in rows]


async def find_course_by_code(db: Backend, code: str) -> Optional[Row]:
    rows = await db.rpc("get_course_by_code", {"_course_code": code})
    return rows[0] if rows else None


async def get_enrollment(db: Backend, course_id: str, student_id: str) -> Optional[Row]:
    return await db.select_one("enrollments", "id", [eq("course_id", course_id), eq("student_id", student_id)])


async def create_enrollment(db: Backend, course_id: str, student_id: str) -> Row:
    return await db.insert("enrollments", {"course_id": course_id, "student_id": student_id})


async def get_enrollments(db: Backend, course_id: str) -> List[Row]:
    return await db.select(
        "enrollments", "student_id, enrolled_at", [eq("course_id", course_id)], order_by="enrolled_at"
    )
