import logging
from typing import List, Optional, Set

from fastapi import APIRouter, Depends, HTTPException

from trackademic.api.deps import (
    ensure_can_view_student,
    get_backend,
    get_current_user,
    get_visible_course,
    require_student,
)
from trackademic.core.attendance_history import list_attendance_history
from trackademic.core.attendance_scanner import AttendanceScanError, scan
from trackademic.core.qr import parse_scan
from trackademic.crud import course as crud_course
from trackademic.crud import session as crud_session
from trackademic.crud import user as crud_user
from trackademic.db.backend import Backend
from trackademic.schemas.attendance import AttendanceHistoryItem, ScanRequest, ScanResult
from trackademic.schemas.course import CourseOut
from trackademic.schemas.qr import LegacyPayload
from trackademic.schemas.user import CurrentUser

router = APIRouter()
logger = logging.getLogger(__name__)


async def _target_course_ids(db: Backend, text: str, course: Optional[CourseOut]) -> Set[str]:
    """Курсы, в которые скан может что-то записать"""
    payload = parse_scan(text)
    if payload is None:
        return set()
    if isinstance(payload, LegacyPayload):
        return {course.id} if course else set()

    course_ids = set()
    if payload.course_id:
        course_ids.add(payload.course_id)
    elif course:
        course_ids.add(course.id)

    # Сессия из QR тоже должна принадлежать курсу студента
    session = await crud_session.get_session(db, payload.session_id)
    if session is not None:
        course_ids.add(session.course_id)
    return course_ids


@router.post("/attendance/scan", response_model=ScanResult)
async def scan_attendance_qr(
    request: ScanRequest,
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(require_student),
):
    course = None
    if request.course_id:
        course = await crud_course.get_course(db, request.course_id)
        if not course:
            raise HTTPException(status_code=404, detail="Failed to load course details")

    for course_id in await _target_course_ids(db, request.text, course):
        if not await crud_user.is_student_enrolled(db, course_id, current_user.id):
            logger.warning(f"⚠️ [Attendance] student={current_user.id} не записан на course={course_id}")
            raise HTTPException(status_code=403, detail="You are not enrolled in this course")

    try:
        result = await scan(db, current_user.id, request.text, course=course)
    except AttendanceScanError as e:
        # Без повторов: студент сканирует ещё раз
        raise HTTPException(status_code=502, detail={"title": "Error", "message": e.message, "step": e.step.value})

    logger.info(f"[Attendance] scan student={current_user.id}: {result.outcome.value}")
    return result


@router.get("/courses/{course_id}/attendance", response_model=List[AttendanceHistoryItem])
async def get_attendance_history(
    student_id: Optional[str] = None,
    complete_only: bool = False,
    course: CourseOut = Depends(get_visible_course),
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(get_current_user),
):
    if current_user.role == "instructor" and student_id is None:
        if course.instructor_id != current_user.id:
            raise HTTPException(status_code=403, detail="You are not authorized to view this course")
    else:
        # Студент без student_id смотрит свою историю
        student_id = student_id or current_user.id
        await ensure_can_view_student(db, current_user, course, student_id)

    return await list_attendance_history(db, course.id, student_id, complete_only=complete_only)
