# trackademic/core/attendance_scanner.py
"""
Отметка посещаемости по QR: time in / time out.

Для пары (сессия, студент):
    не в сессии → участник + запись с time_in → time_out → повторные сканы
    только сообщают "Already Timed Out".

Шаги выполняются строго по очереди, без транзакции. Ошибка на любом шаге
прерывает сканирование (AttendanceScanError), повтора нет.
"""
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import ValidationError

from trackademic.core.qr import parse_scan
from trackademic.crud import attendance as crud_attendance
from trackademic.crud import session as crud_session
from trackademic.db.backend import Backend, BackendError
from trackademic.schemas.attendance import ScanOutcome, ScanResult
from trackademic.schemas.course import CourseOut
from trackademic.schemas.qr import LegacyPayload, SessionAttendancePayload, SessionJoinPayload

logger = logging.getLogger(__name__)


class ScanStep(str, Enum):
    JOIN_VERIFICATION = "join_verification"
    COURSE_RESOLUTION = "course_resolution"
    ATTENDANCE_LOOKUP = "attendance_lookup"
    ATTENDANCE_INSERT = "attendance_insert"
    ATTENDANCE_UPDATE = "attendance_update"


STEP_MESSAGES = {
    ScanStep.JOIN_VERIFICATION: "Failed to verify session participation.",
    ScanStep.COURSE_RESOLUTION: "Could not determine the course for the attendance record.",
    ScanStep.ATTENDANCE_LOOKUP: "Could not verify your attendance status. Please try again.",
    ScanStep.ATTENDANCE_INSERT: "Failed to record your attendance.",
    ScanStep.ATTENDANCE_UPDATE: "Failed to record your time out.",
}


class AttendanceScanError(Exception):
    def __init__(self, step: ScanStep, message: Optional[str] = None):
        self.step = step
        self.message = message or STEP_MESSAGES[step]
        super().__init__(self.message)


def _notice(outcome: ScanOutcome, title: str, message: str, record=None) -> ScanResult:
    return ScanResult(outcome=outcome, title=title, message=message, record=record)


async def scan(
    db: Backend,
    student_id: str,
    text: str,
    course: Optional[CourseOut] = None,
    now: Optional[datetime] = None,
) -> ScanResult:
    now = now or datetime.now(timezone.utc)
    payload = parse_scan(text)

    if isinstance(payload, (SessionJoinPayload, SessionAttendancePayload)):
        return await _scan_session(db, student_id, payload, course, now)
    if isinstance(payload, LegacyPayload):
        return await _scan_legacy(db, student_id, payload, course, now)

    logger.info(f"[Attendance] нераспознанный QR от student={student_id}")
    return _notice(ScanOutcome.INVALID_QR, "Invalid QR Code", "This QR code is not recognized.")


async def _scan_session(
    db: Backend,
    student_id: str,
    payload: Union[SessionJoinPayload, SessionAttendancePayload],
    course: Optional[CourseOut],
    now: datetime,
) -> ScanResult:
    session_id = str(payload.session_id)

    # 1. Участник сессии, отмечен как присутствующий (upsert, без дубликатов)
    try:
        participant = await crud_session.upsert_participant(db, session_id, student_id, now)
    except (BackendError, ValidationError) as e:
        logger.error(f"❌ [Attendance] upsert участника session={session_id} student={student_id}: {e}")
        raise AttendanceScanError(ScanStep.JOIN_VERIFICATION) from e
    time_in = participant.get("joined_at") or now

    # 2. Курс для записи: из QR, иначе текущий
    course_id = str(payload.course_id) if payload.course_id else (course.id if course else None)
    if not course_id:
        logger.error(f"❌ [Attendance] не удалось определить курс для session={session_id}")
        raise AttendanceScanError(ScanStep.COURSE_RESOLUTION)

    # 3. Есть ли уже запись по этой сессии
    try:
        existing = await crud_attendance.get_session_attendance(db, session_id, student_id)
    except (BackendError, ValidationError) as e:
        logger.error(f"❌ [Attendance] чтение записи session={session_id} student={student_id}: {e}")
        raise AttendanceScanError(ScanStep.ATTENDANCE_LOOKUP) from e

    if existing is not None:
        if existing.time_out is not None:
            return _notice(
                ScanOutcome.ALREADY_TIMED_OUT,
                "Already Timed Out",
                "You have already timed in and out for this session.",
                existing,
            )
        try:
            record = await crud_attendance.set_time_out(db, existing.id, now)
        except (BackendError, ValidationError) as e:
            logger.error(f"❌ [Attendance] time out record={existing.id}: {e}")
            raise AttendanceScanError(ScanStep.ATTENDANCE_UPDATE) from e
        logger.info(f"✅ [Attendance] time out session={session_id} student={student_id}")
        return _notice(ScanOutcome.TIME_OUT, "Time Out Recorded", "Your time out has been recorded.", record)

    # Между чтением и вставкой нет блокировки: параллельный скан упрётся в уникальность
    try:
        record = await crud_attendance.create_attendance(db, {
            "course_id": course_id,
            "student_id": student_id,
            "session_id": session_id,
            "status": "present",
            "time_in": time_in,
            "time_out": None,
            "marked_at": now,
        })
    except (BackendError, ValidationError) as e:
        logger.error(f"❌ [Attendance] time in session={session_id} student={student_id}: {e}")
        raise AttendanceScanError(ScanStep.ATTENDANCE_INSERT) from e

    logger.info(f"✅ [Attendance] time in session={session_id} student={student_id}")
    return _notice(
        ScanOutcome.TIME_IN,
        "Time In Recorded",
        "You have successfully timed in. Scan again to time out.",
        record,
    )


async def _scan_legacy(
    db: Backend,
    student_id: str,
    payload: LegacyPayload,
    course: Optional[CourseOut],
    now: datetime,
) -> ScanResult:
    if course is None:
        raise AttendanceScanError(ScanStep.COURSE_RESOLUTION)

    if course.course_code != payload.course_code:
        return _notice(ScanOutcome.WRONG_COURSE, "Wrong Course", "This QR code is for a different course.")

    try:
        existing = await crud_attendance.get_open_attendance(db, course.id, student_id)
    except (BackendError, ValidationError) as e:
        logger.error(f"❌ [Attendance] чтение открытой записи course={course.id} student={student_id}: {e}")
        raise AttendanceScanError(ScanStep.ATTENDANCE_LOOKUP) from e

    if existing is not None:
        try:
            record = await crud_attendance.set_time_out(db, existing.id, now)
        except (BackendError, ValidationError) as e:
            logger.error(f"❌ [Attendance] time out (legacy) record={existing.id}: {e}")
            raise AttendanceScanError(ScanStep.ATTENDANCE_UPDATE, "Failed to record your time-out.") from e
        return _notice(ScanOutcome.TIME_OUT, "Time Out Recorded", "You have successfully timed out.", record)

    try:
        record = await crud_attendance.create_attendance(db, {
            "course_id": course.id,
            "student_id": student_id,
            "status": "present",
            "marked_at": now,
            "time_in": now,
            "time_out": None,
        })
    except (BackendError, ValidationError) as e:
        logger.error(f"❌ [Attendance] time in (legacy) course={course.id} student={student_id}: {e}")
        raise AttendanceScanError(ScanStep.ATTENDANCE_INSERT, "Failed to record attendance.") from e

    return _notice(
        ScanOutcome.TIME_IN,
        "Time In Recorded",
        "You have successfully timed in. Scan again to time out.",
        record,
    )
