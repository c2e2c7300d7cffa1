# trackademic/crud/attendance.py
from datetime import datetime
from typing import List, Optional, Sequence

from trackademic.db.backend import Backend, Row, eq, in_, is_null
from trackademic.schemas.attendance import AttendanceRecord, AttendanceStatusRow

ATTENDANCE_COLUMNS = "id, course_id, student_id, session_id, status, marked_at, time_in, time_out"


async def get_attendance_statuses(db: Backend, course_id: str, student_ids: Sequence[str]) -> List[AttendanceStatusRow]:
    student_filter = eq("student_id", student_ids[0]) if len(student_ids) == 1 else in_("student_id", student_ids)
    rows = await db.select("attendance", "student_id, status", [eq("course_id", course_id), student_filter])
    return [AttendanceStatusRow(**r) for r in rows]


async def get_session_attendance(db: Backend, session_id: str, student_id: str) -> Optional[AttendanceRecord]:
    row = await db.select_one(
        "attendance",
        ATTENDANCE_COLUMNS,
        [eq("session_id", session_id), eq("student_id", student_id)],
    )
    return AttendanceRecord(**row) if row else None


async def get_open_attendance(db: Backend, course_id: str, student_id: str) -> Optional[AttendanceRecord]:
    """Последняя «открытая» запись (без time_out) для старого формата QR"""
    row = await db.select_one(
        "attendance",
        ATTENDANCE_COLUMNS,
        [eq("course_id", course_id), eq("student_id", student_id), is_null("time_out")],
        order_by="time_in",
        descending=True,
    )
    return AttendanceRecord(**row) if row else None


async def create_attendance(db: Backend, values: Row) -> AttendanceRecord:
    row = await db.insert("attendance", values)
    return AttendanceRecord(**row)


async def set_time_out(db: Backend, record_id: str, now: datetime) -> Optional[AttendanceRecord]:
    rows = await db.update("attendance", {"time_out": now}, [eq("id", record_id)])
    return AttendanceRecord(**rows[0]) if rows else None


async def list_attendance(db: Backend, course_id: str, student_id: Optional[str] = None) -> List[AttendanceRecord]:
    filters = [eq("course_id", course_id)]
    if student_id:
        filters.append(eq("student_id", student_id))
    rows = await db.select("attendance", ATTENDANCE_COLUMNS, filters, order_by="marked_at", descending=True)
    return [AttendanceRecord(**r) for r in rows]
