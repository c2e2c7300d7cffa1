# trackademic/core/attendance_history.py
from typing import List, Optional

from trackademic.crud.attendance import list_attendance
from trackademic.crud.user import get_names_by_ids
from trackademic.db.backend import Backend
from trackademic.schemas.attendance import AttendanceHistoryItem


async def list_attendance_history(
    db: Backend,
    course_id: str,
    student_id: Optional[str] = None,
    complete_only: bool = False,
) -> List[AttendanceHistoryItem]:
    """
    История посещаемости по курсу (новые сверху) с именами студентов.

    complete_only — только записи, где есть и time_in, и time_out. На оценку
    не влияет: там считается любая запись со статусом present.
    """
    records = await list_attendance(db, course_id, student_id)
    if complete_only:
        records = [r for r in records if r.is_complete]
    if not records:
        return []

    names = await get_names_by_ids(db, [r.student_id for r in records])
    return [
        AttendanceHistoryItem(**r.model_dump(exclude={"is_complete"}), full_name=names.get(r.student_id))
        for r in records
    ]
