# trackademic/schemas/attendance.py
from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, computed_field


class AttendanceRecord(BaseModel):
    id: str
    course_id: str
    student_id: str
    session_id: Optional[str] = None
    status: Literal["present", "absent"]
    marked_at: Optional[datetime] = None
    time_in: Optional[datetime] = None
    time_out: Optional[datetime] = None

    @computed_field
    @property
    def is_complete(self) -> bool:
        return self.time_in is not None and self.time_out is not None


class AttendanceHistoryItem(AttendanceRecord):
    full_name: Optional[str] = None


class AttendanceStatusRow(BaseModel):
    student_id: Optional[str] = None
    status: str


class ScanOutcome(str, Enum):
    TIME_IN = "time_in"
    TIME_OUT = "time_out"
    ALREADY_TIMED_OUT = "already_timed_out"
    WRONG_COURSE = "wrong_course"
    INVALID_QR = "invalid_qr"


class ScanRequest(BaseModel):
    text: str
    course_id: Optional[str] = None  # курс открытой страницы сканера


class ScanResult(BaseModel):
    outcome: ScanOutcome
    title: str
    message: str
    record: Optional[AttendanceRecord] = None

    @property
    def mutated(self) -> bool:
        return self.outcome in (ScanOutcome.TIME_IN, ScanOutcome.TIME_OUT)
