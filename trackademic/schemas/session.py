# trackademic/schemas/session.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class SessionOut(BaseModel):
    id: str
    course_id: str
    status: Literal["active", "ended"]
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class SessionParticipantOut(BaseModel):
    id: str
    session_id: str
    student_id: str
    joined_at: Optional[datetime] = None
    marked_present: bool = False
    marked_present_at: Optional[datetime] = None
    full_name: Optional[str] = None


class SessionEnded(BaseModel):
    session: SessionOut
    present_count: int


class SessionQR(BaseModel):
    kind: Literal["join", "attendance"]
    text: str
