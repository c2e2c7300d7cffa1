# trackademic/schemas/qr.py
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, StringConstraints

# Только каноническая запись 8-4-4-4-12: без фигурных скобок, urn:uuid: и слитных 32 символов
UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

UuidStr = Annotated[str, StringConstraints(strict=True, pattern=UUID_PATTERN, to_lower=True)]


class SessionJoinPayload(BaseModel):
    type: Literal["session_join"]
    session_id: UuidStr = Field(alias="sessionId")
    course_id: Optional[UuidStr] = Field(default=None, alias="courseId")

    class Config:
        populate_by_name = True


class SessionAttendancePayload(BaseModel):
    type: Literal["session_attendance"]
    session_id: UuidStr = Field(alias="sessionId")
    course_id: UuidStr = Field(alias="courseId")

    class Config:
        populate_by_name = True


# Лишние поля (например, timestamp от генератора QR) игнорируются
SessionPayload = Annotated[
    Union[SessionJoinPayload, SessionAttendancePayload],
    Field(discriminator="type"),
]


class LegacyPayload(BaseModel):
    """Старый формат QR: строка "student-<COURSE_CODE>" без сессии"""
    course_code: str
