# trackademic/core/qr.py
import json
import time
from typing import Optional, Union

from pydantic import TypeAdapter, ValidationError

from trackademic.schemas.qr import (
    LegacyPayload,
    SessionAttendancePayload,
    SessionJoinPayload,
    SessionPayload,
)

LEGACY_PREFIX = "student-"

SESSION_QR_TYPES = {
    "join": "session_join",
    "attendance": "session_attendance",
}

_session_payload = TypeAdapter(SessionPayload)

ScanPayload = Union[SessionJoinPayload, SessionAttendancePayload, LegacyPayload]


def parse_scan(text: str) -> Optional[ScanPayload]:
    """
    Разбирает текст отсканированного QR.

    Сначала JSON сессии (строгая проверка полей и UUID), иначе старый формат
    "student-<COURSE_CODE>". None — код не распознан.
    """
    try:
        return _session_payload.validate_python(json.loads(text))
    except (ValueError, ValidationError, RecursionError):
        # RecursionError: слишком глубокая вложенность JSON
        pass

    if text.startswith(LEGACY_PREFIX):
        return LegacyPayload(course_code=text[len(LEGACY_PREFIX):])
    return None


def build_session_qr(kind: str, session_id: str, course_id: str, timestamp: Optional[int] = None) -> str:
    if kind not in SESSION_QR_TYPES:
        raise ValueError(f"Неизвестный тип QR сессии: {kind}")
    return json.dumps({
        "type": SESSION_QR_TYPES[kind],
        "sessionId": str(session_id),
        "courseId": str(course_id),
        "timestamp": timestamp if timestamp is not None else int(time.time() * 1000),
    }, separators=(",", ":"))


def build_course_qr(role: str, course_code: str) -> str:
    # QR для записи на курс: "<role>-<COURSE_CODE>"
    return f"{role}-{course_code}"
