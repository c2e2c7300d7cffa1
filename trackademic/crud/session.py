# trackademic/crud/session.py
from datetime import datetime
from typing import List, Optional

from trackademic.db.backend import Backend, Row, eq
from trackademic.schemas.session import SessionOut, SessionParticipantOut


async def create_session(db: Backend, course_id: str) -> SessionOut:
    row = await db.insert("sessions", {"course_id": course_id, "status": "active"})
    return SessionOut(**row)


async def get_session(db: Backend, session_id: str) -> Optional[SessionOut]:
    row = await db.select_one("sessions", filters=[eq("id", session_id)])
    return SessionOut(**row) if row else None


async def list_sessions(db: Backend, course_id: str) -> List[SessionOut]:
    rows = await db.select("sessions", filters=[eq("course_id", course_id)], order_by="created_at", descending=True)
    return [SessionOut(**r) for r in rows]


async def get_active_session(db: Backend, course_id: str) -> Optional[SessionOut]:
    row = await db.select_one(
        "sessions",
        filters=[eq("course_id", course_id), eq("status", "active")],
        order_by="created_at",
        descending=True,
    )
    return SessionOut(**row) if row else None


async def mark_session_ended(db: Backend, session_id: str, now: datetime) -> Optional[SessionOut]:
    rows = await db.update("sessions", {"status": "ended", "ended_at": now}, [eq("id", session_id)])
    return SessionOut(**rows[0]) if rows else None


async def upsert_participant(db: Backend, session_id: str, student_id: str, now: datetime) -> Row:
    # Уникальность (session_id, student_id) — повторное сканирование не создаёт дубликатов
    return await db.upsert(
        "session_participants",
        {
            "session_id": session_id,
            "student_id": student_id,
            "marked_present": True,
            "marked_present_at": now,
        },
        on_conflict=("session_id", "student_id"),
    )


async def list_participants(db: Backend, session_id: str) -> List[SessionParticipantOut]:
    rows = await db.select("session_participants", filters=[eq("session_id", session_id)], order_by="joined_at")
    return [SessionParticipantOut(**r) for r in rows]


async def count_present(db: Backend, session_id: str) -> int:
    rows = await db.select(
        "session_participants", "id", [eq("session_id", session_id), eq("marked_present", True)]
    )
    return len(rows)
