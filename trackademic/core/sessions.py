# trackademic/core/sessions.py
import logging
from datetime import datetime, timezone
from typing import List, Optional

from trackademic.crud import session as crud_session
from trackademic.crud.user import get_names_by_ids
from trackademic.db.backend import Backend
from trackademic.schemas.session import SessionEnded, SessionOut, SessionParticipantOut

logger = logging.getLogger(__name__)


class ActiveSessionExists(Exception):
    def __init__(self, session: SessionOut):
        self.session = session
        super().__init__(f"Course {session.course_id} already has an active session")


class SessionNotFound(Exception):
    pass


async def start_session(db: Backend, course_id: str) -> SessionOut:
    # Одна активная сессия на курс: вторую не создаём
    active = await crud_session.get_active_session(db, course_id)
    if active is not None:
        raise ActiveSessionExists(active)

    session = await crud_session.create_session(db, course_id)
    logger.info(f"✅ [Sessions] сессия {session.id} начата для course={course_id}")
    return session


async def end_session(db: Backend, session_id: str, now: Optional[datetime] = None) -> SessionEnded:
    session = await crud_session.mark_session_ended(db, session_id, now or datetime.now(timezone.utc))
    if session is None:
        raise SessionNotFound(session_id)

    present_count = await crud_session.count_present(db, session_id)
    logger.info(f"✅ [Sessions] сессия {session_id} завершена, присутствовало: {present_count}")
    return SessionEnded(session=session, present_count=present_count)


async def list_participants(db: Backend, session_id: str) -> List[SessionParticipantOut]:
    participants = await crud_session.list_participants(db, session_id)
    names = await get_names_by_ids(db, [p.student_id for p in participants])
    for p in participants:
        p.full_name = names.get(p.student_id)
    return participants
