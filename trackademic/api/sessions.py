# trackademic/api/sessions.py
import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException

from trackademic.api.deps import get_backend, get_owned_course, require_instructor
from trackademic.core import sessions as session_service
from trackademic.core.qr import build_session_qr
from trackademic.crud import course as crud_course
from trackademic.crud import session as crud_session
from trackademic.db.backend import Backend, BackendError
from trackademic.schemas.course import CourseOut
from trackademic.schemas.session import SessionEnded, SessionOut, SessionParticipantOut, SessionQR
from trackademic.schemas.user import CurrentUser

router = APIRouter()
logger = logging.getLogger(__name__)


async def get_owned_session(
    session_id: str,
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(require_instructor),
) -> SessionOut:
    session = await crud_session.get_session(db, session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    course = await crud_course.get_course(db, session.course_id)
    if not course or course.instructor_id != current_user.id:
        raise HTTPException(status_code=403, detail="You are not authorized to manage this session")
    return session


@router.get("/courses/{course_id}/sessions", response_model=List[SessionOut])
async def list_course_sessions(course: CourseOut = Depends(get_owned_course), db: Backend = Depends(get_backend)):
    try:
        return await crud_session.list_sessions(db, course.id)
    except BackendError as e:
        logger.error(f"❌ [Sessions] не удалось получить сессии course={course.id}: {e}")
        return []


@router.post("/courses/{course_id}/sessions", response_model=SessionOut, status_code=201)
async def start_course_session(course: CourseOut = Depends(get_owned_course), db: Backend = Depends(get_backend)):
    try:
        return await session_service.start_session(db, course.id)
    except session_service.ActiveSessionExists as e:
        raise HTTPException(status_code=409, detail=f"Session {e.session.id} is already active for this course")


@router.get("/courses/{course_id}/sessions/active", response_model=Optional[SessionOut])
async def get_active_course_session(course: CourseOut = Depends(get_owned_course), db: Backend = Depends(get_backend)):
    return await crud_session.get_active_session(db, course.id)


@router.post("/sessions/{session_id}/end", response_model=SessionEnded)
async def end_course_session(session: SessionOut = Depends(get_owned_session), db: Backend = Depends(get_backend)):
    if session.status == "ended":
        raise HTTPException(status_code=400, detail="Session has already ended")
    try:
        return await session_service.end_session(db, session.id)
    except session_service.SessionNotFound:
        raise HTTPException(status_code=404, detail="Session not found")


@router.get("/sessions/{session_id}/participants", response_model=List[SessionParticipantOut])
async def get_session_participants(session: SessionOut = Depends(get_owned_session), db: Backend = Depends(get_backend)):
    try:
        return await session_service.list_participants(db, session.id)
    except BackendError as e:
        logger.error(f"❌ [Sessions] не удалось получить участников session={session.id}: {e}")
        return []


@router.get("/sessions/{session_id}/qr", response_model=SessionQR)
async def get_session_qr(kind: Literal["join", "attendance"] = "join", session: SessionOut = Depends(get_owned_session)):
    if session.status != "active":
        raise HTTPException(status_code=400, detail="Session is not active")
    return SessionQR(kind=kind, text=build_session_qr(kind, session.id, session.course_id))
