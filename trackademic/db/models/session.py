# trackademic/db/models/session.py
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from trackademic.db.base import Base, new_id, utcnow


class CourseSession(Base):
    __tablename__ = "sessions"

    id = Column(String(36), primary_key=True, default=new_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    status = Column(String, nullable=False, default="active")  # active → ended
    started_at = Column(DateTime(timezone=True), default=utcnow)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class SessionParticipant(Base):
    __tablename__ = "session_participants"
    __table_args__ = (UniqueConstraint("session_id", "student_id"),)

    id = Column(String(36), primary_key=True, default=new_id)
    session_id = Column(String(36), ForeignKey("sessions.id"), nullable=False)
    student_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    joined_at = Column(DateTime(timezone=True), default=utcnow)
    marked_present = Column(Boolean, nullable=False, default=False)
    marked_present_at = Column(DateTime(timezone=True), nullable=True)
