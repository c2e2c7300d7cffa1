# trackademic/db/models/attendance.py
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from trackademic.db.base import Base, new_id, utcnow


class Attendance(Base):
    __tablename__ = "attendance"
    # NULL session_id (старый формат QR) под ограничение не попадает
    __table_args__ = (UniqueConstraint("session_id", "student_id"),)

    id = Column(String(36), primary_key=True, default=new_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    student_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    session_id = Column(String(36), ForeignKey("sessions.id"), nullable=True)

    # "present" | "absent"
    status = Column(String, nullable=False)
    marked_at = Column(DateTime(timezone=True), default=utcnow)
    time_in = Column(DateTime(timezone=True), nullable=True)
    time_out = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
