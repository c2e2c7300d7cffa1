# trackademic/db/models/course.py
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint
from trackademic.db.base import Base, new_id, utcnow


class Course(Base):
    __tablename__ = "courses"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    course_code = Column(String, unique=True, nullable=True)
    instructor_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)


class Enrollment(Base):
    __tablename__ = "enrollments"
    __table_args__ = (UniqueConstraint("course_id", "student_id"),)

    id = Column(String(36), primary_key=True, default=new_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    student_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    enrolled_at = Column(DateTime(timezone=True), default=utcnow)
