# trackademic/db/models/profile.py
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from trackademic.db.base import Base, new_id, utcnow


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    full_name = Column(String, nullable=True)
    email = Column(String, nullable=True)
    username = Column(String, nullable=True)
    role = Column(String, nullable=True)  # student | parent | instructor
    created_at = Column(DateTime(timezone=True), default=utcnow)


class ParentStudent(Base):
    __tablename__ = "parent_students"
    __table_args__ = (UniqueConstraint("parent_id", "student_id"),)

    id = Column(String(36), primary_key=True, default=new_id)
    parent_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    student_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    linked_at = Column(DateTime(timezone=True), default=utcnow)
