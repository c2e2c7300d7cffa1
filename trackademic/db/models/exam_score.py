# trackademic/db/models/exam_score.py
from sqlalchemy import Column, String, Float, DateTime, ForeignKey, UniqueConstraint
from trackademic.db.base import Base, new_id, utcnow


class ExamScore(Base):
    __tablename__ = "exam_scores"
    # Одна строка на студента в курсе, сохраняется через upsert
    __table_args__ = (UniqueConstraint("course_id", "student_id"),)

    id = Column(String(36), primary_key=True, default=new_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    student_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    midterm_score = Column(Float, nullable=True)
    final_score = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
