# trackademic/db/models/activity.py
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey
from trackademic.db.base import Base, new_id, utcnow


class ActivityFile(Base):
    __tablename__ = "activity_files"

    id = Column(String(36), primary_key=True, default=new_id)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    category = Column(String, nullable=False, default="activity")  # lecture | activity
    points = Column(Integer, nullable=True)  # в оценке учитываются только activity
    deadline = Column(DateTime(timezone=True), nullable=True)
    file_name = Column(String, nullable=False, default="")
    file_path = Column(String, nullable=False, default="")
    file_size = Column(Integer, nullable=False, default=0)
    file_type = Column(String, nullable=False, default="")
    description = Column(Text, nullable=True)
    uploaded_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    uploaded_at = Column(DateTime(timezone=True), default=utcnow)


class ActivitySubmission(Base):
    __tablename__ = "activity_submissions"

    id = Column(String(36), primary_key=True, default=new_id)
    activity_file_id = Column(String(36), ForeignKey("activity_files.id"), nullable=False)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=False)
    student_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    awarded_points = Column(Integer, nullable=True)  # None — ещё не проверено
    file_name = Column(String, nullable=False, default="")
    file_path = Column(String, nullable=False, default="")
    file_size = Column(Integer, nullable=False, default=0)
    file_type = Column(String, nullable=False, default="")
    description = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), default=utcnow)
