# trackademic/db/models/notification.py
from sqlalchemy import Column, String, Text, Boolean, DateTime, ForeignKey
from trackademic.db.base import Base, new_id, utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    course_id = Column(String(36), ForeignKey("courses.id"), nullable=True)
    activity_file_id = Column(String(36), ForeignKey("activity_files.id"), nullable=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String, nullable=False, default="info")
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
