# trackademic/db/__init__.py
# Этот файл гарантирует, что все модели импортированы при первом импорте trackademic.db

from trackademic.db.base import Base
from trackademic.db.models import (
    Profile,
    ParentStudent,
    Course,
    Enrollment,
    ActivityFile,
    ActivitySubmission,
    CourseSession,
    SessionParticipant,
    Attendance,
    ExamScore,
    Notification,
)

# Экспортируем Base и модели наружу
__all__ = [
    "Base",
    "Profile",
    "ParentStudent",
    "Course",
    "Enrollment",
    "ActivityFile",
    "ActivitySubmission",
    "CourseSession",
    "SessionParticipant",
    "Attendance",
    "ExamScore",
    "Notification",
]
