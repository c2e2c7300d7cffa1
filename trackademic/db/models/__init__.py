from trackademic.db.base import Base
from trackademic.db.models.profile import Profile, ParentStudent
from trackademic.db.models.course import Course, Enrollment
from trackademic.db.models.activity import ActivityFile, ActivitySubmission
from trackademic.db.models.session import CourseSession, SessionParticipant
from trackademic.db.models.attendance import Attendance
from trackademic.db.models.exam_score import ExamScore
from trackademic.db.models.notification import Notification

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
