# trackademic/schemas/activity.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


class ActivityFileRow(BaseModel):
    id: str
    course_id: Optional[str] = None
    category: Literal["lecture", "activity"] = "activity"
    points: Optional[float] = None
    deadline: Optional[datetime] = None


class SubmissionRow(BaseModel):
    id: Optional[str] = None
    activity_file_id: Optional[str] = None
    course_id: Optional[str] = None
    student_id: Optional[str] = None
    awarded_points: Optional[float] = None  # None — ещё не проверено
    submitted_at: Optional[datetime] = None
    file_name: Optional[str] = None
    description: Optional[str] = None


class SubmissionOut(SubmissionRow):
    max_points: Optional[float] = None
    deadline: Optional[datetime] = None
    is_late: bool = False


class PointsUpdate(BaseModel):
    awarded_points: Optional[int] = None


class ActivityOut(ActivityFileRow):
    file_name: str
    file_path: str = ""
    file_size: int = 0
    file_type: str = ""
    description: Optional[str] = None
    uploaded_by: Optional[str] = None
    uploaded_at: Optional[datetime] = None


class ActivityCreate(BaseModel):
    file_name: str
    category: Literal["lecture", "activity"] = "activity"
    points: Optional[int] = Field(default=None, ge=0)
    deadline: Optional[datetime] = None
    description: Optional[str] = None
    file_path: str = ""
    file_size: int = Field(default=0, ge=0)
    file_type: str = ""


class SubmissionCreate(BaseModel):
    file_name: str
    description: Optional[str] = None
    file_path: str = ""
    file_size: int = Field(default=0, ge=0)
    file_type: str = ""
