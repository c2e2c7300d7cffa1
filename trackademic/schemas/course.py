# trackademic/schemas/course.py
from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel


class CourseCreate(BaseModel):
    title: str
    description: Optional[str] = None


class CourseOut(BaseModel):
    id: str
    title: str
    description: Optional[str] = None
    course_code: Optional[str] = None
    instructor_id: str
    created_at: Optional[datetime] = None


class EnrollRequest(BaseModel):
    code: str


class EnrolledStudent(BaseModel):
    student_id: str
    full_name: Optional[str] = None
    enrolled_at: Optional[datetime] = None


class CourseQR(BaseModel):
    role: Literal["student", "parent"]
    text: str
