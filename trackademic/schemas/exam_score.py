from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class ExamScoreOut(BaseModel):
    course_id: str
    student_id: str
    full_name: Optional[str] = None
    course_title: Optional[str] = None
    midterm_score: Optional[float] = None  # None — ещё не выставлено
    final_score: Optional[float] = None
    updated_at: Optional[datetime] = None


class ExamScoreIn(BaseModel):
    student_id: str
    midterm_score: Optional[float] = Field(default=None, ge=0)
    final_score: Optional[float] = Field(default=None, ge=0)


class ExamScoresUpdate(BaseModel):
    scores: List[ExamScoreIn]
