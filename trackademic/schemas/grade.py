# trackademic/schemas/grade.py
from typing import Optional

from pydantic import BaseModel, computed_field


class ProjectedGradeData(BaseModel):
    percentage: float = 0.0
    letter_grade: str = "-"
    activities_score: float = 0.0  # 0-100
    attendance_score: float = 0.0  # 0-100
    activities_earned: float = 0.0
    activities_total: float = 0.0
    present_count: int = 0
    total_attendance: int = 0

    # Округление только для отображения, сами значения не трогаем
    @computed_field
    @property
    def percentage_label(self) -> str:
        return f"{self.percentage:.1f}%"

    @computed_field
    @property
    def activities_label(self) -> str:
        return f"{self.activities_score:.0f}%"

    @computed_field
    @property
    def attendance_label(self) -> str:
        return f"{self.attendance_score:.0f}%"


class StudentGrade(BaseModel):
    student_id: str
    full_name: Optional[str] = None
    grade: ProjectedGradeData
