# trackademic/crud/activity.py
from typing import List, Optional, Sequence

from trackademic.db.backend import Backend, eq, in_
from trackademic.schemas.activity import (
    ActivityCreate,
    ActivityFileRow,
    ActivityOut,
    SubmissionCreate,
    SubmissionOut,
    SubmissionRow,
)


async def get_graded_activities(db: Backend, course_id: str) -> List[ActivityFileRow]:
    # Лекции в оценке не участвуют
    rows = await db.select(
        "activity_files",
        "id, points",
        [eq("course_id", course_id), eq("category", "activity")],
    )
    return [ActivityFileRow(**r) for r in rows]


async def get_awarded_points(db: Backend, course_id: str, student_ids: Sequence[str]) -> List[SubmissionRow]:
    student_filter = eq("student_id", student_ids[0]) if len(student_ids) == 1 else in_("student_id", student_ids)
    rows = await db.select(
        "activity_submissions",
        "student_id, awarded_points, activity_file_id",
        [eq("course_id", course_id), student_filter],
    )
    return [SubmissionRow(**r) for r in rows]


async def get_submission(db: Backend, submission_id: str) -> Optional[SubmissionRow]:
    row = await db.select_one("activity_submissions", filters=[eq("id", submission_id)])
    return SubmissionRow(**row) if row else None


async def list_submissions(db: Backend, course_id: str, student_id: str) -> List[SubmissionOut]:
    rows = await db.select(
        "activity_submissions",
        filters=[eq("course_id", course_id), eq("student_id", student_id)],
        order_by="submitted_at",
        descending=True,
    )
    if not rows:
        return []

    activity_ids = list({r["activity_file_id"] for r in rows})
    activities = await db.select("activity_files", "id, points, deadline", [in_("id", activity_ids)])
    by_id = {a["id"]: ActivityFileRow(**a) for a in activities}

    result = []
    for r in rows:
        submission = SubmissionRow(**r)
        activity = by_id.get(submission.activity_file_id)
        deadline = activity.deadline if activity else None
        is_late = bool(deadline and submission.submitted_at and submission.submitted_at > deadline)
        result.append(SubmissionOut(
            **submission.model_dump(),
            max_points=activity.points if activity else None,
            deadline=deadline,
            is_late=is_late,
        ))
    return result


async def set_awarded_points(db: Backend, submission_id: str, points: Optional[int]) -> Optional[SubmissionRow]:
    rows = await db.update("activity_submissions", {"awarded_points": points}, [eq("id", submission_id)])
    return SubmissionRow(**rows[0]) if rows else None


async def list_activities(db: Backend, course_id: str, category: Optional[str] = None) -> List[ActivityOut]:
    filters = [eq("course_id", course_id)]
    if category:
        filters.append(eq("category", category))
    rows = await db.select("activity_files", filters=filters, order_by="uploaded_at", descending=True)
    return [ActivityOut(**r) for r in rows]


async def get_activity(db: Backend, activity_id: str) -> Optional[ActivityOut]:
    row = await db.select_one("activity_files", filters=[eq("id", activity_id)])
    return ActivityOut(**row) if row else None


async def create_activity(db: Backend, course_id: str, uploaded_by: str, activity: ActivityCreate) -> ActivityOut:
    values = activity.model_dump()
    if activity.category != "activity":
        # У лекций нет баллов и срока сдачи
        values.update(points=None, deadline=None)
    row = await db.insert("activity_files", {**values, "course_id": course_id, "uploaded_by": uploaded_by})
    return ActivityOut(**row)


async def create_submission(
    db: Backend, activity: ActivityOut, student_id: str, submission: SubmissionCreate
) -> SubmissionRow:
    row = await db.insert("activity_submissions", {
        **submission.model_dump(),
        "activity_file_id": activity.id,
        "course_id": activity.course_id,
        "student_id": student_id,
    })
    return SubmissionRow(**row)
