# trackademic/api/activities.py
import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException

from trackademic.api.deps import (
    ensure_can_view_student,
    ensure_course_member,
    get_backend,
    get_current_user,
    get_owned_course,
    get_visible_course,
    require_instructor,
    require_student,
)
from trackademic.crud import activity as crud_activity
from trackademic.crud import course as crud_course
from trackademic.db.backend import Backend
from trackademic.schemas.activity import (
    ActivityCreate,
    ActivityOut,
    PointsUpdate,
    SubmissionCreate,
    SubmissionOut,
    SubmissionRow,
)
from trackademic.schemas.course import CourseOut
from trackademic.schemas.user import CurrentUser

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/courses/{course_id}/submissions", response_model=List[SubmissionOut])
async def list_student_submissions(
    student_id: Optional[str] = None,
    course: CourseOut = Depends(get_visible_course),
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(get_current_user),
):
    student_id = student_id or current_user.id
    await ensure_can_view_student(db, current_user, course, student_id)
    return await crud_activity.list_submissions(db, course.id, student_id)


@router.put("/submissions/{submission_id}/points", response_model=SubmissionRow)
async def award_points(
    submission_id: str,
    update: PointsUpdate,
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(require_instructor),
):
    if update.awarded_points is not None and update.awarded_points < 0:
        raise HTTPException(status_code=400, detail="Points cannot be negative")

    submission = await crud_activity.get_submission(db, submission_id)
    if not submission:
        raise HTTPException(status_code=404, detail="Submission not found")

    course = await crud_course.get_course(db, submission.course_id)
    if not course or course.instructor_id != current_user.id:
        raise HTTPException(status_code=403, detail="You are not authorized to grade this submission")

    updated = await crud_activity.set_awarded_points(db, submission_id, update.awarded_points)
    if not updated:
        raise HTTPException(status_code=404, detail="Submission not found")
    return updated


@router.get("/courses/{course_id}/activities", response_model=List[ActivityOut])
async def list_course_activities(
    category: Optional[Literal["lecture", "activity"]] = None,
    course: CourseOut = Depends(get_visible_course),
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(get_current_user),
):
    await ensure_course_member(db, current_user, course)
    return await crud_activity.list_activities(db, course.id, category)


@router.post("/courses/{course_id}/activities", response_model=ActivityOut, status_code=201)
async def create_course_activity(
    activity: ActivityCreate,
    course: CourseOut = Depends(get_owned_course),
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(require_instructor),
):
    if not activity.file_name.strip():
        raise HTTPException(status_code=400, detail="File name is required")
    created = await crud_activity.create_activity(db, course.id, current_user.id, activity)
    logger.info(f"✅ [Activities] {created.category} {created.id} добавлен в course={course.id}")
    return created


@router.post(
    "/courses/{course_id}/activities/{activity_id}/submissions",
    response_model=SubmissionRow,
    status_code=201,
)
async def submit_activity(
    activity_id: str,
    submission: SubmissionCreate,
    course: CourseOut = Depends(get_visible_course),
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(require_student),
):
    await ensure_course_member(db, current_user, course)

    activity = await crud_activity.get_activity(db, activity_id)
    if not activity or activity.course_id != course.id:
        raise HTTPException(status_code=404, detail="Activity not found")
    if activity.category != "activity":
        raise HTTPException(status_code=400, detail="Lectures do not accept submissions")
    if not submission.file_name.strip():
        raise HTTPException(status_code=400, detail="File name is required")

    created = await crud_activity.create_submission(db, activity, current_user.id, submission)
    logger.info(f"✅ [Activities] student={current_user.id} сдал activity={activity_id}")
    return created
