# trackademic/api/deps.py
from functools import lru_cache
from typing import AsyncIterator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError

from trackademic.core.config import settings
from trackademic.core.security import decode_access_token
from trackademic.crud import course as crud_course
from trackademic.crud import user as crud_user
from trackademic.db.backend import Backend
from trackademic.db.local import LocalBackend
from trackademic.db.postgrest import PostgrestBackend
from trackademic.schemas.course import CourseOut
from trackademic.schemas.user import CurrentUser

bearer_scheme = HTTPBearer(auto_error=False)


def get_token(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> str:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return credentials.credentials


@lru_cache
def get_local_backend() -> LocalBackend:
    backend = LocalBackend(settings.DATABASE_URL)
    backend.create_all()
    return backend


async def get_backend(token: str = Depends(get_token)) -> AsyncIterator[Backend]:
    if settings.BACKEND == "local":
        yield get_local_backend()
        return

    # Клиент на запрос: RLS бэкенда проверяет токен самого пользователя
    backend = PostgrestBackend(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY, access_token=token)
    try:
        yield backend
    finally:
        await backend.close()


async def get_current_user(token: str = Depends(get_token), db: Backend = Depends(get_backend)) -> CurrentUser:
    try:
        payload = decode_access_token(token)
    except JWTError:
        raise HTTPException(status_code=401, detail="Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=401, detail="Could not validate credentials")

    profile = await crud_user.get_profile(db, user_id)
    if profile is None or not profile.role:
        raise HTTPException(
            status_code=403,
            detail="Your account does not have a role assigned. Please contact support or an administrator.",
        )
    return CurrentUser(
        id=user_id,
        role=profile.role,
        full_name=profile.full_name,
        email=payload.get("email"),
    )


def require_instructor(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != "instructor":
        raise HTTPException(status_code=403, detail="Instructors only")
    return current_user


def require_student(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != "student":
        raise HTTPException(status_code=403, detail="Students only")
    return current_user


def require_parent(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if current_user.role != "parent":
        raise HTTPException(status_code=403, detail="Parents only")
    return current_user


async def get_owned_course(
    course_id: str,
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(require_instructor),
) -> CourseOut:
    course = await crud_course.get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    if course.instructor_id != current_user.id:
        raise HTTPException(status_code=403, detail="You are not authorized to view this course")
    return course


async def ensure_can_view_student(db: Backend, current_user: CurrentUser, course: CourseOut, student_id: str) -> None:
    """Преподаватель — свой курс, родитель — привязанный ученик, студент — только себя"""
    if current_user.role == "instructor":
        allowed = course.instructor_id == current_user.id
    elif current_user.role == "parent":
        allowed = await crud_user.is_parent_of(db, current_user.id, student_id) and \
            await crud_user.is_parent_linked_to_course(db, course.id, current_user.id)
    elif current_user.role == "student":
        allowed = student_id == current_user.id and await crud_user.is_student_enrolled(db, course.id, student_id)
    else:
        allowed = False

    if not allowed:
        raise HTTPException(status_code=403, detail="You are not authorized to view this student")


async def get_visible_course(
    course_id: str,
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(get_current_user),
) -> CourseOut:
    course = await crud_course.get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


async def ensure_course_member(db: Backend, current_user: CurrentUser, course: CourseOut) -> None:
    """Преподаватель курса, записанный студент или родитель записанного ученика"""
    if current_user.role == "instructor":
        allowed = course.instructor_id == current_user.id
    elif current_user.role == "student":
        allowed = await crud_user.is_student_enrolled(db, course.id, current_user.id)
    elif current_user.role == "parent":
        allowed = await crud_user.is_parent_linked_to_course(db, course.id, current_user.id)
    else:
        allowed = False

    if not allowed:
        raise HTTPException(status_code=403, detail="You are not a member of this course")
