# trackademic/api/parents.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from trackademic.api.deps import get_backend, require_parent
from trackademic.crud import user as crud_user
from trackademic.db.backend import Backend
from trackademic.schemas.user import CurrentUser, ProfileOut

router = APIRouter()


class StudentLink(BaseModel):
    name: str


@router.get("/parents/students", response_model=List[ProfileOut])
async def list_linked_students(db: Backend = Depends(get_backend), current_user: CurrentUser = Depends(require_parent)):
    student_ids = await crud_user.get_linked_student_ids(db, current_user.id)
    names = await crud_user.get_names_by_ids(db, student_ids)
    return [ProfileOut(id=sid, full_name=names.get(sid), role="student") for sid in student_ids]


@router.post("/parents/students", response_model=ProfileOut, status_code=201)
async def link_student(
    link: StudentLink,
    db: Backend = Depends(get_backend),
    current_user: CurrentUser = Depends(require_parent),
):
    student = await crud_user.find_student_by_name(db, link.name)
    if not student:
        raise HTTPException(status_code=404, detail="No student found with that name")
    if await crud_user.is_parent_of(db, current_user.id, student.id):
        raise HTTPException(status_code=409, detail="Student is already linked")

    await crud_user.link_parent_to_student(db, current_user.id, student.id)
    return student
