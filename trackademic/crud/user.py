# trackademic/crud/user.py
from typing import Dict, Optional, Sequence

from trackademic.db.backend import Backend, eq, in_
from trackademic.schemas.user import ProfileOut


async def get_profile(db: Backend, user_id: str) -> Optional[ProfileOut]:
    row = await db.select_one("profiles", "id, full_name, role", [eq("id", user_id)])
    return ProfileOut(**row) if row else None


async def get_names_by_ids(db: Backend, user_ids: Sequence[str]) -> Dict[str, Optional[str]]:
    """Имена одним запросом, без join (RLS на profiles)"""
    ids = list(dict.fromkeys(user_ids))
    if not ids:
        return {}
    rows = await db.select("profiles", "id, full_name", [in_("id", ids)])
    return {r["id"]: r.get("full_name") for r in rows}


async def is_parent_of(db: Backend, parent_id: str, student_id: str) -> bool:
    link = await db.select_one("parent_students", "id", [eq("parent_id", parent_id), eq("student_id", student_id)])
    return link is not None


async def is_student_enrolled(db: Backend, course_id: str, student_id: str) -> bool:
    return bool(await db.rpc("is_student_enrolled_in_course", {"_course_id": course_id, "_user_id": student_id}))


async def is_parent_linked_to_course(db: Backend, course_id: str, parent_id: str) -> bool:
    return bool(await db.rpc("is_parent_linked_to_course", {"_course_id": course_id, "_parent_id": parent_id}))


async def find_student_by_name(db: Backend, name: str) -> Optional[ProfileOut]:
    rows = await db.rpc("get_student_by_name", {"p_name": name.strip()})
    return ProfileOut(**rows[0]) if rows else None


async def link_parent_to_student(db: Backend, parent_id: str, student_id: str) -> None:
    await db.insert("parent_students", {"parent_id": parent_id, "student_id": student_id})


async def get_linked_student_ids(db: Backend, parent_id: str) -> list:
    rows = await db.select("parent_students", "student_id", [eq("parent_id", parent_id)], order_by="linked_at")
    return [r["student_id"] for r in rows]
