import asyncio
from types import SimpleNamespace
from typing import Any, Optional, Sequence

import pytest
from fastapi.testclient import TestClient

from trackademic.api.deps import get_backend
from trackademic.core.security import create_access_token
from trackademic.db.backend import Backend, BackendError, Filter, Row
from trackademic.db.local import LocalBackend
from trackademic.main import app

INSTRUCTOR_ID = "11111111-1111-4111-8111-111111111111"
OTHER_INSTRUCTOR_ID = "22222222-2222-4222-8222-222222222222"
STUDENT_ID = "33333333-3333-4333-8333-333333333333"
OTHER_STUDENT_ID = "44444444-4444-4444-8444-444444444444"
PARENT_ID = "55555555-5555-4555-8555-555555555555"
OTHER_PARENT_ID = "66666666-6666-4666-8666-666666666666"
COURSE_ID = "77777777-7777-4777-8777-777777777777"
OTHER_COURSE_ID = "88888888-8888-4888-8888-888888888888"
COURSE_CODE = "ABC123"


def run(coro):
    return asyncio.run(coro)


class FlakyBackend(Backend):
    """Обёртка над LocalBackend, которая роняет выбранные операции"""

    def __init__(self, inner: Backend, fail_on: Sequence[tuple] = (), stale_tables: Sequence[str] = ()):
        self.inner = inner
        self.fail_on = set(fail_on)
        # Чтение из этих таблиц всегда пустое (имитация гонки чтение → запись)
        self.stale_tables = set(stale_tables)

    def _check(self, op: str, table: str):
        if (op, table) in self.fail_on:
            raise BackendError(f"{op} on {table} failed", code="XX000", status_code=500)

    async def select(self, table: str, columns: str = "*", filters: Sequence[Filter] = (), order_by=None,
                     descending: bool = False, limit: Optional[int] = None):
        self._check("select", table)
        if table in self.stale_tables:
            return []
        return await self.inner.select(table, columns, filters, order_by, descending, limit)

    async def insert(self, table: str, values: Row) -> Row:
        self._check("insert", table)
        return await self.inner.insert(table, values)

    async def update(self, table: str, values: Row, filters: Sequence[Filter]):
        self._check("update", table)
        return await self.inner.update(table, values, filters)

    async def upsert(self, table: str, values: Row, on_conflict: Sequence[str]) -> Row:
        self._check("upsert", table)
        return await self.inner.upsert(table, values, on_conflict)

    async def delete(self, table: str, filters: Sequence[Filter]):
        self._check("delete", table)
        return await self.inner.delete(table, filters)

    async def rpc(self, name: str, params: Optional[Row] = None) -> Any:
        self._check("rpc", name)
        return await self.inner.rpc(name, params)


@pytest.fixture
def backend():
    db = LocalBackend("sqlite://")
    db.create_all()
    return db


@pytest.fixture
def seeded(backend):
    async def seed():
        for user_id, name, role in [
            (INSTRUCTOR_ID, "Ada Instructor", "instructor"),
            (OTHER_INSTRUCTOR_ID, "Grace Instructor", "instructor"),
            (STUDENT_ID, "Sam Student", "student"),
            (OTHER_STUDENT_ID, "Alex Student", "student"),
            (PARENT_ID, "Pat Parent", "parent"),
            (OTHER_PARENT_ID, "Lee Parent", "parent"),
        ]:
            await backend.insert("profiles", {"id": user_id, "full_name": name, "role": role})

        await backend.insert("courses", {
            "id": COURSE_ID,
            "title": "Physics 101",
            "course_code": COURSE_CODE,
            "instructor_id": INSTRUCTOR_ID,
        })
        await backend.insert("courses", {
            "id": OTHER_COURSE_ID,
            "title": "Chemistry 101",
            "course_code": "XYZ789",
            "instructor_id": OTHER_INSTRUCTOR_ID,
        })
        await backend.insert("enrollments", {"course_id": COURSE_ID, "student_id": STUDENT_ID})
        await backend.insert("enrollments", {"course_id": COURSE_ID, "student_id": OTHER_STUDENT_ID})
        await backend.insert("parent_students", {"parent_id": PARENT_ID, "student_id": STUDENT_ID})

    run(seed())
    return SimpleNamespace(
        backend=backend,
        instructor_id=INSTRUCTOR_ID,
        other_instructor_id=OTHER_INSTRUCTOR_ID,
        student_id=STUDENT_ID,
        other_student_id=OTHER_STUDENT_ID,
        parent_id=PARENT_ID,
        other_parent_id=OTHER_PARENT_ID,
        course_id=COURSE_ID,
        other_course_id=OTHER_COURSE_ID,
        course_code=COURSE_CODE,
    )


@pytest.fixture
def client(seeded):
    app.dependency_overrides[get_backend] = lambda: seeded.backend
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
