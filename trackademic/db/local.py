# trackademic/db/local.py
"""
Локальная реализация Backend поверх SQLAlchemy.

Повторяет табличный интерфейс и RPC хостингового бэкенда, чтобы сервисы
можно было запускать без него (разработка, тесты). Строки отдаются в том же
виде, что и по сети: даты — ISO-строки.
"""
import logging
import secrets
import string
import threading
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import DateTime, create_engine, delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from trackademic.db.backend import Backend, BackendError, Filter, Row, eq
from trackademic.db.models import Base

logger = logging.getLogger(__name__)

COURSE_CODE_ALPHABET = string.ascii_uppercase + string.digits
COURSE_CODE_LENGTH = 6


def _parse_datetime(value: Any) -> Any:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return value


def _to_wire(value: Any) -> Any:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            # SQLite теряет часовой пояс, всё хранится в UTC
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    return value


class LocalBackend(Backend):

    def __init__(self, database_url: str = "sqlite://"):
        engine_kwargs = {}
        if database_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                engine_kwargs["poolclass"] = StaticPool
        self.engine = create_engine(database_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        # Запросы идут из пула потоков, а у SQLite одно соединение на запись
        self._lock = threading.Lock()

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    async def close(self) -> None:
        pass

    # === Вспомогательное ===

    def _table(self, name: str):
        table = Base.metadata.tables.get(name)
        if table is None:
            raise BackendError(f'relation "public.{name}" does not exist', code="42P01", status_code=404)
        return table

    def _coerce(self, table, column: str, value: Any) -> Any:
        if column not in table.c:
            raise BackendError(f"column {table.name}.{column} does not exist", code="42703", status_code=400)
        if isinstance(table.c[column].type, DateTime) and value is not None:
            return _parse_datetime(value)
        return value

    def _values(self, table, values: Row) -> Row:
        return {k: self._coerce(table, k, v) for k, v in values.items()}

    def _where(self, table, filters: Sequence[Filter]):
        clauses = []
        for f in filters:
            column = table.c[f.column] if f.column in table.c else None
            if column is None:
                raise BackendError(f"column {table.name}.{f.column} does not exist", code="42703", status_code=400)
            if f.op == "eq":
                clauses.append(column == self._coerce(table, f.column, f.value))
            elif f.op == "in":
                clauses.append(column.in_([self._coerce(table, f.column, v) for v in f.value]))
            elif f.op == "is":
                clauses.append(column.is_(None))
            else:
                raise ValueError(f"Неизвестный оператор фильтра: {f.op}")
        return clauses

    def _row(self, mapping, columns: Optional[List[str]] = None) -> Row:
        row = {k: _to_wire(v) for k, v in mapping.items()}
        if columns:
            row = {k: row[k] for k in columns}
        return row

    def _columns(self, table, columns: str) -> Optional[List[str]]:
        names = [c.strip() for c in columns.split(",") if c.strip()]
        if not names or names == ["*"]:
            return None
        for name in names:
            if name not in table.c:
                raise BackendError(f"column {table.name}.{name} does not exist", code="42703", status_code=400)
        return names

    async def _run(self, work):
        return await run_in_threadpool(self._run_sync, work)

    def _run_sync(self, work):
        with self._lock:
            db = self.SessionLocal()
            try:
                result = work(db)
                db.commit()
                return result
            except IntegrityError as e:
                db.rollback()
                logger.warning(f"⚠️ [Backend] нарушение ограничения: {e.orig}")
                raise BackendError(str(e.orig), code="23505", status_code=409) from e
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception(f"🔥 [Backend] ошибка БД: {e}")
                raise BackendError(str(e), status_code=500) from e
            finally:
                db.close()

    def _fetch_by_ids(self, db, table, ids) -> List[Row]:
        if not ids:
            return []
        rows = db.execute(select(table).where(table.c.id.in_(ids))).mappings().all()
        by_id = {r["id"]: self._row(r) for r in rows}
        return [by_id[i] for i in ids if i in by_id]

    # === Таблицы ===

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        t = self._table(table)
        names = self._columns(t, columns)
        stmt = select(t).where(*self._where(t, filters))
        if order_by:
            column = t.c[order_by]
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)

        def work(db):
            return [self._row(r, names) for r in db.execute(stmt).mappings().all()]

        return await self._run(work)

    async def insert(self, table: str, values: Row) -> Row:
        t = self._table(table)
        data = self._values(t, values)

        def work(db):
            result = db.execute(insert(t).values(**data))
            new_id = result.inserted_primary_key[0]
            return self._fetch_by_ids(db, t, [new_id])[0]

        return await self._run(work)

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> List[Row]:
        t = self._table(table)
        data = self._values(t, values)
        where = self._where(t, filters)

        def work(db):
            # id выбираем заранее: после обновления строки могут уже не подходить под фильтр
            ids = list(db.execute(select(t.c.id).where(*where)).scalars().all())
            if ids:
                db.execute(update(t).where(t.c.id.in_(ids)).values(**data))
            return self._fetch_by_ids(db, t, ids)

        return await self._run(work)

    async def upsert(self, table: str, values: Row, on_conflict: Sequence[str]) -> Row:
        t = self._table(table)
        data = self._values(t, values)
        key = self._where(t, [eq(c, values[c]) for c in on_conflict])

        def work(db):
            existing = db.execute(select(t.c.id).where(*key)).scalar()
            if existing is not None:
                db.execute(update(t).where(t.c.id == existing).values(**data))
                row_id = existing
            else:
                row_id = db.execute(insert(t).values(**data)).inserted_primary_key[0]
            return self._fetch_by_ids(db, t, [row_id])[0]

        return await self._run(work)

    async def delete(self, table: str, filters: Sequence[Filter]) -> List[Row]:
        t = self._table(table)
        where = self._where(t, filters)

        def work(db):
            ids = list(db.execute(select(t.c.id).where(*where)).scalars().all())
            rows = self._fetch_by_ids(db, t, ids)
            if ids:
                db.execute(delete(t).where(t.c.id.in_(ids)))
            return rows

        return await self._run(work)

    # === RPC ===

    async def rpc(self, name: str, params: Optional[Row] = None) -> Any:
        params = params or {}
        handler = {
            "generate_course_code": self._generate_course_code,
            "get_course_by_code": self._get_course_by_code,
            "get_student_by_name": self._get_student_by_name,
            "is_parent_linked_to_course": self._is_parent_linked_to_course,
            "is_student_enrolled_in_course": self._is_student_enrolled_in_course,
        }.get(name)
        if handler is None:
            raise BackendError(f"Could not find the function public.{name}", code="PGRST202", status_code=404)
        try:
            return await self._run(lambda db: handler(db, **params))
        except TypeError as e:
            raise BackendError(f"Invalid arguments for {name}: {e}", code="PGRST202", status_code=400) from e

    def _generate_course_code(self, db) -> str:
        courses = self._table("courses")
        while True:
            code = "".join(secrets.choice(COURSE_CODE_ALPHABET) for _ in range(COURSE_CODE_LENGTH))
            taken = db.execute(select(courses.c.id).where(courses.c.course_code == code)).first()
            if not taken:
                return code

    def _get_course_by_code(self, db, _course_code: str) -> List[Row]:
        courses = self._table("courses")
        rows = db.execute(
            select(courses.c.id, courses.c.title).where(courses.c.course_code == _course_code)
        ).mappings().all()
        return [dict(r) for r in rows]

    def _get_student_by_name(self, db, p_name: str) -> List[Row]:
        profiles = self._table("profiles")
        rows = db.execute(
            select(profiles.c.id, profiles.c.full_name, profiles.c.role).where(
                profiles.c.role == "student",
                profiles.c.full_name.ilike(p_name.strip()),
            )
        ).mappings().all()
        return [dict(r) for r in rows]

    def _is_parent_linked_to_course(self, db, _course_id: str, _parent_id: str) -> bool:
        links = self._table("parent_students")
        enrollments = self._table("enrollments")
        stmt = select(links.c.id).join(
            enrollments, enrollments.c.student_id == links.c.student_id
        ).where(links.c.parent_id == _parent_id, enrollments.c.course_id == _course_id)
        return db.execute(stmt).first() is not None

    def _is_student_enrolled_in_course(self, db, _course_id: str, _user_id: str) -> bool:
        enrollments = self._table("enrollments")
        stmt = select(enrollments.c.id).where(
            enrollments.c.course_id == _course_id, enrollments.c.student_id == _user_id
        )
        return db.execute(stmt).first() is not None
