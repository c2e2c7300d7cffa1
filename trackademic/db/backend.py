# trackademic/db/backend.py
"""
Общий интерфейс доступа к таблицам и RPC бэкенда.

Сервисы получают экземпляр Backend явно (через Depends в роутерах или
аргументом в тестах), глобального клиента нет.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

Row = Dict[str, Any]


class BackendError(Exception):
    """Ошибка бэкенда при чтении/записи таблицы или вызове RPC"""

    def __init__(self, message: Optional[str] = None, code: Optional[str] = None, status_code: int = 500):
        super().__init__(message or "Backend request failed")
        self.message = message
        self.code = code
        self.status_code = status_code


@dataclass(frozen=True)
class Filter:
    column: str
    op: str  # eq | in | is
    value: Any = None


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column, "in", list(values))


def is_null(column: str) -> Filter:
    return Filter(column, "is", None)


class Backend(ABC):

    @abstractmethod
    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        ...

    @abstractmethod
    async def insert(self, table: str, values: Row) -> Row:
        ...

    @abstractmethod
    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> List[Row]:
        ...

    @abstractmethod
    async def upsert(self, table: str, values: Row, on_conflict: Sequence[str]) -> Row:
        ...

    @abstractmethod
    async def delete(self, table: str, filters: Sequence[Filter]) -> List[Row]:
        ...

    @abstractmethod
    async def rpc(self, name: str, params: Optional[Row] = None) -> Any:
        ...

    async def select_one(self, table: str, columns: str = "*", filters: Sequence[Filter] = (), **kwargs) -> Optional[Row]:
        """Аналог maybeSingle(): одна строка или None"""
        rows = await self.select(table, columns, filters, limit=1, **kwargs)
        return rows[0] if rows else None

    async def close(self) -> None:
        pass
