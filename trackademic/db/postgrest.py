# trackademic/db/postgrest.py
import logging
from typing import Any, List, Optional, Sequence, Tuple

import httpx
from fastapi.encoders import jsonable_encoder

from trackademic.core.config import settings
from trackademic.db.backend import Backend, BackendError, Filter, Row

logger = logging.getLogger(__name__)


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _filter_params(filters: Sequence[Filter]) -> List[Tuple[str, str]]:
    params = []
    for f in filters:
        if f.op == "eq":
            params.append((f.column, f"eq.{_format_value(f.value)}"))
        elif f.op == "in":
            quoted = ",".join(f'"{_format_value(v)}"' for v in f.value)
            params.append((f.column, f"in.({quoted})"))
        elif f.op == "is":
            params.append((f.column, f"is.{_format_value(f.value)}"))
        else:
            raise ValueError(f"Неизвестный оператор фильтра: {f.op}")
    return params


class PostgrestBackend(Backend):
    """Таблицы и RPC хостингового бэкенда через его REST-интерфейс (/rest/v1)"""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {
            "apikey": api_key,
            # RLS применяется к токену пользователя, без него — к anon-ключу
            "Authorization": f"Bearer {access_token or api_key}",
            "Content-Type": "application/json",
        }
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/rest/v1",
            headers=headers,
            timeout=httpx.Timeout(settings.HTTP_TIMEOUT, read=settings.HTTP_READ_TIMEOUT),
            transport=transport,
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, *, params=None, json=None, prefer: Optional[str] = None) -> Any:
        headers = {"Prefer": prefer} if prefer else {}
        try:
            response = await self._client.request(
                method,
                path,
                params=params,
                json=jsonable_encoder(json) if json is not None else None,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ [Backend] {method} {path}: сетевая ошибка {e!r}")
            raise BackendError(str(e) or None, status_code=503) from e

        if response.status_code >= 400:
            message, code = None, None
            try:
                body = response.json()
                message = body.get("message")
                code = body.get("code")
            except (ValueError, AttributeError):
                pass
            logger.error(f"❌ [Backend] {method} {path}: {response.status_code} — {response.text}")
            raise BackendError(message, code=code, status_code=response.status_code)

        if not response.content:
            return None
        return response.json()

    async def select(
        self,
        table: str,
        columns: str = "*",
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Row]:
        params = [("select", columns)] + _filter_params(filters)
        if order_by:
            params.append(("order", f"{order_by}.{'desc' if descending else 'asc'}"))
        if limit is not None:
            params.append(("limit", str(limit)))
        return await self._request("GET", f"/{table}", params=params) or []

    async def insert(self, table: str, values: Row) -> Row:
        rows = await self._request("POST", f"/{table}", json=values, prefer="return=representation")
        return rows[0] if rows else {}

    async def update(self, table: str, values: Row, filters: Sequence[Filter]) -> List[Row]:
        return await self._request(
            "PATCH", f"/{table}", params=_filter_params(filters), json=values, prefer="return=representation"
        ) or []

    async def upsert(self, table: str, values: Row, on_conflict: Sequence[str]) -> Row:
        rows = await self._request(
            "POST",
            f"/{table}",
            params=[("on_conflict", ",".join(on_conflict))],
            json=values,
            prefer="resolution=merge-duplicates,return=representation",
        )
        return rows[0] if rows else {}

    async def delete(self, table: str, filters: Sequence[Filter]) -> List[Row]:
        return await self._request(
            "DELETE", f"/{table}", params=_filter_params(filters), prefer="return=representation"
        ) or []

    async def rpc(self, name: str, params: Optional[Row] = None) -> Any:
        return await self._request("POST", f"/rpc/{name}", json=params or {})
