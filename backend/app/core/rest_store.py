"""Hosted PostgREST data store accessed over HTTP."""
from __future__ import annotations

import datetime as dt
import uuid
from decimal import Decimal
from typing import Any

import httpx

from backend.app.core.store import DataStore, Query, QueryResult, StoreError

_OPS = {
    "eq": "eq",
    "neq": "neq",
    "gt": "gt",
    "gte": "gte",
    "lt": "lt",
    "lte": "lte",
}


def _literal(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return str(value)


def _json_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, list):
        return [_json_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _json_value(v) for k, v in value.items()}
    return value


def _in_list(values: list[Any]) -> str:
    quoted = []
    for v in values:
        text = _literal(v)
        if any(ch in text for ch in ',()"'):
            text = '"' + text.replace('"', '\\"') + '"'
        quoted.append(text)
    return f"in.({','.join(quoted)})"


def _select_list(columns: str, names: dict[str, str]) -> str:
    """Legacy columns are selected under their canonical alias (``net:total_net``)."""
    if not names:
        return columns
    out = []
    for column in columns.split(","):
        column = column.strip()
        legacy = names.get(column)
        out.append(f"{column}:{legacy}" if legacy else column)
    return ",".join(out)


def parse_content_range(header: str | None) -> int | None:
    """Total from a ``Content-Range: 0-19/137`` header (``*`` when unknown)."""
    if not header or "/" not in header:
        return None
    total = header.rsplit("/", 1)[1].strip()
    return int(total) if total.isdigit() else None


class RestStore(DataStore):
    """PostgREST client (``/rest/v1/<table>``) built on ``httpx.AsyncClient``.

    Collections are mapped to hosted table names through ``table_names``;
    unmapped collections use their own name. ``column_names`` maps, per
    collection, canonical field names to the hosted column names; it applies
    to selected columns, filters, ordering, write matches and payloads.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        table_names: dict[str, str] | None = None,
        column_names: dict[str, dict[str, str]] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.table_names = table_names or {}
        self.column_names = column_names or {}
        headers = {"Accept": "application/json"}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=f"{self.base_url}/rest/v1",
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def _path(self, collection: str) -> str:
        return "/" + self.table_names.get(collection, collection)

    def _column(self, collection: str, name: str) -> str:
        return self.column_names.get(collection, {}).get(name, name)

    def _match_params(self, collection: str, match: dict[str, Any]) -> list[tuple[str, str]]:
        return [(self._column(collection, k), f"eq.{_literal(v)}") for k, v in match.items()]

    def _payload(self, collection: str, values: dict[str, Any]) -> dict[str, Any]:
        return {self._column(collection, k): _json_value(v) for k, v in values.items()}

    def _rows(self, collection: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        names = self.column_names.get(collection)
        if not names:
            return rows
        canonical = {legacy: name for name, legacy in names.items()}
        return [{canonical.get(k, k): v for k, v in row.items()} for row in rows]

    @staticmethod
    def _handle_response(resp: httpx.Response) -> Any:
        """Decode a PostgREST response; 4xx bodies become :class:`StoreError`."""
        if resp.status_code >= 500:
            resp.raise_for_status()

        if resp.status_code >= 400:
            try:
                body: dict[str, Any] = resp.json()
            except ValueError:
                raise StoreError(
                    resp.text or f"HTTP {resp.status_code}",
                    code=str(resp.status_code),
                )
            raise StoreError(
                body.get("message") or str(body),
                code=body.get("code"),
                details=body.get("details"),
            )

        if resp.status_code == 204 or not resp.content:
            return []
        try:
            return resp.json()
        except ValueError:
            raise StoreError(
                f"Non-JSON response: {resp.text[:200]}", code="PARSE_ERROR",
            )

    def _query_params(self, query: Query) -> list[tuple[str, str]]:
        names = self.column_names.get(query.collection, {})
        params: list[tuple[str, str]] = [("select", _select_list(query.columns, names))]
        for f in query.filters:
            field = names.get(f.field, f.field)
            if f.op == "in":
                params.append((field, _in_list(f.value)))
            elif f.op == "is":
                params.append((field, "is.null"))
            elif f.op == "not_is":
                params.append((field, "not.is.null"))
            else:
                params.append((field, f"{_OPS[f.op]}.{_literal(f.value)}"))
        if query.order_by:
            direction = "desc" if query.descending else "asc"
            params.append(("order", f"{names.get(query.order_by, query.order_by)}.{direction}"))
        if query.offset is not None:
            params.append(("offset", str(query.offset)))
        if query.limit_ is not None:
            params.append(("limit", str(query.limit_)))
        return params

    async def select(self, query: Query) -> QueryResult:
        headers = {"Prefer": "count=exact"} if query.count else {}
        resp = await self._client.get(
            self._path(query.collection),
            params=self._query_params(query),
            headers=headers,
        )
        rows = self._rows(query.collection, self._handle_response(resp))
        total = parse_content_range(resp.headers.get("Content-Range")) if query.count else None
        return QueryResult(rows=rows, count=total)

    async def insert(
        self, collection: str, values: dict[str, Any] | list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        resp = await self._client.post(
            self._path(collection),
            json=(
                [self._payload(collection, v) for v in values]
                if isinstance(values, list) else self._payload(collection, values)
            ),
            headers={"Prefer": "return=representation"},
        )
        return self._rows(collection, self._handle_response(resp))

    async def update(
        self, collection: str, values: dict[str, Any], match: dict[str, Any],
    ) -> list[dict[str, Any]]:
        if not match:
            raise ValueError("update requires at least one match field")
        resp = await self._client.patch(
            self._path(collection),
            params=self._match_params(collection, match),
            json=self._payload(collection, values),
            headers={"Prefer": "return=representation"},
        )
        return self._rows(collection, self._handle_response(resp))

    async def delete(self, collection: str, match: dict[str, Any]) -> int:
        if not match:
            raise ValueError("delete requires at least one match field")
        resp = await self._client.delete(
            self._path(collection),
            params=self._match_params(collection, match),
            headers={"Prefer": "return=representation"},
        )
        return len(self._handle_response(resp))

    async def aclose(self) -> None:
        await self._client.aclose()
