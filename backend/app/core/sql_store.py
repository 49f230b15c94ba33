"""SQLAlchemy-backed data store over the tables declared in ``models``."""
from __future__ import annotations

import asyncio
import datetime as dt
import uuid
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    Engine,
    Table,
    Uuid,
    delete,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from backend.app.core.database import Base
from backend.app.core.store import (
    FOREIGN_KEY_VIOLATION,
    DataStore,
    Query,
    QueryResult,
    StoreError,
)
from backend.app.models import (  # noqa: F401  (register tables on Base.metadata)
    catalog,
    customer,
    finance,
    operations,
    sales,
    staff,
)

T = TypeVar("T")


def _coerce(column: Column[Any], value: Any) -> Any:
    """Convert wire-format filter/write values to the column's Python type."""
    if value is None:
        return None
    if isinstance(value, (list, tuple, set)):
        return [_coerce(column, v) for v in value]
    col_type = column.type
    if isinstance(col_type, Uuid) and isinstance(value, str):
        try:
            return uuid.UUID(value)
        except ValueError as exc:
            raise StoreError(
                f'invalid input syntax for type uuid: "{value}"', code="22P02",
            ) from exc
    if isinstance(col_type, DateTime) and isinstance(value, str):
        return dt.datetime.fromisoformat(value.replace("Z", "+00:00"))
    if isinstance(col_type, DateTime) and type(value) is dt.date:
        return dt.datetime(value.year, value.month, value.day)
    if isinstance(col_type, Date) and isinstance(value, str):
        return dt.date.fromisoformat(value[:10])
    if isinstance(col_type, Date) and isinstance(value, dt.datetime):
        return value.date()
    return value


def _to_row(mapping: Any) -> dict[str, Any]:
    """Row mapping → plain dict with string identifiers, as the REST backend returns."""
    return {
        key: str(val) if isinstance(val, uuid.UUID) else val
        for key, val in dict(mapping).items()
    }


class SqlStore(DataStore):
    """Run store operations through SQLAlchemy Core.

    Blocking database calls are pushed to a worker thread so independent
    reads issued with ``asyncio.gather`` do not block the event loop.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.metadata = Base.metadata

    def create_all(self) -> None:
        self.metadata.create_all(self.engine)

    def _table(self, collection: str) -> Table:
        table = self.metadata.tables.get(collection)
        if table is None:
            raise StoreError(f"Unknown collection: {collection}", code="42P01")
        return table

    def _column(self, table: Table, name: str) -> Column[Any]:
        if name not in table.c:
            raise StoreError(
                f"Column {name} does not exist on {table.name}", code="42703",
            )
        return table.c[name]

    async def _run(self, fn: Callable[[Connection], T]) -> T:
        def _work() -> T:
            try:
                with self.engine.begin() as conn:
                    return fn(conn)
            except IntegrityError as exc:
                message = str(exc.orig) if exc.orig is not None else str(exc)
                code = FOREIGN_KEY_VIOLATION if "foreign key" in message.lower() else "23000"
                raise StoreError(message, code=code) from exc
            except SQLAlchemyError as exc:
                raise StoreError(str(exc)) from exc

        return await asyncio.to_thread(_work)

    def _where(self, table: Table, query: Query) -> list[Any]:
        clauses: list[Any] = []
        for f in query.filters:
            col = self._column(table, f.field)
            value = _coerce(col, f.value)
            if f.op == "eq":
                clauses.append(col == value)
            elif f.op == "neq":
                clauses.append(col != value)
            elif f.op == "gt":
                clauses.append(col > value)
            elif f.op == "gte":
                clauses.append(col >= value)
            elif f.op == "lt":
                clauses.append(col < value)
            elif f.op == "lte":
                clauses.append(col <= value)
            elif f.op == "in":
                clauses.append(col.in_(value))
            elif f.op == "is":
                clauses.append(col.is_(None))
            elif f.op == "not_is":
                clauses.append(col.is_not(None))
        return clauses

    async def select(self, query: Query) -> QueryResult:
        table = self._table(query.collection)
        if query.columns.strip() == "*":
            columns = list(table.c)
        else:
            columns = [
                self._column(table, name.strip())
                for name in query.columns.split(",")
                if name.strip()
            ]
        clauses = self._where(table, query)

        stmt = select(*columns).where(*clauses)
        if query.order_by:
            col = self._column(table, query.order_by)
            stmt = stmt.order_by(col.desc() if query.descending else col.asc())
        if query.offset is not None:
            stmt = stmt.offset(query.offset)
        if query.limit_ is not None:
            stmt = stmt.limit(query.limit_)

        def _fetch(conn: Connection) -> QueryResult:
            rows = [_to_row(r._mapping) for r in conn.execute(stmt)]
            total = None
            if query.count:
                total = conn.execute(
                    select(func.count()).select_from(table).where(*clauses)
                ).scalar_one()
            return QueryResult(rows=rows, count=total)

        return await self._run(_fetch)

    async def insert(
        self, collection: str, values: dict[str, Any] | list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        table = self._table(collection)
        payload = [values] if isinstance(values, dict) else values
        if not payload:
            return []
        rows = [
            {k: _coerce(self._column(table, k), v) for k, v in row.items()}
            for row in payload
        ]

        def _insert(conn: Connection) -> list[dict[str, Any]]:
            created: list[dict[str, Any]] = []
            for row in rows:
                result = conn.execute(insert(table).values(**row).returning(*table.c))
                created.append(_to_row(result.one()._mapping))
            return created

        return await self._run(_insert)

    async def update(
        self, collection: str, values: dict[str, Any], match: dict[str, Any],
    ) -> list[dict[str, Any]]:
        if not match:
            raise ValueError("update requires at least one match field")
        table = self._table(collection)
        changes = {k: _coerce(self._column(table, k), v) for k, v in values.items()}
        clauses = [
            self._column(table, k) == _coerce(self._column(table, k), v)
            for k, v in match.items()
        ]
        stmt = update(table).where(*clauses).values(**changes).returning(*table.c)

        def _update(conn: Connection) -> list[dict[str, Any]]:
            return [_to_row(r._mapping) for r in conn.execute(stmt)]

        return await self._run(_update)

    async def delete(self, collection: str, match: dict[str, Any]) -> int:
        if not match:
            raise ValueError("delete requires at least one match field")
        table = self._table(collection)
        clauses = [
            self._column(table, k) == _coerce(self._column(table, k), v)
            for k, v in match.items()
        ]
        stmt = delete(table).where(*clauses)

        def _delete(conn: Connection) -> int:
            return conn.execute(stmt).rowcount

        return await self._run(_delete)

    async def aclose(self) -> None:
        await asyncio.to_thread(self.engine.dispose)
