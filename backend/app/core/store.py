"""Data-store contract shared by the SQL and hosted REST backends.

A store exposes named collections of rows. Reads go through a :class:`Query`
(filters, ordering, pagination, optional exact count); writes are scoped by
an equality match on one or more fields.
"""
from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, NamedTuple

FOREIGN_KEY_VIOLATION = "23503"

FILTER_OPS = frozenset({"eq", "neq", "gt", "gte", "lt", "lte", "in", "is", "not_is"})


class StoreError(Exception):
    """Error reported by a data store for a single operation."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: str | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def is_foreign_key_violation(self) -> bool:
        return self.code == FOREIGN_KEY_VIOLATION or "foreign key" in self.message.lower()


class Filter(NamedTuple):
    field: str
    op: str
    value: Any


@dataclass
class Query:
    """Select query over one collection.

    ``offset``/``limit`` follow the hosted backend's inclusive ``range``
    semantics when built through :meth:`range`.
    """

    collection: str
    columns: str = "*"
    filters: list[Filter] = field(default_factory=list)
    order_by: str | None = None
    descending: bool = False
    offset: int | None = None
    limit_: int | None = None
    count: bool = False

    def _add(self, name: str, op: str, value: Any) -> Query:
        if op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter operator: {op}")
        self.filters.append(Filter(name, op, value))
        return self

    def eq(self, name: str, value: Any) -> Query:
        return self._add(name, "eq", value)

    def neq(self, name: str, value: Any) -> Query:
        return self._add(name, "neq", value)

    def gt(self, name: str, value: Any) -> Query:
        return self._add(name, "gt", value)

    def gte(self, name: str, value: Any) -> Query:
        return self._add(name, "gte", value)

    def lt(self, name: str, value: Any) -> Query:
        return self._add(name, "lt", value)

    def lte(self, name: str, value: Any) -> Query:
        return self._add(name, "lte", value)

    def in_(self, name: str, values: list[Any] | set[Any] | tuple[Any, ...]) -> Query:
        return self._add(name, "in", list(values))

    def is_null(self, name: str) -> Query:
        return self._add(name, "is", None)

    def not_null(self, name: str) -> Query:
        return self._add(name, "not_is", None)

    def order(self, name: str, descending: bool = False) -> Query:
        self.order_by = name
        self.descending = descending
        return self

    def range(self, start: int, end: int) -> Query:
        """Rows ``start`` through ``end`` inclusive."""
        if start < 0 or end < start:
            raise ValueError(f"Invalid range {start}-{end}")
        self.offset = start
        self.limit_ = end - start + 1
        return self

    def limit(self, n: int) -> Query:
        self.limit_ = n
        return self

    def with_count(self) -> Query:
        self.count = True
        return self


@dataclass
class QueryResult:
    rows: list[dict[str, Any]]
    count: int | None = None


class DataStore(abc.ABC):
    """Asynchronous access to the persisted collections."""

    @abc.abstractmethod
    async def select(self, query: Query) -> QueryResult: ...

    @abc.abstractmethod
    async def insert(
        self, collection: str, values: dict[str, Any] | list[dict[str, Any]],
    ) -> list[dict[str, Any]]: ...

    @abc.abstractmethod
    async def update(
        self, collection: str, values: dict[str, Any], match: dict[str, Any],
    ) -> list[dict[str, Any]]: ...

    @abc.abstractmethod
    async def delete(self, collection: str, match: dict[str, Any]) -> int: ...

    async def aclose(self) -> None:
        return None
