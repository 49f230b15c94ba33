"""Fetching and batch relation resolution.

:func:`fetch` is the single read path of the engine: it runs a query and
normalizes the rows. :class:`RelationResolver` decorates a primary row list
with its related entities using one ``in`` query per relation instead of one
query per row.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from backend.app.core.store import DataStore, Query, QueryResult
from backend.app.services.normalize import normalize_rows

logger = logging.getLogger(__name__)

ANONYMOUS_CLIENT = "Client anonyme"


async def fetch(store: DataStore, query: Query) -> QueryResult:
    result = await store.select(query)
    return QueryResult(rows=normalize_rows(query.collection, result.rows), count=result.count)


async def fetch_rows(store: DataStore, query: Query) -> list[dict[str, Any]]:
    return (await fetch(store, query)).rows


@dataclass(frozen=True)
class Relation:
    """``field`` on the primary rows references ``collection.id``.

    The resolved row is stored under ``attr``. With ``placeholder`` set, ids
    that point at nothing resolve to ``{"id": <id>, "name": placeholder}``.
    """

    field: str
    collection: str
    attr: str
    columns: str = "*"
    placeholder: str | None = None


def person_label(person: dict[str, Any] | None, default: str = ANONYMOUS_CLIENT) -> str:
    if not person:
        return default
    name = f"{person.get('first_name') or ''} {person.get('last_name') or ''}".strip()
    return name or person.get("name") or default


def client_label(row: dict[str, Any]) -> str:
    """Display name of the ``client`` resolved onto a sale or gift card."""
    return person_label(row.get("client"))


class RelationResolver:
    """Resolve foreign keys on a list of rows in bulk.

    Relations whose fetch failed are listed in :attr:`failed`; their
    attribute is left as ``None`` on every row.
    """

    def __init__(self, store: DataStore) -> None:
        self.store = store
        self.failed: list[str] = []

    async def _lookup(
        self, relation: Relation, ids: list[Any],
    ) -> dict[str, dict[str, Any]] | None:
        query = Query(relation.collection, columns=relation.columns).in_("id", ids)
        try:
            related = await fetch_rows(self.store, query)
        except Exception:
            logger.exception(
                "Failed to resolve %s -> %s", relation.field, relation.collection,
            )
            self.failed.append(relation.attr)
            return None
        return {str(r["id"]): r for r in related if r.get("id") is not None}

    async def resolve(
        self, rows: list[dict[str, Any]], relations: list[Relation],
    ) -> list[dict[str, Any]]:
        """Return decorated copies of *rows*; the input list is not modified."""
        pending: list[tuple[Relation, list[str]]] = []
        for relation in relations:
            ids = sorted({str(r[relation.field]) for r in rows if r.get(relation.field)})
            if ids:
                pending.append((relation, ids))

        lookups = await asyncio.gather(
            *(self._lookup(relation, ids) for relation, ids in pending)
        )
        tables = {relation.attr: table for (relation, _), table in zip(pending, lookups)}

        decorated: list[dict[str, Any]] = []
        for row in rows:
            out = dict(row)
            for relation in relations:
                key = row.get(relation.field)
                table = tables.get(relation.attr)
                if not key or table is None:
                    out[relation.attr] = None
                    continue
                match = table.get(str(key))
                if match is None and relation.placeholder is not None:
                    match = {"id": str(key), "name": relation.placeholder}
                out[relation.attr] = match
            decorated.append(out)
        return decorated
