from __future__ import annotations

import math
from typing import Any

from backend.app.core.config import settings
from backend.app.core.store import DataStore, Query
from backend.app.services.relations import Relation, RelationResolver, fetch, fetch_rows

CLIENT_COLUMNS = "id,first_name,last_name,email,phone"
USER_COLUMNS = "id,first_name,last_name,email,role"


def _page_query(collection: str, order_by: str, page: int, page_size: int) -> Query:
    if page < 1 or page_size < 1:
        raise ValueError("invalid_pagination")
    start = (page - 1) * page_size
    return (
        Query(collection)
        .order(order_by, descending=True)
        .range(start, start + page_size - 1)
        .with_count()
    )


def _page(items: list[dict[str, Any]], total: int, page: int, page_size: int) -> dict[str, Any]:
    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": math.ceil(total / page_size) if total else 0,
    }


async def list_sales(
    store: DataStore, page: int = 1, page_size: int | None = None,
) -> dict[str, Any]:
    """Newest sales first, each decorated with its client and staff user."""
    page_size = page_size or settings.DEFAULT_PAGE_SIZE
    result = await fetch(store, _page_query("sales", "date", page, page_size))
    items = await RelationResolver(store).resolve(
        result.rows,
        [
            Relation("client_id", "clients", "client", columns=CLIENT_COLUMNS),
            Relation("created_by", "users", "user", columns=USER_COLUMNS),
        ],
    )
    total = result.count if result.count is not None else len(items)
    return _page(items, total, page, page_size)


async def get_sale(store: DataStore, sale_id: str) -> dict[str, Any]:
    sales = await fetch_rows(store, Query("sales").eq("id", sale_id).limit(1))
    if not sales:
        raise ValueError("sale_not_found")

    resolver = RelationResolver(store)
    sale = (await resolver.resolve(
        sales,
        [
            Relation("client_id", "clients", "client", columns=CLIENT_COLUMNS),
            Relation("created_by", "users", "user", columns=USER_COLUMNS),
        ],
    ))[0]

    items = await fetch_rows(
        store, Query("sale_items").eq("sale_id", sale_id).order("created_at"),
    )
    sale["items"] = await resolver.resolve(
        items,
        [
            Relation("product_id", "products", "product", columns="id,name,price",
                     placeholder=settings.UNKNOWN_LABEL),
            Relation("service_id", "services", "service", columns="id,name,price",
                     placeholder=settings.UNKNOWN_LABEL),
        ],
    )
    sale["warnings"] = [f"relation {name}: unresolved" for name in resolver.failed]
    return sale


async def list_gift_cards(
    store: DataStore, page: int = 1, page_size: int | None = None,
) -> dict[str, Any]:
    page_size = page_size or settings.DEFAULT_PAGE_SIZE
    result = await fetch(store, _page_query("gift_cards", "created_at", page, page_size))
    items = await RelationResolver(store).resolve(
        result.rows,
        [
            Relation("client_id", "clients", "client", columns=CLIENT_COLUMNS),
            Relation("purchased_by", "users", "purchaser", columns=USER_COLUMNS),
        ],
    )
    total = result.count if result.count is not None else len(items)
    return _page(items, total, page, page_size)
