from __future__ import annotations

import logging
from typing import Any

from backend.app.core.store import DataStore, Query, StoreError
from backend.app.models.catalog import ProductStatus
from backend.app.services.relations import fetch_rows

logger = logging.getLogger(__name__)

DELETED = "deleted"
ARCHIVED = "archived"


async def _is_referenced(store: DataStore, product_id: str) -> bool:
    rows = await fetch_rows(
        store, Query("sale_items", columns="id").eq("product_id", product_id).limit(1),
    )
    return bool(rows)


async def _archive(store: DataStore, product_id: str) -> None:
    await store.update(
        "products",
        {"is_active": False, "status": ProductStatus.ARCHIVED.value},
        {"id": product_id},
    )


async def delete_product(store: DataStore, product_id: str) -> dict[str, Any]:
    """Remove a product, or archive it when sales still reference it.

    A hard delete that the store rejects with a foreign-key violation is
    retried once as an archive. Raises ``ValueError`` for an unknown product.
    """
    existing = await fetch_rows(
        store, Query("products", columns="id").eq("id", product_id).limit(1),
    )
    if not existing:
        raise ValueError("product_not_found")

    if await _is_referenced(store, product_id):
        await _archive(store, product_id)
        logger.info("Product %s is referenced by sales; archived", product_id)
        return {"id": product_id, "action": ARCHIVED}

    try:
        await store.delete("products", {"id": product_id})
    except StoreError as exc:
        if not exc.is_foreign_key_violation:
            raise
        logger.info("Hard delete of product %s rejected (%s); archiving", product_id, exc)
        await _archive(store, product_id)
        return {"id": product_id, "action": ARCHIVED}

    return {"id": product_id, "action": DELETED}
