from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status

from backend.app.api.deps import error_detail, get_store
from backend.app.core.store import DataStore, StoreError
from backend.app.schemas.products import ProductDeleteResult
from backend.app.services.products import delete_product

logger = logging.getLogger(__name__)

router = APIRouter()


@router.delete("/{product_id}", response_model=ProductDeleteResult)
async def remove_product(
    product_id: UUID,
    request: Request,
    store: DataStore = Depends(get_store),
) -> dict[str, Any]:
    """Delete a product, archiving it instead when sales reference it."""
    try:
        return await delete_product(store, str(product_id))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=error_detail(request, str(e)),
        )
    except StoreError as e:
        logger.error("Deleting product %s failed: %s", product_id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=error_detail(request, "store_error", message=e.message),
        )
