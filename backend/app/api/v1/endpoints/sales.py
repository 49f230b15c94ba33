from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from backend.app.api.deps import error_detail, get_store
from backend.app.core.store import DataStore
from backend.app.schemas.sales import SaleDetail, SalePage
from backend.app.services.sales import get_sale, list_sales

router = APIRouter()


@router.get("", response_model=SalePage)
async def get_sales(
    request: Request,
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, le=200),
    store: DataStore = Depends(get_store),
) -> dict[str, Any]:
    try:
        return await list_sales(store, page, page_size)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=error_detail(request, str(e)),
        )


@router.get("/{sale_id}", response_model=SaleDetail)
async def get_sale_detail(
    sale_id: UUID,
    request: Request,
    store: DataStore = Depends(get_store),
) -> dict[str, Any]:
    try:
        return await get_sale(store, str(sale_id))
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=error_detail(request, str(e)),
        )
