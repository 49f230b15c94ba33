from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from backend.app.api.deps import error_detail, get_store
from backend.app.core.store import DataStore
from backend.app.schemas.sales import GiftCardPage
from backend.app.services.sales import list_gift_cards

router = APIRouter()


@router.get("", response_model=GiftCardPage)
async def get_gift_cards(
    request: Request,
    page: int = Query(1, ge=1),
    page_size: int | None = Query(None, ge=1, le=200),
    store: DataStore = Depends(get_store),
) -> dict[str, Any]:
    try:
        return await list_gift_cards(store, page, page_size)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=error_detail(request, str(e)),
        )
