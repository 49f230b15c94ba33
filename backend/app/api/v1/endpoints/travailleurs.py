from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status

from backend.app.api.deps import error_detail, get_store
from backend.app.core.store import DataStore, StoreError
from backend.app.schemas.staff import ActivityIn, RatingBatch, RatingResult, TravailleurOut
from backend.app.services.travailleurs import rate_travailleur, record_activity

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_BY_ERROR = {
    "travailleur_not_found": status.HTTP_404_NOT_FOUND,
}


def _http_error(request: Request, e: ValueError) -> HTTPException:
    key = str(e)
    return HTTPException(
        status_code=_STATUS_BY_ERROR.get(key, status.HTTP_400_BAD_REQUEST),
        detail=error_detail(request, key),
    )


def _store_error(request: Request, travailleur_id: UUID, e: StoreError) -> HTTPException:
    logger.error("Updating travailleur %s failed: %s", travailleur_id, e)
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=error_detail(request, "store_error", message=e.message),
    )


@router.post("/{travailleur_id}/ratings", response_model=RatingResult)
async def rate(
    travailleur_id: UUID,
    body: RatingBatch,
    request: Request,
    store: DataStore = Depends(get_store),
) -> dict[str, Any]:
    try:
        return await rate_travailleur(
            store, str(travailleur_id), [r.model_dump() for r in body.ratings],
        )
    except ValueError as e:
        raise _http_error(request, e)
    except StoreError as e:
        raise _store_error(request, travailleur_id, e)


@router.post("/{travailleur_id}/activity", response_model=TravailleurOut)
async def add_activity(
    travailleur_id: UUID,
    body: ActivityIn,
    request: Request,
    store: DataStore = Depends(get_store),
) -> dict[str, Any]:
    try:
        return await record_activity(store, str(travailleur_id), **body.model_dump())
    except ValueError as e:
        raise _http_error(request, e)
    except StoreError as e:
        raise _store_error(request, travailleur_id, e)
