from fastapi import APIRouter

from backend.app.api.v1.endpoints import (
    gift_cards,
    products,
    reports,
    sales,
    travailleurs,
)

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(reports.router, prefix="/reports", tags=["reports"])
api_router.include_router(sales.router, prefix="/sales", tags=["sales"])
api_router.include_router(gift_cards.router, prefix="/gift-cards", tags=["gift-cards"])
api_router.include_router(products.router, prefix="/products", tags=["products"])
api_router.include_router(travailleurs.router, prefix="/travailleurs", tags=["travailleurs"])
