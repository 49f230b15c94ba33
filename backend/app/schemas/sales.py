from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class PersonRef(BaseModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone: str | None = None
    role: str | None = None


class CatalogRef(BaseModel):
    id: str
    name: str | None = None
    price: Decimal | None = None


class SaleOut(BaseModel):
    id: str
    client_id: str | None = None
    created_by: str | None = None
    type: str | None = None
    gross: Decimal | None = None
    discount: Decimal | None = None
    net: Decimal | None = None
    payment_method: str | None = None
    status: str | None = None
    date: datetime | None = None
    created_at: datetime | None = None
    client: PersonRef | None = None
    user: PersonRef | None = None


class SaleItemOut(BaseModel):
    id: str
    sale_id: str
    product_id: str | None = None
    service_id: str | None = None
    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    line_total: Decimal | None = None
    product: CatalogRef | None = None
    service: CatalogRef | None = None


class SaleDetail(SaleOut):
    items: list[SaleItemOut] = []
    warnings: list[str] = []


class SalePage(BaseModel):
    items: list[SaleOut]
    total: int
    page: int
    page_size: int
    pages: int


class GiftCardOut(BaseModel):
    id: str
    code: str | None = None
    client_id: str | None = None
    purchased_by: str | None = None
    amount: Decimal | None = None
    balance: Decimal | None = None
    status: str | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None
    client: PersonRef | None = None
    purchaser: PersonRef | None = None


class GiftCardPage(BaseModel):
    items: list[GiftCardOut]
    total: int
    page: int
    page_size: int
    pages: int
