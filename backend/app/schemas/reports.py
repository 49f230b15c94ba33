"""Pydantic response schemas for the dashboard and reports.

Sections are ``None`` when their data could not be loaded; ``warnings``
says which ones.
"""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel


# ── Shared rows ─────────────────────────────────────────────────────────────

class MonthRow(BaseModel):
    month: str
    period: str
    revenue: Decimal
    sales: Decimal
    sales_count: int
    expenses: Decimal
    profit: Decimal


class BreakdownRow(BaseModel):
    name: str
    value: Decimal
    count: int


class ShareRow(BaseModel):
    name: str
    amount: Decimal
    percentage: Decimal


class TopProductRow(BaseModel):
    name: str
    quantity: Decimal
    revenue: Decimal


class TopServiceRow(BaseModel):
    name: str
    count: Decimal
    revenue: Decimal


class TopClientRow(BaseModel):
    name: str
    purchases: int
    revenue: Decimal


# ── Dashboard ───────────────────────────────────────────────────────────────

class DashboardTotals(BaseModel):
    users: int | None = None
    clients: int | None = None
    sales: int | None = None
    revenue: Decimal | None = None
    products: int | None = None
    services: int | None = None
    appointments: int | None = None
    deliveries: int | None = None


class DashboardResponse(BaseModel):
    period_start: date
    period_end: date
    totals: DashboardTotals
    sales_growth: Decimal | None = None
    revenue_by_month: list[MonthRow] | None = None
    sales_by_type: list[BreakdownRow] | None = None
    sales_by_payment_method: list[BreakdownRow] | None = None
    top_products: list[TopProductRow] | None = None
    top_services: list[TopServiceRow] | None = None
    top_clients: list[TopClientRow] | None = None
    warnings: list[str] = []


# ── Analytics ───────────────────────────────────────────────────────────────

class AnalyticsResponse(BaseModel):
    days: int
    period_start: date
    period_end: date
    total_revenue: Decimal | None = None
    total_expenses: Decimal | None = None
    net_profit: Decimal | None = None
    total_sales: int | None = None
    average_sale: Decimal | None = None
    new_clients: int | None = None
    total_products: int | None = None
    total_services: int | None = None
    total_appointments: int | None = None
    total_deliveries: int | None = None
    revenue_growth: Decimal | None = None
    expense_growth: Decimal | None = None
    warnings: list[str] = []


# ── Financial report ────────────────────────────────────────────────────────

class FinancialReportResponse(BaseModel):
    from_date: date
    to_date: date
    total_revenue: Decimal | None = None
    total_expenses: Decimal | None = None
    net_profit: Decimal | None = None
    profit_margin: Decimal | None = None
    revenue_by_month: list[MonthRow] | None = None
    expenses_by_category: list[ShareRow] | None = None
    revenue_by_source: list[ShareRow] | None = None
    warnings: list[str] = []


# ── Product report ──────────────────────────────────────────────────────────

class TopSellingProductRow(BaseModel):
    product_name: str
    quantity_sold: Decimal
    revenue: Decimal
    profit: Decimal


class CategoryCountRow(BaseModel):
    category_name: str
    count: int
    total_value: Decimal


class CategoryStockRow(BaseModel):
    category_name: str
    stock_quantity: Decimal
    stock_value: Decimal


class ProductReportResponse(BaseModel):
    from_date: date
    to_date: date
    total_products: int | None = None
    active_products: int | None = None
    low_stock_products: int | None = None
    out_of_stock_products: int | None = None
    top_selling_products: list[TopSellingProductRow] | None = None
    products_by_category: list[CategoryCountRow] | None = None
    stock_value_by_category: list[CategoryStockRow] | None = None
    warnings: list[str] = []


# ── Client report ───────────────────────────────────────────────────────────

class CityRow(BaseModel):
    city: str
    count: int


class ChannelRow(BaseModel):
    channel: str
    count: int


class TopSpenderRow(BaseModel):
    client_id: str
    client_name: str
    total_spent: Decimal
    visits: int


class ClientReportResponse(BaseModel):
    from_date: date
    to_date: date
    total_clients: int | None = None
    new_clients: int | None = None
    active_clients: int | None = None
    clients_by_city: list[CityRow] | None = None
    clients_by_acquisition: list[ChannelRow] | None = None
    top_spending_clients: list[TopSpenderRow] | None = None
    warnings: list[str] = []


# ── Latest snapshot ─────────────────────────────────────────────────────────

class SnapshotResponse(BaseModel):
    report: str
    generation: int
    computed_at: datetime
    payload: dict[str, Any]
