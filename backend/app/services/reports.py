"""Report composition: dashboard, analytics, financial, product and client reports.

Each ``get_*`` coroutine loads its independent collections concurrently,
resolves relations once the primary rows are known, and assembles the
sections with the aggregation primitives. A section whose data could not be
loaded is returned as ``None`` and explained in ``warnings``; it never fails
the whole report.
"""
from __future__ import annotations

import asyncio
import calendar
import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any

from backend.app.core.config import settings
from backend.app.core.store import DataStore, Query
from backend.app.services.aggregation import (
    Count,
    Sum,
    aggregate,
    field_key,
    growth,
    month_period,
    percentage,
    period_label,
    rows,
    top_n,
    total,
)
from backend.app.services.normalize import ZERO, to_decimal
from backend.app.services.normalize import to_date as as_date
from backend.app.services.relations import (
    Relation,
    RelationResolver,
    client_label,
    fetch_rows,
    person_label,
)

logger = logging.getLogger(__name__)

PAID = "paid"
OTHER = "Autres"
UNCATEGORIZED = "Sans catégorie"
UNSPECIFIED = "Non spécifié"
SALES_SOURCE = "Ventes"
ANALYTICS_PERIODS = (7, 30, 90, 365)

Rows = list[dict[str, Any]]


# ── Helpers ──────────────────────────────────────────────────────────────────


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def months_ago(moment: datetime, months: int) -> datetime:
    """Same day-of-month *months* earlier, clamped to the target month's end."""
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    month += 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def default_range(
    from_date: date | None, to_date: date | None, days: int | None = None,
) -> tuple[date, date]:
    """Fill in a missing bound: the last ``REPORT_DEFAULT_DAYS`` days up to today."""
    today = _now().date()
    if to_date is None:
        to_date = today
    if from_date is None:
        from_date = to_date - timedelta(days=days or settings.REPORT_DEFAULT_DAYS)
    if from_date > to_date:
        raise ValueError("invalid_date_range")
    return from_date, to_date


def paid_only(sales: Rows) -> Rows:
    return [s for s in sales if s.get("status") == PAID]


async def load_sections(
    store: DataStore, queries: dict[str, Query],
) -> tuple[dict[str, Rows | None], list[str]]:
    """Fetch independent queries concurrently.

    Returns the rows per name (``None`` when that fetch failed) and the
    warnings describing the failures.
    """
    names = list(queries)
    results = await asyncio.gather(
        *(fetch_rows(store, queries[name]) for name in names),
        return_exceptions=True,
    )
    data: dict[str, Rows | None] = {}
    warnings: list[str] = []
    for name, result in zip(names, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.error("Failed to load %s: %s", name, result)
            warnings.append(f"{name}: {result}")
            data[name] = None
        else:
            data[name] = result
    return data, warnings


def _count(data: Rows | None) -> int | None:
    return len(data) if data is not None else None


def _available(*sections: Rows | None) -> bool:
    return all(s is not None for s in sections)


# ── Section builders (pure) ─────────────────────────────────────────────────


def revenue_by_month(
    sales: Rows, revenues: Rows, expenses: Rows,
) -> dict[str, dict[str, Any]]:
    """Fold paid sales, standalone revenues and expenses into one month table.

    Keyed by French month label (``janv. 2024``), in chronological order.
    ``revenue`` is paid sales plus standalone revenues; ``profit`` is only
    derived once all three sources have been merged.
    """
    by_sales = aggregate(
        paid_only(sales),
        lambda s: month_period(s.get("date")),
        {"sales": Sum("net"), "count": Count()},
    )
    by_revenues = aggregate(
        revenues, lambda r: month_period(r.get("date")), {"amount": Sum("amount")},
    )
    by_expenses = aggregate(
        expenses, lambda e: month_period(e.get("date")), {"amount": Sum("amount")},
    )

    merged: dict[str, dict[str, Any]] = {}
    for period in sorted({*by_sales, *by_revenues, *by_expenses}):
        sold = by_sales.get(period, {})
        sales_total = sold.get("sales", ZERO)
        merged[period] = {
            "period": period,
            "sales": sales_total,
            "sales_count": sold.get("count", 0),
            "revenue": sales_total + by_revenues.get(period, {}).get("amount", ZERO),
            "expenses": by_expenses.get(period, {}).get("amount", ZERO),
        }

    for entry in merged.values():
        entry["profit"] = entry["revenue"] - entry["expenses"]

    return {period_label(period): entry for period, entry in merged.items()}


def monthly_rows(table: dict[str, dict[str, Any]], last: int | None = None) -> Rows:
    out = [{"month": label, **entry} for label, entry in table.items()]
    return out[-last:] if last else out


def breakdown(sales: Rows, field: str, default: str) -> Rows:
    """Paid sales grouped on *field*: total net value and count per group."""
    groups = aggregate(
        paid_only(sales), field_key(field, default),
        {"value": Sum("net"), "count": Count()},
    )
    return sorted(rows(groups, "name"), key=lambda r: r["value"], reverse=True)


def _product_line(item: dict[str, Any]) -> str | None:
    if item.get("product_id") and not item.get("service_id") and item.get("product"):
        return item["product"].get("name") or "Produit"
    return None


def _service_line(item: dict[str, Any]) -> str | None:
    if item.get("service_id") and not item.get("product_id") and item.get("service"):
        return item["service"].get("name") or "Service"
    return None


def top_products(items: Rows, n: int) -> Rows:
    """Best-selling products by revenue.

    Only lines referencing a product and no service are counted; lines with
    both or neither are left out.
    """
    groups = aggregate(
        items, _product_line,
        {"quantity": Sum("quantity"), "revenue": Sum("line_total")},
    )
    return top_n(rows(groups, "name"), "revenue", n)


def top_services(items: Rows, n: int) -> Rows:
    groups = aggregate(
        items, _service_line,
        {"count": Sum("quantity"), "revenue": Sum("line_total")},
    )
    return top_n(rows(groups, "name"), "revenue", n)


def top_clients(sales: Rows, n: int) -> Rows:
    """Clients ranked by paid revenue; ``sales`` must carry a resolved ``client``."""
    groups = aggregate(
        paid_only(sales),
        lambda s: client_label(s) if s.get("client") else None,
        {"purchases": Count(), "revenue": Sum("net")},
    )
    return top_n(rows(groups, "name"), "revenue", n)


def share_breakdown(records: Rows, field: str, default: str, whole: Decimal) -> Rows:
    groups = aggregate(records, field_key(field, default), {"amount": Sum("amount")})
    out = [
        {"name": name, "amount": m["amount"], "percentage": percentage(m["amount"], whole)}
        for name, m in groups.items()
    ]
    return sorted(out, key=lambda r: r["amount"], reverse=True)


# ── Dashboard overview ──────────────────────────────────────────────────────


async def get_dashboard(
    store: DataStore,
    *,
    now: datetime | None = None,
    months: int | None = None,
    top: int | None = None,
) -> dict[str, Any]:
    now = now or _now()
    months = months or settings.DASHBOARD_MONTHS
    top = top or settings.DASHBOARD_TOP_N
    start = months_ago(now, months)
    previous_start = months_ago(now, months * 2)

    data, warnings = await load_sections(store, {
        "users": Query("users", columns="id").eq("is_active", True),
        "clients": Query("clients", columns="id").eq("is_active", True),
        "sales": Query("sales").gte("date", start),
        "previous_sales": Query("sales", columns="id,net,status")
        .gte("date", previous_start).lt("date", start),
        "revenues": Query("revenues").gte("date", start.date()),
        "expenses": Query("expenses").gte("date", start.date()),
        "products": Query("products", columns="id,name").eq("is_active", True),
        "services": Query("services", columns="id,name").eq("is_active", True),
        "appointments": Query("appointments", columns="id").gte("date", start),
        "deliveries": Query("deliveries", columns="id").gte("created_at", start),
        "sale_items": Query("sale_items").gte("created_at", start),
    })

    sales = data["sales"]
    paid = paid_only(sales) if sales is not None else None

    # Dependent fetches: ids are only known once the primary rows arrived.
    resolver = RelationResolver(store)
    items: Rows | None = None
    if paid is not None and data["sale_items"] is not None:
        paid_ids = {str(s["id"]) for s in paid}
        items = await resolver.resolve(
            [i for i in data["sale_items"] if str(i.get("sale_id")) in paid_ids],
            [
                Relation("product_id", "products", "product", columns="id,name",
                         placeholder=settings.UNKNOWN_LABEL),
                Relation("service_id", "services", "service", columns="id,name",
                         placeholder=settings.UNKNOWN_LABEL),
            ],
        )
    sales_with_clients: Rows | None = None
    if paid is not None:
        sales_with_clients = await resolver.resolve(
            [s for s in paid if s.get("client_id")],
            [Relation("client_id", "clients", "client",
                      columns="id,first_name,last_name",
                      placeholder=settings.UNKNOWN_LABEL)],
        )
    warnings.extend(f"relation {name}: unresolved" for name in resolver.failed)

    total_revenue = None
    if _available(paid, data["revenues"]):
        total_revenue = total(paid, "net") + total(data["revenues"], "amount")

    sales_growth = None
    if _available(paid, data["previous_sales"]):
        sales_growth = growth(
            total(paid, "net"), total(paid_only(data["previous_sales"]), "net"),
        )

    revenue_months = None
    if _available(sales, data["revenues"], data["expenses"]):
        revenue_months = monthly_rows(
            revenue_by_month(sales, data["revenues"], data["expenses"]), last=months,
        )

    products_ok = items is not None and "product" not in resolver.failed
    services_ok = items is not None and "service" not in resolver.failed
    clients_ok = sales_with_clients is not None and "client" not in resolver.failed

    return {
        "period_start": start.date(),
        "period_end": now.date(),
        "totals": {
            "users": _count(data["users"]),
            "clients": _count(data["clients"]),
            "sales": _count(paid),
            "revenue": total_revenue,
            "products": _count(data["products"]),
            "services": _count(data["services"]),
            "appointments": _count(data["appointments"]),
            "deliveries": _count(data["deliveries"]),
        },
        "sales_growth": sales_growth,
        "revenue_by_month": revenue_months,
        "sales_by_type": breakdown(sales, "type", OTHER) if sales is not None else None,
        "sales_by_payment_method": (
            breakdown(sales, "payment_method", UNSPECIFIED) if sales is not None else None
        ),
        "top_products": top_products(items, top) if products_ok else None,
        "top_services": top_services(items, top) if services_ok else None,
        "top_clients": top_clients(sales_with_clients, top) if clients_ok else None,
        "warnings": warnings,
    }


# ── Analytics summary ───────────────────────────────────────────────────────


async def get_analytics(
    store: DataStore, *, days: int | None = None, now: datetime | None = None,
) -> dict[str, Any]:
    now = now or _now()
    days = days or settings.ANALYTICS_DEFAULT_DAYS
    if days not in ANALYTICS_PERIODS:
        raise ValueError("invalid_days")
    start = now - timedelta(days=days)
    previous_start = now - timedelta(days=days * 2)

    data, warnings = await load_sections(store, {
        "revenues": Query("revenues", columns="amount,date").gte("date", start.date()),
        "expenses": Query("expenses", columns="amount,date").gte("date", start.date()),
        "sales": Query("sales", columns="id,net,status,date").gte("date", start),
        "clients": Query("clients", columns="id,created_at")
        .eq("is_active", True).gte("created_at", start),
        "products": Query("products", columns="id").eq("is_active", True),
        "services": Query("services", columns="id").eq("is_active", True),
        "appointments": Query("appointments", columns="id,date").gte("date", start),
        "deliveries": Query("deliveries", columns="id,created_at").gte("created_at", start),
        "previous_revenues": Query("revenues", columns="amount")
        .gte("date", previous_start.date()).lt("date", start.date()),
        "previous_expenses": Query("expenses", columns="amount")
        .gte("date", previous_start.date()).lt("date", start.date()),
        "previous_sales": Query("sales", columns="net,status")
        .gte("date", previous_start).lt("date", start),
    })

    paid = paid_only(data["sales"]) if data["sales"] is not None else None

    revenue = None
    if _available(paid, data["revenues"]):
        revenue = total(data["revenues"], "amount") + total(paid, "net")
    expenses = total(data["expenses"], "amount") if data["expenses"] is not None else None

    average_sale = None
    if paid is not None:
        average_sale = total(paid, "net") / len(paid) if paid else ZERO

    revenue_growth = None
    if revenue is not None and _available(data["previous_revenues"], data["previous_sales"]):
        previous = total(data["previous_revenues"], "amount") + total(
            paid_only(data["previous_sales"]), "net",
        )
        revenue_growth = growth(revenue, previous)

    expense_growth = None
    if expenses is not None and data["previous_expenses"] is not None:
        expense_growth = growth(expenses, total(data["previous_expenses"], "amount"))

    return {
        "days": days,
        "period_start": start.date(),
        "period_end": now.date(),
        "total_revenue": revenue,
        "total_expenses": expenses,
        "net_profit": revenue - expenses if revenue is not None and expenses is not None else None,
        "total_sales": _count(paid),
        "average_sale": average_sale,
        "new_clients": _count(data["clients"]),
        "total_products": _count(data["products"]),
        "total_services": _count(data["services"]),
        "total_appointments": _count(data["appointments"]),
        "total_deliveries": _count(data["deliveries"]),
        "revenue_growth": revenue_growth,
        "expense_growth": expense_growth,
        "warnings": warnings,
    }


# ── Financial report ────────────────────────────────────────────────────────


async def get_financial_report(
    store: DataStore, from_date: date, to_date: date,
) -> dict[str, Any]:
    end = to_date + timedelta(days=1)
    data, warnings = await load_sections(store, {
        "revenues": Query("revenues").gte("date", from_date).lt("date", end),
        "expenses": Query("expenses").gte("date", from_date).lt("date", end),
        "sales": Query("sales", columns="id,net,status,date")
        .gte("date", _start_of_day(from_date)).lt("date", _start_of_day(end)),
    })
    revenues, expenses, sales = data["revenues"], data["expenses"], data["sales"]

    report: dict[str, Any] = {
        "from_date": from_date,
        "to_date": to_date,
        "total_revenue": None,
        "total_expenses": None,
        "net_profit": None,
        "profit_margin": None,
        "revenue_by_month": None,
        "expenses_by_category": None,
        "revenue_by_source": None,
        "warnings": warnings,
    }

    total_expenses = total(expenses, "amount") if expenses is not None else None
    report["total_expenses"] = total_expenses

    total_revenue = None
    if _available(revenues, sales):
        sales_total = total(paid_only(sales), "net")
        total_revenue = total(revenues, "amount") + sales_total
        sources = share_breakdown(revenues, "source", OTHER, total_revenue)
        if sales_total:
            sources.append({
                "name": SALES_SOURCE,
                "amount": sales_total,
                "percentage": percentage(sales_total, total_revenue),
            })
            sources.sort(key=lambda r: r["amount"], reverse=True)
        report["revenue_by_source"] = sources
    report["total_revenue"] = total_revenue

    if total_revenue is not None and total_expenses is not None:
        net = total_revenue - total_expenses
        report["net_profit"] = net
        report["profit_margin"] = percentage(net, total_revenue)
        report["revenue_by_month"] = monthly_rows(revenue_by_month(sales, revenues, expenses))

    if expenses is not None:
        report["expenses_by_category"] = share_breakdown(
            expenses, "category", OTHER, total_expenses,
        )
    return report


# ── Product report ──────────────────────────────────────────────────────────


async def get_product_report(
    store: DataStore,
    from_date: date,
    to_date: date,
    *,
    top: int | None = None,
    low_stock_threshold: int | None = None,
) -> dict[str, Any]:
    top = top or settings.REPORT_TOP_N
    threshold = (
        low_stock_threshold if low_stock_threshold is not None
        else settings.LOW_STOCK_THRESHOLD
    )
    start, end = _start_of_day(from_date), _start_of_day(to_date + timedelta(days=1))

    data, warnings = await load_sections(store, {
        "products": Query("products"),
        "sale_items": Query("sale_items").gte("created_at", start).lt("created_at", end),
    })
    products, raw_items = data["products"], data["sale_items"]

    report: dict[str, Any] = {
        "from_date": from_date,
        "to_date": to_date,
        "total_products": None,
        "active_products": None,
        "low_stock_products": None,
        "out_of_stock_products": None,
        "top_selling_products": None,
        "products_by_category": None,
        "stock_value_by_category": None,
        "warnings": warnings,
    }

    resolver = RelationResolver(store)

    if products is not None:
        products = await resolver.resolve(
            products,
            [Relation("category_id", "categories", "category", columns="id,name")],
        )
        stocks = [int(to_decimal(p.get("stock_quantity"))) for p in products]
        report["total_products"] = len(products)
        report["active_products"] = sum(
            1 for p in products
            if p.get("is_active") and (p.get("status") or "active") == "active"
        )
        report["low_stock_products"] = sum(1 for s in stocks if 0 < s <= threshold)
        report["out_of_stock_products"] = sum(1 for s in stocks if s == 0)

        def category_name(p: dict[str, Any]) -> str:
            return (p.get("category") or {}).get("name") or UNCATEGORIZED

        def stock_value(p: dict[str, Any]) -> Decimal:
            return to_decimal(p.get("price")) * to_decimal(p.get("stock_quantity"))

        by_category = aggregate(
            products, category_name,
            {"count": Count(), "total_value": Sum(stock_value),
             "stock_quantity": Sum("stock_quantity")},
        )
        report["products_by_category"] = sorted(
            (
                {"category_name": k, "count": m["count"], "total_value": m["total_value"]}
                for k, m in by_category.items()
            ),
            key=lambda r: r["count"], reverse=True,
        )
        report["stock_value_by_category"] = sorted(
            (
                {"category_name": k, "stock_quantity": m["stock_quantity"],
                 "stock_value": m["total_value"]}
                for k, m in by_category.items()
            ),
            key=lambda r: r["stock_value"], reverse=True,
        )

    if raw_items is not None:
        top_selling = await _top_selling_products(
            store, resolver, raw_items, start, end, top, warnings,
        )
        report["top_selling_products"] = top_selling

    if resolver.failed:
        warnings.extend(f"relation {name}: unresolved" for name in resolver.failed)
    return report


async def _top_selling_products(
    store: DataStore,
    resolver: RelationResolver,
    raw_items: Rows,
    start: datetime,
    end: datetime,
    top: int,
    warnings: list[str],
) -> Rows | None:
    sale_ids = sorted({str(i["sale_id"]) for i in raw_items if i.get("sale_id")})
    if not sale_ids:
        return []
    try:
        sales = await fetch_rows(
            store,
            Query("sales", columns="id,status,date")
            .in_("id", sale_ids).gte("date", start).lt("date", end),
        )
    except Exception as exc:
        logger.error("Failed to load sales for product report: %s", exc)
        warnings.append(f"sales: {exc}")
        return None

    paid_ids = {str(s["id"]) for s in paid_only(sales)}
    items = await resolver.resolve(
        [i for i in raw_items if str(i.get("sale_id")) in paid_ids and i.get("product_id")],
        [Relation("product_id", "products", "product", columns="id,name,cost,price",
                  placeholder=settings.UNKNOWN_LABEL)],
    )
    if "product" in resolver.failed:
        return None

    def line_profit(item: dict[str, Any]) -> Decimal:
        product = item["product"]
        margin = to_decimal(product.get("price")) - to_decimal(product.get("cost"))
        return margin * to_decimal(item.get("quantity"))

    groups = aggregate(
        items,
        lambda i: i["product"].get("name") if i.get("product") else None,
        {"quantity_sold": Sum("quantity"), "revenue": Sum("line_total"),
         "profit": Sum(line_profit)},
    )
    return top_n(rows(groups, "product_name"), "revenue", top)


# ── Client report ───────────────────────────────────────────────────────────


async def get_client_report(
    store: DataStore, from_date: date, to_date: date, *, top: int | None = None,
) -> dict[str, Any]:
    top = top or settings.REPORT_TOP_N
    end = to_date + timedelta(days=1)
    data, warnings = await load_sections(store, {
        "clients": Query("clients"),
        "sales": Query("sales", columns="id,client_id,net,status,date")
        .gte("date", _start_of_day(from_date)).lt("date", _start_of_day(end)),
    })
    clients, sales = data["clients"], data["sales"]

    report: dict[str, Any] = {
        "from_date": from_date,
        "to_date": to_date,
        "total_clients": None,
        "new_clients": None,
        "active_clients": None,
        "clients_by_city": None,
        "clients_by_acquisition": None,
        "top_spending_clients": None,
        "warnings": warnings,
    }
    if clients is None:
        return report

    def created_in_range(c: dict[str, Any]) -> bool:
        created = as_date(c.get("created_at"))
        return created is not None and from_date <= created <= to_date

    report["total_clients"] = len(clients)
    report["new_clients"] = sum(1 for c in clients if created_in_range(c))
    report["active_clients"] = sum(1 for c in clients if c.get("is_active"))

    for section, field, label in (
        ("clients_by_city", "city", "city"),
        ("clients_by_acquisition", "acquisition_channel", "channel"),
    ):
        groups = aggregate(clients, field_key(field, UNSPECIFIED), {"count": Count()})
        report[section] = sorted(
            rows(groups, label), key=lambda r: r["count"], reverse=True,
        )

    if sales is not None:
        by_id = {str(c["id"]): c for c in clients}
        spending = aggregate(
            paid_only(sales),
            lambda s: str(s["client_id"]) if s.get("client_id") else None,
            {"total_spent": Sum("net"), "visits": Count()},
        )
        report["top_spending_clients"] = top_n(
            [
                {"client_id": cid,
                 "client_name": person_label(by_id.get(cid), default=settings.UNKNOWN_LABEL),
                 **m}
                for cid, m in spending.items()
            ],
            "total_spent",
            top,
        )
    return report


