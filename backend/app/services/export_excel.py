"""Excel export functions for the salon reports using openpyxl."""
from __future__ import annotations

import io
from decimal import Decimal
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from backend.app.services.export_i18n import t

# ── Shared styling constants ────────────────────────────────────────────────

_HEADER_FONT = Font(name="Calibri", bold=True, color="FFFFFF", size=11)
_HEADER_FILL = PatternFill(start_color="7B2D5B", end_color="7B2D5B", fill_type="solid")
_SECTION_FONT = Font(name="Calibri", bold=True, size=11)
_SECTION_FILL = PatternFill(start_color="F3E1EC", end_color="F3E1EC", fill_type="solid")
_TOTAL_FONT = Font(name="Calibri", bold=True, size=11)
_TOTAL_BORDER = Border(
    top=Side(style="thin"),
    bottom=Side(style="double"),
)
_CURRENCY_FMT = '#,##0.00'
_RIGHT = Alignment(horizontal="right")
_LEFT = Alignment(horizontal="left")


def _auto_width(ws: Any) -> None:
    """Auto-fit column widths based on content."""
    for col_idx in range(1, ws.max_column + 1):
        max_len = 0
        col_letter = get_column_letter(col_idx)
        for row in ws.iter_rows(min_col=col_idx, max_col=col_idx, values_only=False):
            cell = row[0]
            if cell.value is not None:
                max_len = max(max_len, len(str(cell.value)))
        ws.column_dimensions[col_letter].width = min(max_len + 4, 40)


def _write_header_row(ws: Any, row: int, values: list[str]) -> None:
    """Write a styled header row."""
    for col, val in enumerate(values, 1):
        cell = ws.cell(row=row, column=col, value=val)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = _RIGHT if col > 1 else _LEFT


def _write_title(ws: Any, title: str, subtitle: str) -> int:
    """Write report title and subtitle, return next available row."""
    ws.cell(row=1, column=1, value=title).font = Font(name="Calibri", bold=True, size=14)
    ws.cell(row=2, column=1, value=subtitle).font = Font(name="Calibri", size=10, italic=True)
    return 4


def _to_workbook(ws: Any, wb: Workbook) -> io.BytesIO:
    """Finalize workbook and return as BytesIO."""
    _auto_width(ws)
    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf


def _period(lang: str, data: dict[str, Any]) -> str:
    return f"{t(lang, 'period')}: {data['from_date']} {t(lang, 'to')} {data['to_date']}"


def _value(value: Any) -> Any:
    return float(value) if isinstance(value, Decimal) else value


def _write_summary(
    ws: Any, row: int, lang: str, data: dict[str, Any], keys: list[str],
    money: set[str] | None = None,
) -> int:
    money = money or set()
    ws.cell(row=row, column=1, value=t(lang, "summary")).font = _SECTION_FONT
    ws.cell(row=row, column=1).fill = _SECTION_FILL
    ws.cell(row=row, column=2).fill = _SECTION_FILL
    row += 1
    for key in keys:
        ws.cell(row=row, column=1, value=t(lang, key))
        value = data.get(key)
        c = ws.cell(
            row=row, column=2,
            value=_value(value) if value is not None else t(lang, "unavailable"),
        )
        if key in money and value is not None:
            c.number_format = _CURRENCY_FMT
        c.alignment = _RIGHT
        row += 1
    return row + 1


def _write_table(
    ws: Any,
    row: int,
    lang: str,
    title_key: str,
    items: list[dict[str, Any]] | None,
    columns: list[tuple[str, str]],
    money: set[str] | None = None,
) -> int:
    """Write a titled section of ``items`` with (field, label key) columns."""
    money = money or set()
    ws.cell(row=row, column=1, value=t(lang, title_key)).font = _SECTION_FONT
    for col in range(1, len(columns) + 1):
        ws.cell(row=row, column=col).fill = _SECTION_FILL
    row += 1
    if items is None:
        ws.cell(row=row, column=1, value=t(lang, "unavailable"))
        return row + 2

    _write_header_row(ws, row, [t(lang, label) for _, label in columns])
    row += 1
    for item in items:
        for col, (field, _) in enumerate(columns, 1):
            c = ws.cell(row=row, column=col, value=_value(item.get(field)))
            if col > 1:
                c.alignment = _RIGHT
            if field in money:
                c.number_format = _CURRENCY_FMT
        row += 1
    return row + 1


def _write_warnings(ws: Any, row: int, lang: str, warnings: list[str]) -> int:
    if not warnings:
        return row
    ws.cell(row=row, column=1, value=t(lang, "warnings")).font = _TOTAL_FONT
    row += 1
    for warning in warnings:
        ws.cell(row=row, column=1, value=warning)
        row += 1
    return row


# ── 1. Financial report ─────────────────────────────────────────────────────


def export_financial_report_excel(data: dict[str, Any], lang: str = "fr") -> io.BytesIO:
    wb = Workbook()
    ws = wb.active
    ws.title = t(lang, "financial_report")

    row = _write_title(ws, t(lang, "financial_report"), _period(lang, data))
    row = _write_summary(
        ws, row, lang, data,
        ["total_revenue", "total_expenses", "net_profit", "profit_margin"],
        money={"total_revenue", "total_expenses", "net_profit"},
    )
    row = _write_table(
        ws, row, lang, "revenue_by_month", data.get("revenue_by_month"),
        [("month", "month"), ("revenue", "revenue"), ("sales", "sales"),
         ("expenses", "expenses"), ("profit", "profit")],
        money={"revenue", "sales", "expenses", "profit"},
    )
    row = _write_table(
        ws, row, lang, "expenses_by_category", data.get("expenses_by_category"),
        [("name", "category"), ("amount", "amount"), ("percentage", "percentage")],
        money={"amount"},
    )
    row = _write_table(
        ws, row, lang, "revenue_by_source", data.get("revenue_by_source"),
        [("name", "name"), ("amount", "amount"), ("percentage", "percentage")],
        money={"amount"},
    )
    # Net profit emphasised last, like a statement bottom line
    if data.get("net_profit") is not None:
        ws.cell(row=row, column=1, value=t(lang, "net_profit")).font = _TOTAL_FONT
        c = ws.cell(row=row, column=2, value=_value(data["net_profit"]))
        c.number_format = _CURRENCY_FMT
        c.font = _TOTAL_FONT
        c.border = _TOTAL_BORDER
        c.alignment = _RIGHT
        row += 2
    _write_warnings(ws, row, lang, data.get("warnings", []))
    return _to_workbook(ws, wb)


# ── 2. Product report ───────────────────────────────────────────────────────


def export_product_report_excel(data: dict[str, Any], lang: str = "fr") -> io.BytesIO:
    wb = Workbook()
    ws = wb.active
    ws.title = t(lang, "product_report")

    row = _write_title(ws, t(lang, "product_report"), _period(lang, data))
    row = _write_summary(
        ws, row, lang, data,
        ["total_products", "active_products", "low_stock_products", "out_of_stock_products"],
    )
    row = _write_table(
        ws, row, lang, "top_selling_products", data.get("top_selling_products"),
        [("product_name", "name"), ("quantity_sold", "quantity_sold"),
         ("revenue", "revenue"), ("profit", "profit")],
        money={"revenue", "profit"},
    )
    row = _write_table(
        ws, row, lang, "products_by_category", data.get("products_by_category"),
        [("category_name", "category"), ("count", "count"), ("total_value", "total_value")],
        money={"total_value"},
    )
    row = _write_table(
        ws, row, lang, "stock_value_by_category", data.get("stock_value_by_category"),
        [("category_name", "category"), ("stock_quantity", "stock_quantity"),
         ("stock_value", "stock_value")],
        money={"stock_value"},
    )
    _write_warnings(ws, row, lang, data.get("warnings", []))
    return _to_workbook(ws, wb)


# ── 3. Client report ────────────────────────────────────────────────────────


def export_client_report_excel(data: dict[str, Any], lang: str = "fr") -> io.BytesIO:
    wb = Workbook()
    ws = wb.active
    ws.title = t(lang, "client_report")

    row = _write_title(ws, t(lang, "client_report"), _period(lang, data))
    row = _write_summary(
        ws, row, lang, data, ["total_clients", "new_clients", "active_clients"],
    )
    row = _write_table(
        ws, row, lang, "clients_by_city", data.get("clients_by_city"),
        [("city", "city"), ("count", "count")],
    )
    row = _write_table(
        ws, row, lang, "clients_by_acquisition", data.get("clients_by_acquisition"),
        [("channel", "channel"), ("count", "count")],
    )
    row = _write_table(
        ws, row, lang, "top_spending_clients", data.get("top_spending_clients"),
        [("client_name", "client"), ("total_spent", "total_spent"), ("visits", "visits")],
        money={"total_spent"},
    )
    _write_warnings(ws, row, lang, data.get("warnings", []))
    return _to_workbook(ws, wb)
