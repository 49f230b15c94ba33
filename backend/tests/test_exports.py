"""Tests for the Excel report exports."""
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from openpyxl import load_workbook

from backend.app.services.export_excel import (
    export_client_report_excel,
    export_financial_report_excel,
    export_product_report_excel,
)


def _cells(buf: Any) -> list[Any]:
    ws = load_workbook(buf).active
    return [c for row in ws.iter_rows(values_only=True) for c in row if c is not None]


FINANCIAL = {
    "from_date": date(2024, 1, 1),
    "to_date": date(2024, 3, 31),
    "total_revenue": Decimal("1800"),
    "total_expenses": Decimal("400"),
    "net_profit": Decimal("1400"),
    "profit_margin": 77.78,
    "revenue_by_month": [
        {"month": "janv. 2024", "period": "2024-01", "revenue": Decimal("1500"),
         "sales": Decimal("1500"), "sales_count": 2, "expenses": Decimal("400"),
         "profit": Decimal("1100")},
    ],
    "expenses_by_category": [{"name": "Loyer", "amount": Decimal("400"), "percentage": 100.0}],
    "revenue_by_source": None,
    "warnings": ["revenues: relation unavailable"],
}


def test_financial_export_writes_sections() -> None:
    buf = export_financial_report_excel(FINANCIAL)
    # XLSX files are ZIP archives starting with PK
    assert buf.getvalue()[:2] == b"PK"

    cells = _cells(buf)
    assert cells[0] == "Rapport financier"
    assert "Période: 2024-01-01 au 2024-03-31" in cells
    assert "janv. 2024" in cells
    assert "Loyer" in cells
    assert 1400.0 in cells


def test_unavailable_section_and_warnings_are_listed() -> None:
    cells = _cells(export_financial_report_excel(FINANCIAL))
    assert "Indisponible" in cells
    assert "Sections indisponibles" in cells
    assert "revenues: relation unavailable" in cells


def test_english_labels() -> None:
    cells = _cells(export_financial_report_excel(FINANCIAL, "en"))
    assert "Period: 2024-01-01 to 2024-03-31" in cells


def test_product_and_client_exports() -> None:
    period = {"from_date": date(2024, 1, 1), "to_date": date(2024, 1, 31), "warnings": []}
    products = export_product_report_excel({
        **period,
        "total_products": 3, "active_products": 2,
        "low_stock_products": 1, "out_of_stock_products": 1,
        "top_selling_products": [
            {"product_name": "Shampoing", "quantity_sold": Decimal("3"), "revenue": Decimal("54"),
             "profit": Decimal("31.5")},
        ],
        "products_by_category": [],
        "stock_value_by_category": [],
    })
    clients = export_client_report_excel({
        **period,
        "total_clients": 2, "new_clients": 1, "active_clients": 2,
        "clients_by_city": [{"city": "Rabat", "count": 1}],
        "clients_by_acquisition": [],
        "top_spending_clients": [],
    })

    assert "Shampoing" in _cells(products)
    assert "Rabat" in _cells(clients)
