from __future__ import annotations

from collections.abc import Awaitable, Callable
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import StreamingResponse

from backend.app.api.deps import error_detail, get_context, get_language
from backend.app.core.context import AppContext
from backend.app.schemas.reports import (
    AnalyticsResponse,
    ClientReportResponse,
    DashboardResponse,
    FinancialReportResponse,
    ProductReportResponse,
    SnapshotResponse,
)
from backend.app.services.export_excel import (
    export_client_report_excel,
    export_financial_report_excel,
    export_product_report_excel,
)
from backend.app.services.reports import (
    default_range,
    get_analytics as _get_analytics,
    get_client_report as _get_client_report,
    get_dashboard as _get_dashboard,
    get_financial_report as _get_financial_report,
    get_product_report as _get_product_report,
)

router = APIRouter()

REPORTS = ("dashboard", "analytics", "financial", "products", "clients")

XLSX = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


async def _refresh(
    request: Request,
    context: AppContext,
    name: str,
    compute: Callable[[], Awaitable[dict[str, Any]]],
) -> dict[str, Any]:
    """Compute a report under a fresh generation so it can become the latest snapshot."""
    try:
        payload, _ = await context.snapshots.refresh(name, compute)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=error_detail(request, str(e)),
        )
    return payload


def _range(request: Request, from_date: date | None, to_date: date | None) -> tuple[date, date]:
    try:
        return default_range(from_date, to_date)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=error_detail(request, str(e)),
        )


# ── Dashboard overview ──────────────────────────────────────────────────────


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    request: Request,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    return await _refresh(
        request, context, "dashboard", lambda: _get_dashboard(context.store),
    )


# ── Analytics summary ───────────────────────────────────────────────────────


@router.get("/analytics", response_model=AnalyticsResponse)
async def analytics(
    request: Request,
    days: int | None = Query(None),
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    return await _refresh(
        request, context, "analytics", lambda: _get_analytics(context.store, days=days),
    )


# ── Financial report ────────────────────────────────────────────────────────


@router.get("/financial", response_model=FinancialReportResponse)
async def financial_report(
    request: Request,
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    fd, td = _range(request, from_date, to_date)
    return await _refresh(
        request, context, "financial",
        lambda: _get_financial_report(context.store, fd, td),
    )


# ── Product report ──────────────────────────────────────────────────────────


@router.get("/products", response_model=ProductReportResponse)
async def product_report(
    request: Request,
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    fd, td = _range(request, from_date, to_date)
    return await _refresh(
        request, context, "products",
        lambda: _get_product_report(context.store, fd, td),
    )


# ── Client report ───────────────────────────────────────────────────────────


@router.get("/clients", response_model=ClientReportResponse)
async def client_report(
    request: Request,
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    fd, td = _range(request, from_date, to_date)
    return await _refresh(
        request, context, "clients",
        lambda: _get_client_report(context.store, fd, td),
    )


# ── Latest snapshot ─────────────────────────────────────────────────────────


@router.get("/{name}/latest", response_model=SnapshotResponse)
def latest_report(
    name: str,
    request: Request,
    context: AppContext = Depends(get_context),
) -> dict[str, Any]:
    if name not in REPORTS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(request, "report_not_found", name=name),
        )
    snapshot = context.snapshots.latest(name)
    if snapshot is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(request, "snapshot_not_found", name=name),
        )
    return {
        "report": name,
        "generation": snapshot.generation,
        "computed_at": snapshot.computed_at,
        "payload": snapshot.payload,
    }


# ── Excel export ────────────────────────────────────────────────────────────


_EXPORTS = {
    "financial": (_get_financial_report, export_financial_report_excel),
    "products": (_get_product_report, export_product_report_excel),
    "clients": (_get_client_report, export_client_report_excel),
}


@router.get("/{name}/export")
async def export_report(
    name: str,
    request: Request,
    from_date: date | None = Query(None),
    to_date: date | None = Query(None),
    context: AppContext = Depends(get_context),
) -> StreamingResponse:
    if name not in _EXPORTS:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=error_detail(request, "report_not_found", name=name),
        )
    compose, export = _EXPORTS[name]
    fd, td = _range(request, from_date, to_date)
    data = await compose(context.store, fd, td)
    buf = export(data, get_language(request))
    filename = f"rapport_{name}_{fd}_{td}.xlsx"
    return StreamingResponse(
        buf,  # type: ignore[arg-type]
        media_type=XLSX,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
