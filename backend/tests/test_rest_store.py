"""Unit tests for RestStore with httpx mock transport."""

from __future__ import annotations

import asyncio
import json
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import httpx
import pytest

from backend.app.core.rest_store import RestStore, parse_content_range
from backend.app.core.store import Query, StoreError
from backend.app.services.reports import get_dashboard


# ─── Helpers ────────────────────────────────────────────────────────────────


def _mock_response(status_code: int, json_data: Any = None, **kwargs: Any) -> httpx.Response:
    return httpx.Response(
        status_code=status_code,
        json=json_data,
        request=httpx.Request("GET", "https://test.example.com"),
        **kwargs,
    )


class Recorder:
    """Mock transport handler that records requests and replays one response."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


def _store(recorder: Recorder, **kwargs: Any) -> RestStore:
    return RestStore(
        "https://salon.example.com/",
        "anon-key",
        transport=httpx.MockTransport(recorder),
        **kwargs,
    )


def _run(recorder: Recorder, call: Any, **kwargs: Any) -> Any:
    async def _go() -> Any:
        store = _store(recorder, **kwargs)
        try:
            return await call(store)
        finally:
            await store.aclose()

    return asyncio.run(_go())


# ─── Tests ──────────────────────────────────────────────────────────────────


class TestHandleResponse:
    def test_200_returns_rows(self) -> None:
        resp = _mock_response(200, [{"id": "1"}])
        assert RestStore._handle_response(resp) == [{"id": "1"}]

    def test_204_returns_empty(self) -> None:
        resp = httpx.Response(204, request=httpx.Request("DELETE", "https://x"))
        assert RestStore._handle_response(resp) == []

    def test_4xx_becomes_store_error(self) -> None:
        body = {
            "code": "23503",
            "message": 'update or delete on table "dd-produits" violates foreign key constraint',
            "details": 'Key is still referenced from table "dd-vente-items".',
        }
        with pytest.raises(StoreError) as exc_info:
            RestStore._handle_response(_mock_response(409, body))
        assert exc_info.value.code == "23503"
        assert exc_info.value.is_foreign_key_violation
        assert "still referenced" in exc_info.value.details

    def test_4xx_without_json(self) -> None:
        resp = httpx.Response(401, text="Unauthorized", request=httpx.Request("GET", "https://x"))
        with pytest.raises(StoreError) as exc_info:
            RestStore._handle_response(resp)
        assert exc_info.value.code == "401"

    def test_5xx_raises(self) -> None:
        with pytest.raises(httpx.HTTPStatusError):
            RestStore._handle_response(_mock_response(503, {"message": "down"}))

    def test_non_json_success_is_parse_error(self) -> None:
        resp = httpx.Response(200, text="<html>", request=httpx.Request("GET", "https://x"))
        with pytest.raises(StoreError) as exc_info:
            RestStore._handle_response(resp)
        assert exc_info.value.code == "PARSE_ERROR"


class TestSelect:
    def test_filters_order_range_and_count(self) -> None:
        recorder = Recorder(_mock_response(
            200, [{"id": "a"}], headers={"Content-Range": "20-39/137"},
        ))
        query = (
            Query("sales", columns="id,net")
            .gte("date", date(2024, 1, 1))
            .eq("status", "paid")
            .in_("client_id", ["c1", "c2"])
            .is_null("deleted_at")
            .order("date", descending=True)
            .range(20, 39)
            .with_count()
        )
        result = _run(recorder, lambda s: s.select(query), table_names={"sales": "dd-ventes"})

        request = recorder.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/rest/v1/dd-ventes"
        params = request.url.params
        assert params["select"] == "id,net"
        assert params["date"] == "gte.2024-01-01"
        assert params["status"] == "eq.paid"
        assert params["client_id"] == "in.(c1,c2)"
        assert params["deleted_at"] == "is.null"
        assert params["order"] == "date.desc"
        assert params["offset"] == "20"
        assert params["limit"] == "20"
        assert request.headers["Prefer"] == "count=exact"
        assert request.headers["apikey"] == "anon-key"
        assert request.headers["Authorization"] == "Bearer anon-key"
        assert result.rows == [{"id": "a"}]
        assert result.count == 137

    def test_no_count_header_without_count(self) -> None:
        recorder = Recorder(_mock_response(200, []))
        result = _run(recorder, lambda s: s.select(Query("clients")))
        assert "Prefer" not in recorder.requests[0].headers
        assert recorder.requests[0].url.path == "/rest/v1/clients"
        assert result.count is None

    def test_store_error_propagates(self) -> None:
        recorder = Recorder(_mock_response(400, {"code": "42703", "message": "column does not exist"}))
        with pytest.raises(StoreError, match="column does not exist"):
            _run(recorder, lambda s: s.select(Query("clients").eq("ville", "Rabat")))


class TestWrites:
    def test_update_patches_with_match_and_json_body(self) -> None:
        recorder = Recorder(_mock_response(200, [{"id": "p1", "is_active": False}]))
        rows = _run(recorder, lambda s: s.update(
            "products", {"is_active": False, "price": Decimal("9.90")}, {"id": "p1"},
        ))

        request = recorder.requests[0]
        assert request.method == "PATCH"
        assert request.url.params["id"] == "eq.p1"
        assert request.headers["Prefer"] == "return=representation"
        assert json.loads(request.content) == {"is_active": False, "price": "9.90"}
        assert rows == [{"id": "p1", "is_active": False}]

    def test_delete_returns_removed_count(self) -> None:
        recorder = Recorder(_mock_response(200, [{"id": "p1"}]))
        removed = _run(recorder, lambda s: s.delete("products", {"id": "p1"}))
        assert recorder.requests[0].method == "DELETE"
        assert removed == 1

    def test_insert_serializes_dates(self) -> None:
        recorder = Recorder(_mock_response(201, [{"id": "r1"}]))
        _run(recorder, lambda s: s.insert(
            "revenues", {"amount": Decimal("200"), "date": date(2024, 2, 20)},
        ))
        assert json.loads(recorder.requests[0].content) == {"amount": "200", "date": "2024-02-20"}

    def test_writes_require_match(self) -> None:
        recorder = Recorder(_mock_response(200, []))
        with pytest.raises(ValueError):
            _run(recorder, lambda s: s.delete("products", {}))
        assert recorder.requests == []


@pytest.mark.parametrize(
    "header,expected",
    [("0-19/137", 137), ("*/0", 0), ("0-9/*", None), (None, None), ("garbage", None)],
)
def test_parse_content_range(header: str | None, expected: int | None) -> None:
    assert parse_content_range(header) == expected


# ── Legacy hosted tables ────────────────────────────────────────────────────


LEGACY_SALES = {"net": "total_net", "gross": "total_brut", "created_by": "user_id"}


class TestLegacyColumns:
    def test_select_aliases_filters_and_order(self) -> None:
        recorder = Recorder(_mock_response(200, [{"id": "s1", "net": "100"}]))
        query = (
            Query("sales", columns="id,net,status")
            .gte("net", 50)
            .eq("created_by", "u1")
            .order("net", descending=True)
        )
        result = _run(
            recorder, lambda s: s.select(query),
            table_names={"sales": "dd-ventes"}, column_names={"sales": LEGACY_SALES},
        )

        params = recorder.requests[0].url.params
        assert recorder.requests[0].url.path == "/rest/v1/dd-ventes"
        assert params["select"] == "id,net:total_net,status"
        assert params["total_net"] == "gte.50"
        assert params["user_id"] == "eq.u1"
        assert params["order"] == "total_net.desc"
        assert result.rows == [{"id": "s1", "net": "100"}]

    def test_star_rows_come_back_canonical(self) -> None:
        recorder = Recorder(_mock_response(200, [{"id": "s1", "total_net": "100"}]))
        result = _run(
            recorder, lambda s: s.select(Query("sales")),
            column_names={"sales": LEGACY_SALES},
        )
        assert recorder.requests[0].url.params["select"] == "*"
        assert result.rows == [{"id": "s1", "net": "100"}]

    def test_writes_use_hosted_columns(self) -> None:
        recorder = Recorder(_mock_response(200, [{"id": "s1", "total_net": "80"}]))
        rows = _run(
            recorder, lambda s: s.update("sales", {"net": Decimal("80")}, {"created_by": "u1"}),
            column_names={"sales": LEGACY_SALES},
        )

        request = recorder.requests[0]
        assert request.url.params["user_id"] == "eq.u1"
        assert json.loads(request.content) == {"total_net": "80"}
        assert rows == [{"id": "s1", "net": "80"}]


def _legacy_backend(request: httpx.Request) -> httpx.Response:
    """Hosted backend whose sales table only knows its legacy column names."""
    if request.url.path != "/rest/v1/dd-ventes":
        return _mock_response(200, [])
    params = request.url.params
    columns = [c.split(":")[-1] for c in params["select"].split(",")]
    fields = [k for k in params if k not in {"select", "order", "offset", "limit"}]
    unknown = {"net", "gross", "created_by"} & set(columns + fields)
    if unknown:
        return _mock_response(
            400, {"code": "42703", "message": f"column dd-ventes.{unknown.pop()} does not exist"},
        )
    return _mock_response(200, [{
        "id": "s1", "total_net": "100", "status": "paye",
        "date": "2024-03-01T10:00:00+00:00",
    }])


def test_dashboard_over_legacy_sales_table() -> None:
    async def _go() -> dict[str, Any]:
        store = RestStore(
            "https://salon.example.com",
            "anon-key",
            transport=httpx.MockTransport(_legacy_backend),
            table_names={"sales": "dd-ventes"},
            column_names={"sales": LEGACY_SALES},
        )
        try:
            return await get_dashboard(store, now=datetime(2024, 3, 15, tzinfo=timezone.utc))
        finally:
            await store.aclose()

    report = asyncio.run(_go())

    assert report["warnings"] == []
    assert report["totals"]["sales"] == 1
    assert report["sales_growth"] is not None
