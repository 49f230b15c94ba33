"""Tests for generation-guarded report snapshots."""
from __future__ import annotations

import asyncio
from typing import Any

from backend.app.services.snapshots import ReportSnapshots


def test_generations_increase_per_key() -> None:
    snapshots = ReportSnapshots()
    assert snapshots.dispatch("dashboard") == 1
    assert snapshots.dispatch("dashboard") == 2
    assert snapshots.dispatch("financial") == 1
    assert snapshots.is_current("dashboard", 2)
    assert not snapshots.is_current("dashboard", 1)


def test_stale_result_is_discarded() -> None:
    snapshots = ReportSnapshots()
    first = snapshots.dispatch("dashboard")
    second = snapshots.dispatch("dashboard")

    assert snapshots.apply("dashboard", second, {"n": 2}) is True
    assert snapshots.apply("dashboard", first, {"n": 1}) is False
    latest = snapshots.latest("dashboard")
    assert latest is not None
    assert latest.payload == {"n": 2}
    assert latest.generation == second


def test_latest_unknown_key() -> None:
    assert ReportSnapshots().latest("clients") is None


def test_slow_refresh_cannot_overwrite_newer_one() -> None:
    snapshots = ReportSnapshots()

    async def _scenario() -> list[tuple[dict[str, Any], bool]]:
        slow_gate = asyncio.Event()

        async def slow() -> dict[str, Any]:
            await slow_gate.wait()
            return {"value": "old"}

        async def fast() -> dict[str, Any]:
            return {"value": "new"}

        slow_task = asyncio.create_task(snapshots.refresh("dashboard", slow))
        await asyncio.sleep(0)
        fast_result = await snapshots.refresh("dashboard", fast)
        slow_gate.set()
        slow_result = await slow_task
        return [slow_result, fast_result]

    (slow_payload, slow_applied), (fast_payload, fast_applied) = asyncio.run(_scenario())

    assert slow_payload == {"value": "old"}
    assert slow_applied is False
    assert fast_applied is True
    assert snapshots.latest("dashboard").payload == {"value": "new"}


def test_keys_are_independent() -> None:
    snapshots = ReportSnapshots()

    async def _scenario() -> None:
        async def payload() -> dict[str, Any]:
            return {"ok": True}

        await snapshots.refresh("dashboard", payload)
        await snapshots.refresh("financial", payload)

    asyncio.run(_scenario())
    assert snapshots.latest("dashboard").generation == 1
    assert snapshots.latest("financial").generation == 1
