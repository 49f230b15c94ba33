"""Shared test fixtures.

Each test gets its own SQLite file under ``tmp_path`` with foreign keys
enforced, so tests never pollute each other. A file (rather than an
in-memory database) is used because store calls run on worker threads.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from backend.app.core.config import settings
from backend.app.core.context import AppContext
from backend.app.core.database import make_engine
from backend.app.core.sql_store import SqlStore
from backend.app.main import create_app

Seed = Callable[[str, list[dict[str, Any]]], list[dict[str, Any]]]


@pytest.fixture()
def store(tmp_path: Any) -> Generator[SqlStore, None, None]:
    engine = make_engine(f"sqlite:///{tmp_path / 'salon.db'}")
    sql_store = SqlStore(engine)
    sql_store.create_all()
    yield sql_store
    engine.dispose()


@pytest.fixture()
def seed(store: SqlStore) -> Seed:
    """Insert rows into a collection and return them as stored."""

    def _seed(collection: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return asyncio.run(store.insert(collection, rows))

    return _seed


@pytest.fixture()
def context(store: SqlStore) -> AppContext:
    return AppContext(settings=settings, store=store)


@pytest.fixture()
def client(context: AppContext) -> Generator[TestClient, None, None]:
    """FastAPI TestClient wired to the per-test store."""
    with TestClient(create_app(context)) as c:
        yield c
