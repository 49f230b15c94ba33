"""Application-wide collaborators, created once per running app."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from backend.app.core.config import Settings
from backend.app.core.database import make_engine
from backend.app.core.rest_store import RestStore
from backend.app.core.sql_store import SqlStore
from backend.app.core.store import DataStore
from backend.app.services.snapshots import ReportSnapshots

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    store: DataStore
    snapshots: ReportSnapshots = field(default_factory=ReportSnapshots)

    async def aclose(self) -> None:
        await self.store.aclose()


def build_store(settings: Settings) -> DataStore:
    backend = settings.DATA_STORE_BACKEND.lower()
    if backend == "rest":
        logger.info("Using hosted REST data store at %s", settings.REST_URL)
        return RestStore(
            settings.REST_URL,
            settings.REST_API_KEY,
            timeout=settings.REST_TIMEOUT_SECONDS,
            table_names=settings.REST_TABLE_NAMES,
            column_names=settings.REST_COLUMN_NAMES,
        )
    if backend == "sql":
        store = SqlStore(make_engine(settings.DATABASE_URL))
        store.create_all()
        logger.info("Using SQL data store (%s)", store.engine.dialect.name)
        return store
    raise ValueError(f"Unknown DATA_STORE_BACKEND: {settings.DATA_STORE_BACKEND}")


def build_context(settings: Settings) -> AppContext:
    return AppContext(settings=settings, store=build_store(settings))
