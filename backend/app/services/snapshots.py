"""Latest computed report per key, guarded by request generations.

Every refresh takes the next generation number for its key when it is
dispatched. When the computation finishes, its result is stored only if no
newer refresh for the same key has been dispatched in the meantime; a slow
stale computation can therefore never overwrite a fresher one.
"""
from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class Snapshot:
    key: str
    generation: int
    payload: dict[str, Any]
    computed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class ReportSnapshots:
    def __init__(self) -> None:
        self._dispatched: dict[str, int] = {}
        self._latest: dict[str, Snapshot] = {}

    def dispatch(self, key: str) -> int:
        generation = self._dispatched.get(key, 0) + 1
        self._dispatched[key] = generation
        return generation

    def is_current(self, key: str, generation: int) -> bool:
        return self._dispatched.get(key) == generation

    def apply(self, key: str, generation: int, payload: dict[str, Any]) -> bool:
        """Store *payload* if *generation* is still the latest dispatched one."""
        if not self.is_current(key, generation):
            logger.info(
                "Discarding stale %s result (generation %d, latest %d)",
                key, generation, self._dispatched.get(key, 0),
            )
            return False
        self._latest[key] = Snapshot(key=key, generation=generation, payload=payload)
        return True

    def latest(self, key: str) -> Snapshot | None:
        return self._latest.get(key)

    async def refresh(
        self, key: str, compute: Callable[[], Awaitable[dict[str, Any]]],
    ) -> tuple[dict[str, Any], bool]:
        """Run *compute* under a fresh generation.

        Returns the computed payload and whether it became the latest snapshot.
        """
        generation = self.dispatch(key)
        payload = await compute()
        return payload, self.apply(key, generation, payload)
