"""Travailleur (salon worker) rating and activity bookkeeping.

Ratings are kept per service in ``services_history``; ``rating_global`` is
the running mean of those ratings and ``total_services`` the number of
rated services. Re-rating a service replaces its previous contribution
without changing the count.
"""
from __future__ import annotations

import copy
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from backend.app.core.store import DataStore, Query
from backend.app.services.normalize import ZERO, normalize_record, to_decimal
from backend.app.services.relations import fetch_rows

logger = logging.getLogger(__name__)

MIN_RATING = Decimal("0")
MAX_RATING = Decimal("10")
RATING_Q = Decimal("0.1")


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_rating(value: Any) -> Decimal | None:
    """Return the rating as a Decimal, or ``None`` if it is not a number in [0, 10]."""
    if value is None or isinstance(value, bool):
        return None
    try:
        rating = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not rating.is_finite() or not MIN_RATING <= rating <= MAX_RATING:
        return None
    return rating


@dataclass
class RatingUpdate:
    rating_global: Decimal | None
    total_services: int
    services_history: list[dict[str, Any]]
    applied: int = 0
    skipped: list[dict[str, Any]] = field(default_factory=list)


def apply_ratings(
    travailleur: dict[str, Any],
    ratings: Iterable[dict[str, Any]],
    *,
    now: str | None = None,
) -> RatingUpdate:
    """Fold *ratings* (``{"service_id", "rating"}``) into the worker's running mean.

    The mean is carried at full precision across the batch and only the
    result is rounded to one decimal. Invalid entries are skipped.
    """
    now = now or _now()
    history = copy.deepcopy(travailleur.get("services_history") or [])
    average = to_decimal(travailleur.get("rating_global"))
    count = int(travailleur.get("total_services") or 0)
    update = RatingUpdate(
        rating_global=travailleur.get("rating_global"),
        total_services=count,
        services_history=history,
    )

    for entry in ratings:
        service_id = entry.get("service_id")
        value = parse_rating(entry.get("rating"))
        if not service_id or value is None:
            logger.warning(
                "Skipping rating %r for service %r", entry.get("rating"), service_id,
            )
            update.skipped.append(entry)
            continue

        service_id = str(service_id)
        existing = next(
            (h for h in history if str(h.get("service_id")) == service_id), None,
        )
        if existing is not None and count > 0:
            previous = to_decimal(existing.get("rating"))
            average = (average * count - previous + value) / count
            existing["rating"] = float(value)
            existing["updated_at"] = now
        else:
            average = (average * count + value) / (count + 1)
            count += 1
            if existing is not None:
                existing["rating"] = float(value)
                existing["updated_at"] = now
            else:
                history.append({"service_id": service_id, "rating": float(value), "date": now})
        update.applied += 1

    if update.applied:
        update.rating_global = average.quantize(RATING_Q, rounding=ROUND_HALF_UP)
        update.total_services = count
    return update


async def _get_travailleur(store: DataStore, travailleur_id: str) -> dict[str, Any]:
    rows = await fetch_rows(
        store, Query("travailleurs").eq("id", travailleur_id).limit(1),
    )
    if not rows:
        raise ValueError("travailleur_not_found")
    return rows[0]


async def rate_travailleur(
    store: DataStore, travailleur_id: str, ratings: list[dict[str, Any]],
) -> dict[str, Any]:
    """Fetch the worker, apply *ratings* and write the new mean back.

    Nothing is written when every rating was rejected.
    """
    travailleur = await _get_travailleur(store, travailleur_id)
    update = apply_ratings(travailleur, ratings)

    result = {
        "id": str(travailleur["id"]),
        "rating_global": update.rating_global,
        "total_services": update.total_services,
        "applied": update.applied,
        "skipped": len(update.skipped),
    }
    if not update.applied:
        return result

    await store.update(
        "travailleurs",
        {
            "rating_global": update.rating_global,
            "total_services": update.total_services,
            "services_history": update.services_history,
        },
        {"id": travailleur_id},
    )
    return result


# ── Activity ────────────────────────────────────────────────────────────────


def _positive(value: Any) -> Decimal | None:
    amount = to_decimal(value)
    return amount if amount > ZERO else None


def apply_activity(
    travailleur: dict[str, Any],
    *,
    salary: Any = None,
    days: Any = None,
    hours: Any = None,
    payment: Any = None,
    note: str | None = None,
    added_by: str | None = None,
    now: str | None = None,
) -> dict[str, Any]:
    """Build the field patch for one activity submission.

    Each positive amount appends a timestamped history entry and updates the
    matching running total. A note is attached to those entries; on its own
    it goes to ``notes_history``.
    """
    now = now or _now()
    note = note.strip() if note and note.strip() else None
    updates: dict[str, Any] = {}

    def entry(**values: Any) -> dict[str, Any]:
        return {"date": now, **values, "added_by": added_by, "note": note}

    new_salary = _positive(salary)
    if new_salary is not None:
        updates["salary"] = new_salary
        updates["salary_history"] = [
            *(travailleur.get("salary_history") or []),
            entry(amount=float(new_salary)),
        ]

    work_history = list(travailleur.get("work_history") or [])
    new_days = _positive(days)
    if new_days is not None:
        updates["days_worked"] = int(to_decimal(travailleur.get("days_worked"))) + int(new_days)
        work_history.append(entry(days=int(new_days), hours=0))
    new_hours = _positive(hours)
    if new_hours is not None:
        updates["hours_worked"] = to_decimal(travailleur.get("hours_worked")) + new_hours
        work_history.append(entry(days=0, hours=float(new_hours)))
    if new_days is not None or new_hours is not None:
        updates["work_history"] = work_history

    received = _positive(payment)
    if received is not None:
        updates["total_payments_received"] = (
            to_decimal(travailleur.get("total_payments_received")) + received
        )
        updates["payments_history"] = [
            *(travailleur.get("payments_history") or []),
            entry(amount=float(received)),
        ]

    if note and not updates:
        updates["notes_history"] = [
            *(travailleur.get("notes_history") or []),
            {"date": now, "note": note, "added_by": added_by},
        ]
    return updates


async def record_activity(
    store: DataStore, travailleur_id: str, **activity: Any,
) -> dict[str, Any]:
    travailleur = await _get_travailleur(store, travailleur_id)
    updates = apply_activity(travailleur, **activity)
    if not updates:
        raise ValueError("nothing_to_update")

    rows = await store.update("travailleurs", updates, {"id": travailleur_id})
    logger.info("Recorded activity for travailleur %s: %s", travailleur_id, sorted(updates))
    return normalize_record("travailleurs", rows[0]) if rows else {**travailleur, **updates}
