"""Group-and-reduce primitives for the reporting engine.

:func:`aggregate` makes a single pass over a record list, keeps one
accumulator per key in first-seen order and applies every measure to each
record. Sorting and truncation ("top N") are left to the callers.
"""
from __future__ import annotations

import abc
import datetime as dt
from collections.abc import Callable, Hashable, Iterable
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from backend.app.services.normalize import ZERO, to_datetime, to_decimal

Record = dict[str, Any]
KeyFn = Callable[[Record], Hashable | None]
ValueFn = Callable[[Record], Any]

FRENCH_MONTHS = (
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
)
PCT = Decimal("0.01")


# ── Measures ────────────────────────────────────────────────────────────────


class Measure(abc.ABC):
    """Accumulator protocol: ``start`` → ``add`` per record → ``finish``."""

    @abc.abstractmethod
    def start(self) -> Any: ...

    @abc.abstractmethod
    def add(self, state: Any, record: Record) -> Any: ...

    def finish(self, state: Any) -> Any:
        return state


def _getter(source: str | ValueFn) -> ValueFn:
    if callable(source):
        return source
    return lambda record: record.get(source)


class Count(Measure):
    def start(self) -> int:
        return 0

    def add(self, state: int, record: Record) -> int:
        return state + 1


class Sum(Measure):
    """Sum of a field (or of a callable's result); missing values add zero."""

    def __init__(self, source: str | ValueFn) -> None:
        self._value = _getter(source)

    def start(self) -> Decimal:
        return ZERO

    def add(self, state: Decimal, record: Record) -> Decimal:
        return state + to_decimal(self._value(record))


class Mean(Measure):
    """Arithmetic mean, weighted by ``weight`` when given."""

    def __init__(
        self, source: str | ValueFn, weight: str | ValueFn | None = None,
    ) -> None:
        self._value = _getter(source)
        self._weight = _getter(weight) if weight is not None else None

    def start(self) -> tuple[Decimal, Decimal]:
        return ZERO, ZERO

    def add(self, state: tuple[Decimal, Decimal], record: Record) -> tuple[Decimal, Decimal]:
        total, weight = state
        w = to_decimal(self._weight(record)) if self._weight else Decimal("1")
        return total + to_decimal(self._value(record)) * w, weight + w

    def finish(self, state: tuple[Decimal, Decimal]) -> Decimal:
        total, weight = state
        return total / weight if weight else ZERO


# ── Aggregate ───────────────────────────────────────────────────────────────


def aggregate(
    records: Iterable[Record],
    key: KeyFn,
    measures: dict[str, Measure],
) -> dict[Hashable, dict[str, Any]]:
    """Group *records* by ``key(record)`` and reduce each group with *measures*.

    Records whose key is ``None`` are left out.
    """
    states: dict[Hashable, dict[str, Any]] = {}
    for record in records:
        k = key(record)
        if k is None:
            continue
        acc = states.get(k)
        if acc is None:
            acc = {name: m.start() for name, m in measures.items()}
            states[k] = acc
        for name, m in measures.items():
            acc[name] = m.add(acc[name], record)

    return {
        k: {name: measures[name].finish(v) for name, v in acc.items()}
        for k, acc in states.items()
    }


def total(records: Iterable[Record], source: str | ValueFn) -> Decimal:
    getter = _getter(source)
    return sum((to_decimal(getter(r)) for r in records), ZERO)


# ── Keys ────────────────────────────────────────────────────────────────────


def month_key(value: Any) -> str | None:
    """French short month label, e.g. ``janv. 2024``."""
    moment = to_datetime(value)
    if moment is None:
        return None
    return f"{FRENCH_MONTHS[moment.month - 1]} {moment.year}"


def month_period(value: Any) -> str | None:
    """Sortable ``YYYY-MM`` period."""
    moment = to_datetime(value)
    if moment is None:
        return None
    return f"{moment.year:04d}-{moment.month:02d}"


def period_label(period: str) -> str:
    year, month = period.split("-")
    return f"{FRENCH_MONTHS[int(month) - 1]} {year}"


def day_key(value: Any) -> dt.date | None:
    moment = to_datetime(value)
    return moment.date() if moment is not None else None


def field_key(name: str, default: str) -> KeyFn:
    """Key on a text field; blank or missing values fall into *default*."""

    def _key(record: Record) -> str:
        raw = record.get(name)
        text = str(raw).strip() if raw is not None else ""
        return text or default

    return _key


# ── Post-processing ─────────────────────────────────────────────────────────


def rows(
    groups: dict[Hashable, dict[str, Any]], key_name: str,
) -> list[dict[str, Any]]:
    """Flatten an aggregate into a list of ``{key_name: key, **measures}``."""
    return [{key_name: k, **measures} for k, measures in groups.items()]


def top_n(
    items: list[dict[str, Any]], measure: str, n: int,
) -> list[dict[str, Any]]:
    """Sort descending on *measure* and keep the first *n* entries."""
    return sorted(items, key=lambda item: item[measure], reverse=True)[:n]


def percentage(part: Decimal, whole: Decimal) -> Decimal:
    if not whole:
        return ZERO
    return (part / whole * Decimal("100")).quantize(PCT, rounding=ROUND_HALF_UP)


def growth(current: Decimal, previous: Decimal) -> Decimal:
    """Percentage change against the previous period (0 without a baseline)."""
    if not previous:
        return ZERO
    return ((current - previous) / previous * Decimal("100")).quantize(
        PCT, rounding=ROUND_HALF_UP,
    )
