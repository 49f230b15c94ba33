"""Tests for the group-and-reduce primitives."""
from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal

import pytest

from backend.app.services.aggregation import (
    Count,
    Mean,
    Measure,
    Sum,
    aggregate,
    field_key,
    growth,
    month_key,
    month_period,
    percentage,
    period_label,
    rows,
    top_n,
    total,
)

ZERO = Decimal("0")

RECORDS = [
    {"category": "Loyer", "amount": "800"},
    {"category": "Produits", "amount": 120.5},
    {"category": "Loyer", "amount": Decimal("800")},
    {"category": None, "amount": 40},
    {"category": "Produits", "amount": None},
    {"category": "Salaires", "amount": "not-a-number"},
    {"category": "Produits", "amount": "79.5"},
]


class TestAggregate:
    def test_sums_match_brute_force_per_key(self) -> None:
        result = aggregate(
            RECORDS, field_key("category", "Autres"), {"amount": Sum("amount")},
        )
        expected: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for r in RECORDS:
            key = r["category"] or "Autres"
            try:
                expected[key] += Decimal(str(r["amount"]))
            except Exception:
                expected[key] += ZERO
        assert {k: v["amount"] for k, v in result.items()} == dict(expected)

    def test_missing_and_invalid_numbers_count_as_zero(self) -> None:
        result = aggregate(
            RECORDS, field_key("category", "Autres"),
            {"amount": Sum("amount"), "n": Count()},
        )
        assert result["Salaires"] == {"amount": ZERO, "n": 1}
        assert result["Produits"] == {"amount": Decimal("200.0"), "n": 3}

    def test_keys_keep_first_seen_order(self) -> None:
        result = aggregate(RECORDS, field_key("category", "Autres"), {"n": Count()})
        assert list(result) == ["Loyer", "Produits", "Autres", "Salaires"]

    def test_none_key_excludes_record(self) -> None:
        result = aggregate(RECORDS, lambda r: r["category"], {"n": Count()})
        assert None not in result
        assert sum(v["n"] for v in result.values()) == len(RECORDS) - 1

    def test_sum_accepts_callable(self) -> None:
        items = [
            {"sku": "A", "price": "10", "qty": 3},
            {"sku": "A", "price": "2.5", "qty": 2},
        ]
        result = aggregate(
            items, lambda r: r["sku"],
            {"value": Sum(lambda r: Decimal(r["price"]) * r["qty"])},
        )
        assert result["A"]["value"] == Decimal("35.0")

    def test_weighted_mean(self) -> None:
        items = [
            {"k": "x", "rating": 8, "weight": 3},
            {"k": "x", "rating": 4, "weight": 1},
        ]
        plain = aggregate(items, lambda r: r["k"], {"avg": Mean("rating")})
        weighted = aggregate(items, lambda r: r["k"], {"avg": Mean("rating", weight="weight")})
        assert plain["x"]["avg"] == Decimal("6")
        assert weighted["x"]["avg"] == Decimal("7")

    def test_empty_input(self) -> None:
        assert aggregate([], lambda r: "k", {"n": Count()}) == {}
        assert total([], "amount") == ZERO


class TestKeys:
    def test_month_key_is_french_short_label(self) -> None:
        assert month_key("2024-01-05") == "janv. 2024"
        assert month_key(datetime(2023, 8, 31, 23, 59)) == "août 2023"
        assert month_key(date(2024, 12, 1)) == "déc. 2024"
        assert month_key(None) is None
        assert month_key("garbage") is None

    def test_month_period_sorts_chronologically(self) -> None:
        periods = [month_period(d) for d in ("2024-02-01", "2023-12-31", "2024-01-15")]
        assert sorted(periods) == ["2023-12", "2024-01", "2024-02"]
        assert period_label("2024-02") == "févr. 2024"

    def test_field_key_defaults_blank_values(self) -> None:
        key = field_key("city", "Non spécifié")
        assert key({"city": "  "}) == "Non spécifié"
        assert key({}) == "Non spécifié"
        assert key({"city": "Rabat "}) == "Rabat"


class TestPostProcessing:
    def test_top_n_sorts_descending_and_truncates(self) -> None:
        groups = {
            "a": {"revenue": Decimal("5")},
            "b": {"revenue": Decimal("50")},
            "c": {"revenue": Decimal("20")},
        }
        top = top_n(rows(groups, "name"), "revenue", 2)
        assert [t["name"] for t in top] == ["b", "c"]

    def test_percentage(self) -> None:
        assert percentage(Decimal("1"), Decimal("3")) == Decimal("33.33")
        assert percentage(Decimal("5"), ZERO) == ZERO

    def test_growth(self) -> None:
        assert growth(Decimal("150"), Decimal("100")) == Decimal("50.00")
        assert growth(Decimal("50"), Decimal("100")) == Decimal("-50.00")
        assert growth(Decimal("50"), ZERO) == ZERO


def test_measure_requires_start_and_add() -> None:
    class Incomplete(Measure):
        def start(self) -> int:
            return 0

    with pytest.raises(TypeError):
        Incomplete()  # type: ignore[abstract]
