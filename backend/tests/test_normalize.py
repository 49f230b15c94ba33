"""Tests for legacy record normalization."""
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from backend.app.services.normalize import (
    normalize_record,
    normalize_rows,
    to_date,
    to_datetime,
    to_decimal,
)


def test_legacy_product_fields_are_renamed() -> None:
    row = {"id": "p1", "nom": "Shampoing", "prix_base": 18, "cout": 7, "stock": 4, "actif": True}
    assert normalize_record("products", row) == {
        "id": "p1",
        "name": "Shampoing",
        "price": 18,
        "cost": 7,
        "stock_quantity": 4,
        "is_active": True,
    }


def test_canonical_field_wins_over_alias() -> None:
    row = {"name": "Nouveau", "nom": "Ancien", "price": 10, "prix": 99}
    out = normalize_record("products", row)
    assert out["name"] == "Nouveau"
    assert out["price"] == 10
    assert "nom" not in out and "prix" not in out


def test_null_canonical_is_filled_from_alias() -> None:
    out = normalize_record("sales", {"net": None, "total_net": "150.00"})
    assert out["net"] == "150.00"


def test_sale_fields_and_status() -> None:
    out = normalize_record(
        "sales",
        {"total_brut": 120, "remise": 20, "total_net": 100, "statut": "Payé", "user_id": "u1"},
    )
    assert out == {
        "gross": 120, "discount": 20, "net": 100, "status": "paid", "created_by": "u1",
    }
    assert normalize_record("sales", {"status": "en_attente"})["status"] == "pending"
    assert normalize_record("sales", {"status": "refunded"})["status"] == "refunded"


def test_aliases_are_collection_specific() -> None:
    item = normalize_record("sale_items", {"vente_id": "s1", "quantite": 2, "total": 30})
    assert item == {"sale_id": "s1", "quantity": 2, "line_total": 30}
    # "total" is only a line total on sale items
    assert normalize_record("revenues", {"total": 5}) == {"total": 5}


def test_appointment_date() -> None:
    rows = normalize_rows("appointments", [{"date_rdv": "2024-01-05T10:00:00"}])
    assert rows == [{"date": "2024-01-05T10:00:00"}]


def test_input_row_is_not_modified() -> None:
    row = {"nom": "x"}
    normalize_record("services", row)
    assert row == {"nom": "x"}


def test_to_decimal() -> None:
    assert to_decimal("12.50") == Decimal("12.50")
    assert to_decimal(3) == Decimal("3")
    assert to_decimal(None) == Decimal("0")
    assert to_decimal("abc") == Decimal("0")
    assert to_decimal(float("nan")) == Decimal("0")
    assert to_decimal(True) == Decimal("0")


def test_dates() -> None:
    assert to_date("2024-01-05T23:30:00Z") == date(2024, 1, 5)
    assert to_date(datetime(2024, 2, 1, 8)) == date(2024, 2, 1)
    assert to_datetime(date(2024, 3, 1)) == datetime(2024, 3, 1)
    assert to_date("") is None
    assert to_date("nope") is None


@pytest.mark.parametrize("collection", ["clients", "users", "travailleurs"])
def test_person_nom_is_the_surname(collection: str) -> None:
    out = normalize_record(collection, {"prenom": "Amina", "nom": "Benali"})
    assert out == {"first_name": "Amina", "last_name": "Benali"}


def test_catalog_nom_is_the_name() -> None:
    assert normalize_record("categories", {"nom": "Soins"}) == {"name": "Soins"}
