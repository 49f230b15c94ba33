"""Canonical record shapes.

Rows written by older versions of the dashboard carry French or historical
column names (``nom``, ``prix_base``, ``montant``...) and French sale
statuses. Every fetched row goes through :func:`normalize_record` before any
aggregation code reads it, so the rest of the engine only ever sees the
canonical names declared in ``models``.
"""
from __future__ import annotations

import datetime as dt
from decimal import Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")

_COMMON: dict[str, str] = {
    "nom": "name",
    "prenom": "first_name",
    "actif": "is_active",
    "montant": "amount",
    "categorie": "category",
    "ville": "city",
    "telephone": "phone",
    "statut": "status",
}

LEGACY_FIELDS: dict[str, dict[str, str]] = {
    "products": {
        "prix": "price",
        "prix_base": "price",
        "prix_vente": "price",
        "cout": "cost",
        "prix_achat": "cost",
        "stock": "stock_quantity",
        "quantite_stock": "stock_quantity",
    },
    "services": {
        "prix": "price",
        "prix_base": "price",
        "duree": "duration_minutes",
    },
    "sales": {
        "total_net": "net",
        "total_brut": "gross",
        "remise": "discount",
        "user_id": "created_by",
        "mode_paiement": "payment_method",
        "methode_paiement": "payment_method",
    },
    "sale_items": {
        "vente_id": "sale_id",
        "quantite": "quantity",
        "prix_unitaire": "unit_price",
        "total": "line_total",
        "total_price": "line_total",
    },
    "clients": {
        "nom": "last_name",
        "canal_acquisition": "acquisition_channel",
    },
    "users": {
        "nom": "last_name",
    },
    "appointments": {
        "date_rdv": "date",
    },
    "revenues": {
        "enregistre_par": "recorded_by",
    },
    "travailleurs": {
        "nom": "last_name",
        "salaire": "salary",
        "jours_travailles": "days_worked",
        "heures_travailles": "hours_worked",
        "total_montants_recus": "total_payments_received",
    },
    "gift_cards": {
        "solde": "balance",
    },
}

SALE_STATUSES: dict[str, str] = {
    "paye": "paid",
    "payé": "paid",
    "en_attente": "pending",
    "annule": "cancelled",
    "annulé": "cancelled",
    "rembourse": "refunded",
    "remboursé": "refunded",
}


def normalize_record(collection: str, row: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of *row* with every legacy field renamed.

    A canonical field already present wins over its legacy alias.
    """
    aliases = {**_COMMON, **LEGACY_FIELDS.get(collection, {})}
    out: dict[str, Any] = {}
    for key, value in row.items():
        if key in aliases:
            continue
        out[key] = value
    for key, value in row.items():
        target = aliases.get(key)
        if target is not None and out.get(target) is None:
            out[target] = value

    if collection == "sales" and isinstance(out.get("status"), str):
        status = out["status"].strip().lower()
        out["status"] = SALE_STATUSES.get(status, status)
    return out


def normalize_rows(collection: str, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [normalize_record(collection, r) for r in rows]


def to_decimal(value: Any) -> Decimal:
    """Numeric field → Decimal; missing or unparsable values count as zero."""
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def to_datetime(value: Any) -> dt.datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)
    try:
        return dt.datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


def to_date(value: Any) -> dt.date | None:
    parsed = to_datetime(value)
    return parsed.date() if parsed is not None else None
