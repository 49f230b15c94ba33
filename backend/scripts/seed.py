"""Seed the SQL data store with demo salon data.

Usage:
    python -m backend.scripts.seed
"""

from __future__ import annotations

import asyncio
import uuid
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

from backend.app.core.config import settings
from backend.app.core.database import make_engine
from backend.app.core.sql_store import SqlStore
from backend.app.core.store import Query

CATEGORIES = ["Soins capillaires", "Coloration", "Onglerie"]

PRODUCTS: list[tuple[str, str, Decimal, Decimal, int]] = [
    # name, category, price, cost, stock
    ("Shampoing nutritif", "Soins capillaires", Decimal("18.00"), Decimal("7.50"), 40),
    ("Masque kératine", "Soins capillaires", Decimal("32.00"), Decimal("14.00"), 6),
    ("Coloration blond cendré", "Coloration", Decimal("24.00"), Decimal("9.00"), 0),
    ("Vernis gel rouge", "Onglerie", Decimal("12.00"), Decimal("4.00"), 25),
]

SERVICES: list[tuple[str, Decimal, int]] = [
    ("Coupe femme", Decimal("45.00"), 45),
    ("Brushing", Decimal("25.00"), 30),
    ("Manucure", Decimal("30.00"), 40),
]

CLIENTS: list[tuple[str, str, str, str]] = [
    ("Amina", "Benali", "Casablanca", "Instagram"),
    ("Sophie", "Martin", "Rabat", "Bouche à oreille"),
    ("Yasmine", "El Idrissi", "Casablanca", "Google"),
]


def _id() -> str:
    return str(uuid.uuid4())


async def seed() -> None:
    store = SqlStore(make_engine(settings.DATABASE_URL))
    store.create_all()
    try:
        existing = await store.select(Query("categories", columns="id").limit(1))
        if existing.rows:
            print("Database already seeded.")
            return

        now = datetime.now(timezone.utc)
        user_id = _id()
        await store.insert("users", {
            "id": user_id, "first_name": "Admin", "last_name": "Salon",
            "email": "admin@salon.local", "role": "admin",
        })
        print("Created admin user.")

        category_ids = {name: _id() for name in CATEGORIES}
        await store.insert(
            "categories", [{"id": cid, "name": name} for name, cid in category_ids.items()],
        )

        product_ids: list[str] = []
        for name, category, price, cost, stock in PRODUCTS:
            pid = _id()
            product_ids.append(pid)
            await store.insert("products", {
                "id": pid, "name": name, "category_id": category_ids[category],
                "price": price, "cost": cost, "stock_quantity": stock,
            })
            print(f"Created product {name}")

        service_ids: list[str] = []
        for name, price, minutes in SERVICES:
            sid = _id()
            service_ids.append(sid)
            await store.insert("services", {
                "id": sid, "name": name, "price": price, "duration_minutes": minutes,
            })

        client_ids: list[str] = []
        for first, last, city, channel in CLIENTS:
            cid = _id()
            client_ids.append(cid)
            await store.insert("clients", {
                "id": cid, "first_name": first, "last_name": last,
                "city": city, "acquisition_channel": channel,
            })

        # One paid sale per month over the last six months
        for month in range(6):
            moment = now - timedelta(days=30 * month + 3)
            sale_id = _id()
            product_line = PRODUCTS[month % len(PRODUCTS)]
            service_line = SERVICES[month % len(SERVICES)]
            gross = product_line[2] + service_line[1]
            await store.insert("sales", {
                "id": sale_id, "client_id": client_ids[month % len(client_ids)],
                "created_by": user_id, "type": "comptoir",
                "gross": gross, "discount": Decimal("0"), "net": gross,
                "payment_method": "carte" if month % 2 else "especes",
                "status": "paid", "date": moment,
            })
            await store.insert("sale_items", [
                {"sale_id": sale_id, "product_id": product_ids[month % len(product_ids)],
                 "quantity": 1, "unit_price": product_line[2],
                 "line_total": product_line[2], "created_at": moment},
                {"sale_id": sale_id, "service_id": service_ids[month % len(service_ids)],
                 "quantity": 1, "unit_price": service_line[1],
                 "line_total": service_line[1], "created_at": moment},
            ])
            await store.insert("expenses", {
                "category": "Loyer", "amount": Decimal("800.00"), "date": moment.date(),
            })
        print("Created sales and expenses for the last six months.")

        await store.insert("revenues", {
            "type": "formation", "source": "Atelier coiffure", "amount": Decimal("350.00"),
            "date": date.today(), "recorded_by": user_id,
        })
        await store.insert("travailleurs", {
            "first_name": "Nadia", "last_name": "Alaoui", "specialty": "Coiffure",
            "salary": Decimal("4500.00"),
        })
        print("Seed complete.")
    finally:
        await store.aclose()


if __name__ == "__main__":
    asyncio.run(seed())
