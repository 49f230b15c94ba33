from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Integer,
    Numeric,
    String,
    Uuid,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.core.database import Base

HistoryJSON = JSON().with_variant(JSONB, "postgresql")


class User(Base):
    """Staff account (cashier, manager, admin) of the dashboard."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[str] = mapped_column(String(50), nullable=False, default="employe")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Travailleur(Base):
    """Salon worker assigned to services, distinct from staff accounts.

    The ``*_history`` columns are ordered lists of timestamped entries; they
    are only ever appended to, except ``services_history`` where editing the
    rating of an already-rated service rewrites that entry in place.
    """

    __tablename__ = "travailleurs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    specialty: Mapped[str | None] = mapped_column(String(255), nullable=True)
    salary: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=20, scale=4), nullable=True
    )
    days_worked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    hours_worked: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2), nullable=False, default=Decimal("0")
    )
    total_payments_received: Mapped[Decimal] = mapped_column(
        Numeric(precision=20, scale=4), nullable=False, default=Decimal("0")
    )
    rating_global: Mapped[Decimal | None] = mapped_column(
        Numeric(precision=3, scale=1), nullable=True
    )
    total_services: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    salary_history: Mapped[list[dict[str, Any]]] = mapped_column(
        HistoryJSON, nullable=False, default=list
    )
    payments_history: Mapped[list[dict[str, Any]]] = mapped_column(
        HistoryJSON, nullable=False, default=list
    )
    work_history: Mapped[list[dict[str, Any]]] = mapped_column(
        HistoryJSON, nullable=False, default=list
    )
    notes_history: Mapped[list[dict[str, Any]]] = mapped_column(
        HistoryJSON, nullable=False, default=list
    )
    services_history: Mapped[list[dict[str, Any]]] = mapped_column(
        HistoryJSON, nullable=False, default=list
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
