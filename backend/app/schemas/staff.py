from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class RatingIn(BaseModel):
    service_id: str
    # Range is checked per entry by the rating service so one bad value
    # does not reject the whole batch.
    rating: float | str | None = None


class RatingBatch(BaseModel):
    ratings: list[RatingIn] = Field(..., min_length=1)


class RatingResult(BaseModel):
    id: str
    rating_global: Decimal | None = None
    total_services: int
    applied: int
    skipped: int


class ActivityIn(BaseModel):
    salary: Decimal | None = Field(None, gt=0)
    days: int | None = Field(None, gt=0)
    hours: Decimal | None = Field(None, gt=0)
    payment: Decimal | None = Field(None, gt=0)
    note: str | None = Field(None, max_length=2000)
    added_by: str | None = None


class TravailleurOut(BaseModel):
    id: str
    first_name: str | None = None
    last_name: str | None = None
    specialty: str | None = None
    salary: Decimal | None = None
    days_worked: int = 0
    hours_worked: Decimal = Decimal("0")
    total_payments_received: Decimal = Decimal("0")
    rating_global: Decimal | None = None
    total_services: int = 0
    salary_history: list[dict] = []
    payments_history: list[dict] = []
    work_history: list[dict] = []
    notes_history: list[dict] = []
