"""API models for trips, plans and to-dos."""

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from travelmind.db.models import TodoStatus


class CamelModel(BaseModel):
    """API model serialized with camelCase keys, readable from ORM rows."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class CreateTripRequest(CamelModel):
    """Trip creation from a natural-language prompt."""

    user_id: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=10)
    model: str | None = None


class ReplacePlanRequest(BaseModel):
    """Full plan snapshot to rewrite a trip's days and activities."""

    plan: dict[str, Any] | None = None


class ReplacePlanResponse(CamelModel):
    ok: bool = True
    trip_id: uuid.UUID
    days: int


class ActivityOut(CamelModel):
    id: uuid.UUID
    position: int
    title: str
    start_time: datetime | None = None
    end_time: datetime | None = None
    notes: str | None = None
    kind: str | None = None
    place_id: str | None = None
    lat: float | None = None
    lon: float | None = None
    price_cents: int | None = None
    booking_url: str | None = None


class DayOut(CamelModel):
    id: uuid.UUID
    index: int
    date: date
    title: str | None = None
    city: str | None = None
    summary: str | None = None
    budget_cents: int | None = None
    activities: list[ActivityOut] = Field(default_factory=list)


class TripSummary(CamelModel):
    id: uuid.UUID
    user_id: str
    title: str
    destination: str | None = None
    start_date: date
    end_date: date
    currency: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TripOut(TripSummary):
    days: list[DayOut] = Field(default_factory=list)


class TodoCreate(CamelModel):
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    trip_id: uuid.UUID | None = None
    kind: str | None = None
    due_date: datetime | None = None


class TodoPatch(CamelModel):
    status: TodoStatus | None = None
    title: str | None = Field(default=None, min_length=1)
    due_date: datetime | None = None


class TodoOut(CamelModel):
    id: uuid.UUID
    user_id: str
    trip_id: uuid.UUID | None = None
    title: str
    kind: str | None = None
    status: TodoStatus
    due_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
