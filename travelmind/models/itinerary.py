"""Itinerary models: raw model output shape and normalized plan."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class RawModel(BaseModel):
    """Base for untrusted input: camelCase aliases, unknown fields ignored."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RawActivity(RawModel):
    """Activity as emitted by the model or a client."""

    title: str = "Untitled"
    start_time: str | None = None
    end_time: str | None = None
    notes: str | None = None
    kind: str | None = None
    place_id: str | None = None
    lat: float | None = None
    lon: float | None = None
    price_cents: int | None = None
    booking_url: str | None = None

    # Legacy planner shape
    time: str | None = None
    details: str | None = None

    @field_validator("title", mode="before")
    @classmethod
    def _default_title(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "Untitled"
        return value


class LegacyItem(RawModel):
    """Legacy `items` entry in object form."""

    title: str | None = None


class RawDay(RawModel):
    """Day as emitted by the model or a client."""

    date: str | None = None
    title: str | None = None
    city: str | None = None
    summary: str | None = None
    budget_cents: int | None = None
    activities: list[RawActivity | str] | None = None
    items: list[str | LegacyItem] | None = None

    # Legacy planner shape
    date_hint: str | None = None


class RawItinerary(RawModel):
    """Top-level itinerary with a required title."""

    title: str
    destination: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    currency: str | None = None
    days: list[RawDay] | None = None


class RawPlan(RawItinerary):
    """Client-supplied plan replacement; title is optional."""

    title: str | None = None  # type: ignore[assignment]


class NormalizedActivity(BaseModel):
    """Activity ready for persistence."""

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


class NormalizedDay(BaseModel):
    """Day with a concrete calendar date."""

    index: int = Field(..., ge=1)
    date: date
    title: str | None = None
    city: str | None = None
    summary: str | None = None
    budget_cents: int | None = None
    activities: list[NormalizedActivity] = Field(default_factory=list)


class NormalizedItinerary(BaseModel):
    """Schema-valid, fully dated itinerary."""

    title: str | None
    destination: str | None = None
    start_date: date
    end_date: date
    currency: str | None = None
    days: list[NormalizedDay] = Field(default_factory=list)
