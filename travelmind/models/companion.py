"""Companion models: quick Q&A and background day evaluation."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """API model serialized with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AskRequest(CamelModel):
    """Quick on-trip question."""

    user_id: str | None = None
    trip_id: str | None = None
    message: str = Field(..., min_length=1)


class AskResponse(CamelModel):
    """Answer, possibly served from cache."""

    answer: str
    cached: bool


class EvaluateRequest(CamelModel):
    """Request to evaluate one trip day against weather and closures."""

    user_id: str
    trip_id: str
    date: date
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    place_ids: list[str] = Field(default_factory=list)


class EvaluationJob(EvaluateRequest):
    """Queued evaluation job."""

    job_id: str


class EnqueueResponse(CamelModel):
    """Job accepted."""

    ok: bool = True
    job_id: str


class DayWeather(CamelModel):
    """Daily weather summary."""

    date: date
    temp_max_c: float | None = None
    temp_min_c: float | None = None
    precip_mm: float | None = None
    code: int | None = None


class OpeningInfo(CamelModel):
    """Opening status of a place on a given day."""

    place_id: str
    name: str
    open_now: bool | None = None
    todays_hours: str | None = None


class EvaluationResult(CamelModel):
    """Worker output stored under the job's result key."""

    weather: DayWeather | None
    openings: list[OpeningInfo]
    suggestions: list[str]


class EvaluationStatus(CamelModel):
    """Polling response."""

    done: bool
    result: EvaluationResult | None = None
