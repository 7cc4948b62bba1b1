"""Itinerary normalization.

Validates a deserialized itinerary against the raw schema and repairs it
into a fully dated plan:

- missing `days` becomes an empty list
- legacy `items` arrays become activities when `activities` is empty
- undated days get `anchor + index` calendar days
- `HH:mm` times are combined with the day date; malformed times are dropped
- trip start/end always resolve to a start <= end pair

A day that still has no date after derivation is a validation error.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import Any

from pydantic import ValidationError

from travelmind.models.itinerary import (
    LegacyItem,
    NormalizedActivity,
    NormalizedDay,
    NormalizedItinerary,
    RawActivity,
    RawDay,
    RawItinerary,
    RawPlan,
)

MAX_ISSUES = 5

_DATE_RE = re.compile(r"^\s*(\d{4}-\d{2}-\d{2})")
_TIME_RE = re.compile(r"^\s*([01]?\d|2[0-3]):([0-5]\d)\s*$")


class ItineraryValidationError(ValueError):
    """Itinerary failed schema validation or could not be fully dated."""

    reason = "json_schema_invalid"

    def __init__(self, message: str, issues: list[dict[str, Any]]) -> None:
        super().__init__(message)
        self.issues = issues[:MAX_ISSUES]


def parse_date(value: str | None) -> date | None:
    """Parse a YYYY-MM-DD prefix; anything else is treated as absent."""
    if not value:
        return None
    match = _DATE_RE.match(value)
    if not match:
        return None
    try:
        return date.fromisoformat(match.group(1))
    except ValueError:
        return None


def combine_date_time(day: date, value: str | None) -> datetime | None:
    """Combine a day's date with an HH:mm time; malformed times are absent."""
    if not value:
        return None
    match = _TIME_RE.match(value)
    if not match:
        return None
    return datetime.combine(day, time(int(match.group(1)), int(match.group(2))))


def _activities_for(day: RawDay) -> list[RawActivity]:
    activities = [
        RawActivity(title=a) if isinstance(a, str) else a for a in (day.activities or [])
    ]
    if activities:
        return activities

    legacy: list[RawActivity] = []
    for item in day.items or []:
        if isinstance(item, LegacyItem):
            legacy.append(RawActivity(title=item.title or "Untitled"))
        else:
            legacy.append(RawActivity(title=item or "Untitled"))
    return legacy


def _normalize_activity(activity: RawActivity, day: date) -> NormalizedActivity:
    return NormalizedActivity(
        title=activity.title,
        start_time=combine_date_time(day, activity.start_time or activity.time),
        end_time=combine_date_time(day, activity.end_time),
        notes=activity.notes or activity.details,
        kind=activity.kind,
        place_id=activity.place_id,
        lat=activity.lat,
        lon=activity.lon,
        price_cents=activity.price_cents,
        booking_url=activity.booking_url,
    )


def _validation_issues(error: ValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": [str(part) for part in issue["loc"]], "msg": issue["msg"]}
        for issue in error.errors()[:MAX_ISSUES]
    ]


def normalize_itinerary(
    data: dict[str, Any],
    *,
    require_title: bool = True,
    today: date | None = None,
) -> NormalizedItinerary:
    """Validate and repair a deserialized itinerary.

    Args:
        data: JSON object extracted from model output or a client request
        require_title: Whether a missing title is a validation error
        today: Fallback start date (defaults to the current date)

    Returns:
        NormalizedItinerary with every day dated

    Raises:
        ItineraryValidationError: On schema errors or undatable days
    """
    schema = RawItinerary if require_title else RawPlan
    try:
        raw = schema.model_validate(data)
    except ValidationError as e:
        raise ItineraryValidationError(
            "itinerary failed schema validation", _validation_issues(e)
        ) from e

    raw_days = raw.days or []
    explicit_dates = [parse_date(d.date) or parse_date(d.date_hint) for d in raw_days]

    # Day dates: explicit wins, otherwise anchor + zero-based index
    anchor = parse_date(raw.start_date) or (explicit_dates[0] if explicit_dates else None)
    day_dates: list[date | None] = []
    for index, explicit in enumerate(explicit_dates):
        if explicit is not None:
            day_dates.append(explicit)
        elif anchor is not None:
            day_dates.append(anchor + timedelta(days=index))
        else:
            day_dates.append(None)

    missing = [i for i, d in enumerate(day_dates) if d is None]
    if missing:
        issues = [
            {"loc": ["days", str(i), "date"], "msg": "day has no date and no start date to derive it"}
            for i in missing
        ]
        raise ItineraryValidationError("itinerary has undated days", issues)

    dated = [d for d in day_dates if d is not None]

    start = parse_date(raw.start_date) or (dated[0] if dated else None) or today or date.today()
    end = parse_date(raw.end_date) or (dated[-1] if dated else None)
    if end is None:
        end = start + timedelta(days=max(len(dated) - 1, 0))
    if end < start:
        end = max([start, *dated])

    days = [
        NormalizedDay(
            index=index + 1,
            date=day_date,
            title=raw_day.title,
            city=raw_day.city,
            summary=raw_day.summary,
            budget_cents=raw_day.budget_cents,
            activities=[_normalize_activity(a, day_date) for a in _activities_for(raw_day)],
        )
        for index, (raw_day, day_date) in enumerate(zip(raw_days, dated))
    ]

    return NormalizedItinerary(
        title=raw.title,
        destination=raw.destination,
        start_date=start,
        end_date=end,
        currency=raw.currency,
        days=days,
    )
