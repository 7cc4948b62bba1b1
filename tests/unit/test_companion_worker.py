"""Tests for the companion job queue and worker."""

import json
import re
from datetime import date
from unittest.mock import AsyncMock

import httpx
import pytest
from prometheus_client import REGISTRY
from redis.exceptions import RedisError

from travelmind.adapters.opening_hours import fetch_opening_hours
from travelmind.companion.queue import (
    JOBS_KEY,
    enqueue_evaluation,
    get_evaluation_result,
    new_job_id,
    result_key,
)
from travelmind.companion.worker import CompanionWorker, build_suggestions
from travelmind.config import Settings
from travelmind.models.companion import DayWeather, EvaluateRequest, OpeningInfo

DAY = date(2025, 9, 2)


def make_request() -> EvaluateRequest:
    return EvaluateRequest(
        user_id="u1",
        trip_id="t1",
        date=DAY,
        lat=38.72,
        lon=-9.14,
        place_ids=["p1", "p2"],
    )


def weather(precip: float | None = 0.0, temp_max: float | None = 22.0) -> DayWeather:
    return DayWeather(date=DAY, temp_max_c=temp_max, temp_min_c=14.0, precip_mm=precip, code=1)


def test_new_job_id_format() -> None:
    assert re.fullmatch(r"eval:\d+:[0-9a-z]{6}", new_job_id())


@pytest.mark.asyncio
async def test_enqueue_pushes_camel_case_job(fake_redis) -> None:
    job_id = await enqueue_evaluation(fake_redis, make_request())

    (payload,) = fake_redis.lists[JOBS_KEY]
    job = json.loads(payload)
    assert job["jobId"] == job_id
    assert job["tripId"] == "t1"
    assert job["placeIds"] == ["p1", "p2"]
    assert job["date"] == "2025-09-02"


@pytest.mark.asyncio
async def test_result_is_none_until_stored(fake_redis) -> None:
    assert await get_evaluation_result(fake_redis, "eval:1:abcdef") is None


def test_suggestions_all_clear() -> None:
    assert build_suggestions(weather(), []) == ["All clear: proceed with original plan."]


def test_suggestions_rain_heat_and_closures() -> None:
    closed = OpeningInfo(place_id="p1", name="POI 1", open_now=False)

    suggestions = build_suggestions(weather(precip=5.0, temp_max=30.0), [closed])

    assert len(suggestions) == 3
    assert suggestions[0].startswith("Rain expected")
    assert suggestions[1].startswith("Hot day")
    assert suggestions[2].startswith("One or more places closed")


def test_suggestions_thresholds_are_exclusive_for_rain() -> None:
    assert build_suggestions(weather(precip=3.0, temp_max=29.9), []) == [
        "All clear: proceed with original plan."
    ]


def test_suggestions_without_weather() -> None:
    assert build_suggestions(None, []) == ["All clear: proceed with original plan."]


@pytest.mark.asyncio
async def test_opening_hours_fixture_reports_open() -> None:
    openings = await fetch_opening_hours(["a", "b"], DAY)

    assert [o.place_id for o in openings] == ["a", "b"]
    assert [o.name for o in openings] == ["POI 1", "POI 2"]
    assert all(o.open_now for o in openings)


@pytest.mark.asyncio
async def test_worker_processes_job_and_stores_result(
    fake_redis, test_settings: Settings
) -> None:
    calls: list[tuple] = []

    async def fake_weather(lat: float, lon: float, start: date, end: date) -> list[DayWeather]:
        calls.append((lat, lon, start, end))
        return [weather(precip=8.0)]

    worker = CompanionWorker(fake_redis, test_settings, fetch_weather=fake_weather)
    job_id = await enqueue_evaluation(fake_redis, make_request())

    assert await worker.run_once() is True

    assert calls == [(38.72, -9.14, DAY, DAY)]
    assert fake_redis.ttls[result_key(job_id)] == test_settings.companion_result_ttl_seconds

    result = await get_evaluation_result(fake_redis, job_id)
    assert result is not None
    assert result.weather is not None
    assert result.weather.precip_mm == 8.0
    assert len(result.openings) == 2
    assert result.suggestions[0].startswith("Rain expected")


@pytest.mark.asyncio
async def test_worker_returns_false_on_empty_queue(fake_redis, test_settings: Settings) -> None:
    worker = CompanionWorker(fake_redis, test_settings)

    assert await worker.run_once() is False


@pytest.mark.asyncio
async def test_failed_job_is_dropped_without_result(
    fake_redis, test_settings: Settings
) -> None:
    async def failing_weather(lat: float, lon: float, start: date, end: date) -> list[DayWeather]:
        raise httpx.ConnectError("open-meteo unreachable")

    worker = CompanionWorker(fake_redis, test_settings, fetch_weather=failing_weather)
    job_id = await enqueue_evaluation(fake_redis, make_request())

    assert await worker.run_once() is True

    assert await get_evaluation_result(fake_redis, job_id) is None
    assert fake_redis.lists[JOBS_KEY] == []


@pytest.mark.asyncio
async def test_malformed_payload_is_dropped(fake_redis, test_settings: Settings) -> None:
    await fake_redis.lpush(JOBS_KEY, "{not json")
    worker = CompanionWorker(fake_redis, test_settings)

    assert await worker.run_once() is True
    assert fake_redis.values == {}


def failed_jobs() -> float:
    return REGISTRY.get_sample_value("companion_jobs_total", {"outcome": "failed"}) or 0.0


@pytest.mark.asyncio
async def test_result_store_error_counts_as_failed_job(
    fake_redis, test_settings: Settings
) -> None:
    async def fake_weather(lat: float, lon: float, start: date, end: date) -> list[DayWeather]:
        return [weather()]

    worker = CompanionWorker(fake_redis, test_settings, fetch_weather=fake_weather)
    job_id = await enqueue_evaluation(fake_redis, make_request())
    fake_redis.setex = AsyncMock(side_effect=RedisError("connection reset"))
    before = failed_jobs()

    assert await worker.run_once() is True

    assert failed_jobs() == before + 1
    assert result_key(job_id) not in fake_redis.values


@pytest.mark.asyncio
async def test_invalid_job_date_counts_as_failed_job(
    fake_redis, test_settings: Settings
) -> None:
    payload = {
        "jobId": "job-1",
        "userId": "u1",
        "tripId": "t1",
        "date": "not-a-date",
        "lat": 0.0,
        "lon": 0.0,
        "placeIds": [],
    }
    await fake_redis.lpush(JOBS_KEY, json.dumps(payload))
    worker = CompanionWorker(fake_redis, test_settings)
    before = failed_jobs()

    assert await worker.run_once() is True

    assert failed_jobs() == before + 1
    assert fake_redis.values == {}
