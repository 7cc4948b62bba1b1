"""Companion evaluation worker.

A single loop pops one job at a time from the Redis list, evaluates the day
against weather and place opening status, and writes a TTL-bound result.
A failed job is logged and dropped: its result key is never written, so
pollers keep seeing `done: false`.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import date

from redis.asyncio import Redis

from travelmind.adapters.opening_hours import fetch_opening_hours
from travelmind.adapters.weather import fetch_daily_weather
from travelmind.cache import close_redis_client, create_redis_client
from travelmind.companion.queue import JOBS_KEY, store_evaluation_result
from travelmind.config import Settings, get_settings
from travelmind.models.companion import DayWeather, EvaluationJob, EvaluationResult, OpeningInfo
from travelmind.utils.logging import configure_logging
from travelmind.utils.metrics import companion_jobs_total

logger = logging.getLogger(__name__)

RAIN_THRESHOLD_MM = 3.0
HOT_DAY_THRESHOLD_C = 30.0

WeatherFetcher = Callable[[float, float, date, date], Awaitable[list[DayWeather]]]
OpeningsFetcher = Callable[[list[str], date], Awaitable[list[OpeningInfo]]]


def build_suggestions(day: DayWeather | None, openings: list[OpeningInfo]) -> list[str]:
    """Turn weather and closures into plan adjustments."""
    suggestions: list[str] = []
    if day is not None and day.precip_mm is not None and day.precip_mm > RAIN_THRESHOLD_MM:
        suggestions.append("Rain expected: swap outdoor sights for indoor museums.")
    if day is not None and day.temp_max_c is not None and day.temp_max_c >= HOT_DAY_THRESHOLD_C:
        suggestions.append(
            "Hot day: schedule a midday break and book indoor attractions in the afternoon."
        )
    if any(o.open_now is False for o in openings):
        suggestions.append("One or more places closed: propose alternates nearby.")
    if not suggestions:
        suggestions.append("All clear: proceed with original plan.")
    return suggestions


class CompanionWorker:
    """Consumes evaluation jobs from Redis."""

    def __init__(
        self,
        redis: Redis,
        settings: Settings | None = None,
        *,
        fetch_weather: WeatherFetcher | None = None,
        fetch_openings: OpeningsFetcher | None = None,
    ) -> None:
        self.redis = redis
        self.settings = settings or get_settings()
        self._fetch_weather = fetch_weather or self._open_meteo
        self._fetch_openings = fetch_openings or fetch_opening_hours

    async def _open_meteo(
        self, lat: float, lon: float, start: date, end: date
    ) -> list[DayWeather]:
        return await fetch_daily_weather(
            lat, lon, start, end, base_url=self.settings.open_meteo_base_url
        )

    async def evaluate(self, job: EvaluationJob) -> EvaluationResult:
        """Evaluate one job's day."""
        weather = await self._fetch_weather(job.lat, job.lon, job.date, job.date)
        day = weather[0] if weather else None
        openings = await self._fetch_openings(job.place_ids, job.date)
        return EvaluationResult(
            weather=day,
            openings=openings,
            suggestions=build_suggestions(day, openings),
        )

    async def process(self, payload: str) -> str:
        """Parse, evaluate and store one raw job payload. Returns the job id."""
        job = EvaluationJob.model_validate_json(payload)
        result = await self.evaluate(job)
        await store_evaluation_result(
            self.redis, job.job_id, result, self.settings.companion_result_ttl_seconds
        )
        return job.job_id

    async def run_once(self) -> bool:
        """Pop and process at most one job.

        Returns:
            True if a job was popped (whether or not it succeeded)
        """
        item = await self.redis.brpop(
            [JOBS_KEY], timeout=self.settings.companion_queue_pop_timeout_seconds
        )
        if not item:
            return False

        _, payload = item
        try:
            job_id = await self.process(payload)
        except Exception as e:
            # Any job failure drops the job; the loop keeps consuming
            companion_jobs_total.labels(outcome="failed").inc()
            logger.error(f"[CompanionWorker] job failed: {type(e).__name__}: {e}")
            return True

        companion_jobs_total.labels(outcome="success").inc()
        logger.info(f"[CompanionWorker] job {job_id} done")
        return True

    async def run(self, stop: asyncio.Event | None = None) -> None:
        """Loop until `stop` is set."""
        stop = stop or asyncio.Event()
        logger.info("[CompanionWorker] started")
        while not stop.is_set():
            try:
                await self.run_once()
            except Exception:
                # Keep consuming; the queue store may come back
                logger.exception("[CompanionWorker] loop error")
                await asyncio.sleep(1)
        logger.info("[CompanionWorker] stopped")


async def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    redis = create_redis_client(settings)
    if redis is None:
        raise SystemExit("REDIS_URL must be set to run the companion worker")

    try:
        await CompanionWorker(redis, settings).run()
    finally:
        await close_redis_client(redis)


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()
