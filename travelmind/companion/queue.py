"""Companion evaluation job queue on Redis lists.

Jobs are LPUSHed onto `companion:jobs` and consumed with BRPOP by the
worker; results live under `companion:result:{job_id}` with a TTL.
"""

import random
import string
import time

from redis.asyncio import Redis

from travelmind.models.companion import EvaluateRequest, EvaluationJob, EvaluationResult

JOBS_KEY = "companion:jobs"
RESULT_KEY_PREFIX = "companion:result:"

_BASE36 = string.digits + string.ascii_lowercase


def result_key(job_id: str) -> str:
    return f"{RESULT_KEY_PREFIX}{job_id}"


def new_job_id() -> str:
    """Job id of the form eval:{epoch_ms}:{6 base36 chars}."""
    suffix = "".join(random.choices(_BASE36, k=6))
    return f"eval:{int(time.time() * 1000)}:{suffix}"


async def enqueue_evaluation(redis: Redis, request: EvaluateRequest) -> str:
    """Push an evaluation job and return its id."""
    job = EvaluationJob(job_id=new_job_id(), **request.model_dump())
    await redis.lpush(JOBS_KEY, job.model_dump_json(by_alias=True))
    return job.job_id


async def get_evaluation_result(redis: Redis, job_id: str) -> EvaluationResult | None:
    """Return a finished job's result, or None while it is not done."""
    payload = await redis.get(result_key(job_id))
    if payload is None:
        return None
    return EvaluationResult.model_validate_json(payload)


async def store_evaluation_result(
    redis: Redis, job_id: str, result: EvaluationResult, ttl_seconds: int
) -> None:
    await redis.setex(result_key(job_id), ttl_seconds, result.model_dump_json(by_alias=True))
