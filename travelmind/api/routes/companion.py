"""Companion endpoints - quick Q&A and background day evaluation."""

import base64
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from redis.asyncio import Redis
from redis.exceptions import RedisError

from travelmind.api.deps import get_chat_client
from travelmind.cache import get_optional_redis, get_redis
from travelmind.companion.queue import enqueue_evaluation, get_evaluation_result
from travelmind.config import Settings, get_settings
from travelmind.llm.client import ChatClient, ChatOptions, NoProviderAvailableError
from travelmind.llm.selector import Mode
from travelmind.models.companion import (
    AskRequest,
    AskResponse,
    EnqueueResponse,
    EvaluateRequest,
    EvaluationStatus,
)
from travelmind.planning.prompts import COMPANION_SYSTEM_PROMPT

router = APIRouter(prefix="/api/companion", tags=["companion"])
logger = logging.getLogger(__name__)


def ask_cache_key(trip_id: str | None, message: str) -> str:
    """Cache key for a companion answer: companion:{trip_id|none}:{base64(message)}."""
    encoded = base64.b64encode(message.encode("utf-8")).decode("ascii")
    return f"companion:{trip_id or 'none'}:{encoded}"


@router.post("/ask", response_model=AskResponse)
async def ask(
    body: AskRequest,
    chat_client: Annotated[ChatClient, Depends(get_chat_client)],
    redis: Annotated[Redis | None, Depends(get_optional_redis)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AskResponse:
    """Answer a short on-trip question, cached briefly per trip and message.

    Raises:
        HTTPException: 503 when no chat provider is usable
    """
    key = ask_cache_key(body.trip_id, body.message)

    if redis is not None:
        try:
            cached = await redis.get(key)
        except RedisError as e:
            logger.warning(f"[companion/ask] cache read failed: {e}")
            cached = None
        if cached is not None:
            return AskResponse(answer=cached, cached=True)

    try:
        result = await chat_client.chat(
            body.message,
            ChatOptions(mode=Mode.companion, system=COMPANION_SYSTEM_PROMPT),
        )
    except NoProviderAvailableError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "no_provider_available", "detail": str(e)},
        ) from e

    if redis is not None:
        try:
            await redis.setex(key, settings.companion_cache_ttl_seconds, result.text)
        except RedisError as e:
            logger.warning(f"[companion/ask] cache write failed: {e}")

    return AskResponse(answer=result.text, cached=False)


@router.post("/evaluate", response_model=EnqueueResponse, status_code=status.HTTP_202_ACCEPTED)
async def evaluate(
    body: EvaluateRequest,
    redis: Annotated[Redis, Depends(get_redis)],
) -> EnqueueResponse:
    """Queue a day evaluation for the companion worker."""
    job_id = await enqueue_evaluation(redis, body)
    logger.info(f"[companion/evaluate] queued {job_id} for trip {body.trip_id}")
    return EnqueueResponse(job_id=job_id)


@router.get(
    "/evaluate/{job_id}",
    response_model=EvaluationStatus,
    response_model_exclude_unset=True,
)
async def evaluation_status(
    job_id: str,
    redis: Annotated[Redis, Depends(get_redis)],
) -> EvaluationStatus:
    """Poll a queued evaluation: `{done: false}` until the worker stores a result."""
    result = await get_evaluation_result(redis, job_id)
    if result is None:
        return EvaluationStatus(done=False)
    return EvaluationStatus(done=True, result=result)
