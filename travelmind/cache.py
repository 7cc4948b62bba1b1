"""Redis client lifecycle.

One client is constructed per process at startup, handed to components
explicitly and closed at shutdown.
"""

import logging

from fastapi import HTTPException, Request, status
from redis.asyncio import Redis

from travelmind.config import Settings

logger = logging.getLogger(__name__)


def create_redis_client(settings: Settings) -> Redis | None:
    """Create a Redis client from settings, or None when not configured."""
    if not settings.redis_url:
        logger.warning("REDIS_URL not configured, caching and job queue disabled")
        return None
    return Redis.from_url(settings.redis_url, decode_responses=True)


async def close_redis_client(client: Redis | None) -> None:
    """Close a client created by create_redis_client."""
    if client is not None:
        await client.aclose()


def get_optional_redis(request: Request) -> Redis | None:
    """FastAPI dependency: the process Redis client, if any."""
    return getattr(request.app.state, "redis", None)


def get_redis(request: Request) -> Redis:
    """FastAPI dependency: the process Redis client, required.

    Raises:
        HTTPException: 503 if Redis is not configured
    """
    client = get_optional_redis(request)
    if client is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "cache_unavailable"},
        )
    return client
