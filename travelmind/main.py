"""FastAPI application."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from travelmind.api.routes.companion import router as companion_router
from travelmind.api.routes.health import router as health_router
from travelmind.api.routes.metrics import router as metrics_router
from travelmind.api.routes.todos import router as todos_router
from travelmind.api.routes.trips import router as trips_router
from travelmind.cache import close_redis_client, create_redis_client
from travelmind.config import get_settings
from travelmind.db.engine import dispose_async_engine, get_async_engine, init_models
from travelmind.llm.client import build_chat_client
from travelmind.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open process-wide clients at startup and close them at shutdown."""
    settings = get_settings()
    configure_logging(settings.log_level)

    if settings.auto_create_tables:
        await init_models(get_async_engine())

    # No client-level timeout: each chat attempt carries its own deadline
    http_client = httpx.AsyncClient(timeout=None)
    app.state.redis = create_redis_client(settings)
    app.state.chat_client = build_chat_client(settings, http_client=http_client)
    logger.info(f"Travel Planner API started (environment={settings.environment})")

    try:
        yield
    finally:
        await close_redis_client(app.state.redis)
        await http_client.aclose()
        await dispose_async_engine()
        logger.info("Travel Planner API stopped")


app = FastAPI(title="Travel Planner API", version="0.1.0", lifespan=lifespan)

app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(trips_router)
app.include_router(todos_router)
app.include_router(companion_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Travel Planner API", "version": "0.1.0"}
