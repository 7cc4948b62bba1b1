"""Shared pytest fixtures for all test suites."""

import asyncio
from collections.abc import AsyncGenerator, Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from travelmind.cache import get_optional_redis, get_redis
from travelmind.config import Settings, get_settings
from travelmind.db.engine import get_session, init_models
from travelmind.llm.client import ChatClient, ProviderError
from travelmind.main import app


class FakeBackend:
    """Chat backend that replays scripted responses.

    Items that are exceptions are raised instead of returned.
    """

    def __init__(
        self,
        provider: str,
        responses: list[str | Exception],
        *,
        available: bool = True,
        delay: float = 0.0,
    ) -> None:
        self.provider = provider
        self.default_model = f"{provider}-default"
        self.responses = list(responses)
        self.available = available
        self.delay = delay
        self.calls: list[dict[str, Any]] = []

    def is_available(self) -> bool:
        return self.available

    async def complete(
        self,
        messages: list[dict[str, str]],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        self.calls.append(
            {
                "messages": messages,
                "model": model,
                "max_tokens": max_tokens,
                "temperature": temperature,
            }
        )
        if self.delay:
            await asyncio.sleep(self.delay)
        if not self.responses:
            raise ProviderError(f"{self.provider}: no scripted response left")
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeRedis:
    """In-memory stand-in for the redis.asyncio commands the app uses."""

    def __init__(self) -> None:
        self.values: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.lists: dict[str, list[str]] = {}

    async def get(self, key: str) -> str | None:
        return self.values.get(key)

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        self.values[key] = value
        self.ttls[key] = int(ttl)
        return True

    async def lpush(self, key: str, *values: str) -> int:
        items = self.lists.setdefault(key, [])
        for value in values:
            items.insert(0, value)
        return len(items)

    async def brpop(self, keys: list[str], timeout: int = 0) -> tuple[str, str] | None:
        for key in keys:
            items = self.lists.get(key)
            if items:
                return (key, items.pop())
        return None

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        environment="test",
        database_url="sqlite+aiosqlite:///:memory:",
        redis_url=None,
        openai_api_key=None,
        ai_max_duration_ms=2000,
        ai_retry_ollama=1,
        generation_fallback_attempts=2,
        bootstrap_todos=True,
    )


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def make_chat_client(
    test_settings: Settings,
) -> Callable[..., ChatClient]:
    """Factory for a two-backend (ollama -> openai) chain with scripted responses.

    Usage:
        client = make_chat_client(["{...}"], fallback=["{...}"])
        client.backends[0].calls  # primary calls
    """

    def _make(
        primary: list[str | Exception],
        fallback: list[str | Exception] | None = None,
        *,
        fallback_available: bool = True,
        primary_delay: float = 0.0,
    ) -> ChatClient:
        backends = [
            FakeBackend("ollama", primary, delay=primary_delay),
            FakeBackend("openai", fallback or [], available=fallback_available),
        ]
        return ChatClient(backends, test_settings)  # type: ignore[arg-type]

    return _make


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Async engine on a fresh on-disk SQLite database with all tables created."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        poolclass=NullPool,
        echo=False,
    )
    await init_models(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def api_client(
    db_engine: AsyncEngine,
    fake_redis: FakeRedis,
    test_settings: Settings,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client bound to the app with DB, Redis and settings overridden.

    Tests install a chat client with:
        app.dependency_overrides[get_chat_client] = lambda: client
    """

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncSession(db_engine, expire_on_commit=False) as session:
            yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_optional_redis] = lambda: fake_redis
    app.dependency_overrides[get_redis] = lambda: fake_redis

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()

