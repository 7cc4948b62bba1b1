"""Chat client with an ordered provider fallback chain.

Security: Reads the OpenAI API key from settings only, never hardcoded.

The primary backend is a locally hosted Ollama model; the fallback is the
hosted OpenAI API. Each attempt is bounded by a wall-clock timeout. A timed
out backend is abandoned immediately, other failures are retried up to the
configured count, and when every backend is exhausted a single
NoProviderAvailableError carries all attempts.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Protocol

import httpx
from openai import AsyncOpenAI

from travelmind.config import Settings, get_settings
from travelmind.llm.selector import Mode, decide_primary, estimate_tokens, fallback_choice
from travelmind.utils.logging import StructuredLLMLogger
from travelmind.utils.metrics import PrometheusLLMMetrics

logger = logging.getLogger(__name__)

ChatMessage = dict[str, str]


class ProviderError(Exception):
    """A backend returned an unusable response."""

    pass


@dataclass(frozen=True)
class ProviderAttempt:
    """Record of one backend attempt."""

    provider: str
    model: str
    outcome: str
    error: str | None = None


class NoProviderAvailableError(Exception):
    """Every configured backend failed, timed out or was unavailable."""

    def __init__(self, attempts: list[ProviderAttempt]) -> None:
        self.attempts = attempts
        summary = "; ".join(
            f"{a.provider}/{a.model}: {a.outcome}" + (f" ({a.error})" if a.error else "")
            for a in attempts
        )
        super().__init__(f"no_provider_available: {summary or 'no backends configured'}")


class ChatBackend(Protocol):
    """Protocol for chat-completion backends."""

    provider: str
    default_model: str

    def is_available(self) -> bool:
        """Whether the backend has what it needs (e.g. credentials)."""
        ...

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """Return the completion text for a message set."""
        ...


class OllamaBackend:
    """Ollama /api/chat backend (non-streaming)."""

    provider = "ollama"

    def __init__(
        self,
        base_url: str,
        default_model: str,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize Ollama backend.

        Args:
            base_url: Ollama server URL
            default_model: Model used when no explicit model is passed
            client: Optional shared httpx client (for testing with mocks)
        """
        self.base_url = base_url.rstrip("/")
        self.default_model = default_model
        self._client = client

    def is_available(self) -> bool:
        return bool(self.base_url)

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        payload = {
            "model": model,
            "messages": messages,
            "options": {"num_predict": max_tokens, "temperature": temperature},
            "stream": False,
        }

        close_client = False
        client = self._client
        if client is None:
            # The caller bounds the request with its own deadline
            client = httpx.AsyncClient(timeout=None)
            close_client = True

        try:
            response = await client.post(f"{self.base_url}/api/chat", json=payload)
            response.raise_for_status()
            data = response.json()
        finally:
            if close_client:
                await client.aclose()

        # Ollama formats: {message: {content}, done: true, ...} or {response: "..."}
        message = data.get("message") or {}
        content = message.get("content") or data.get("response") or ""
        return str(content)


class OpenAIBackend:
    """OpenAI chat completions backend."""

    provider = "openai"

    def __init__(self, api_key: str | None, default_model: str = "gpt-4o-mini") -> None:
        """Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key (None disables the backend)
            default_model: Model name to use
        """
        self._api_key = api_key
        self.default_model = default_model
        self._client: AsyncOpenAI | None = None

    def is_available(self) -> bool:
        return bool(self._api_key)

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def complete(
        self,
        messages: list[ChatMessage],
        *,
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        response = await self.client.chat.completions.create(
            model=model,
            messages=messages,  # type: ignore[arg-type]
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not response.choices:
            raise ProviderError("openai returned no choices")
        return response.choices[0].message.content or ""


@dataclass
class ChatOptions:
    """Per-call options. Unset values resolve from settings."""

    mode: Mode = Mode.planner
    system: str | None = None
    max_duration_ms: int | None = None
    max_output_tokens: int | None = None
    retry_count: int | None = None
    temperature: float | None = None
    model: str | None = None
    force_fallback: bool = False


@dataclass
class ChatResult:
    """Completion text plus the attempts it took."""

    text: str
    provider: str
    model: str
    attempts: list[ProviderAttempt] = field(default_factory=list)


def enforce_token_guard(prompt: str, max_output_tokens: int, context_window: int) -> str:
    """Trim the head of a prompt so prompt + output fit the context window.

    An output cap that fills the whole window leaves nothing to trim to, so the
    prompt is sent as is.
    """
    if estimate_tokens(prompt) + max_output_tokens > context_window:
        allowed_chars = max(0, (context_window - max_output_tokens) * 4)
        return prompt[-allowed_chars:] if allowed_chars else prompt
    return prompt


class ChatClient:
    """Iterates an ordered list of capability-equivalent backends."""

    def __init__(
        self,
        backends: list[ChatBackend],
        settings: Settings | None = None,
        *,
        structured_logger: StructuredLLMLogger | None = None,
        metrics: PrometheusLLMMetrics | None = None,
    ) -> None:
        self.backends = backends
        self.settings = settings or get_settings()
        self._log = structured_logger or StructuredLLMLogger()
        self._metrics = metrics or PrometheusLLMMetrics()

    @property
    def has_fallback(self) -> bool:
        """Whether any backend after the primary is usable."""
        return any(b.is_available() for b in self.backends[1:])

    def _models_for(self, prompt: str, options: ChatOptions) -> dict[str, str]:
        primary = decide_primary(prompt, options.mode, self.settings)
        fallback = fallback_choice(self.settings)
        models = {fallback.provider: fallback.model, primary.provider: primary.model}
        if options.model:
            models[primary.provider] = options.model
        return models

    async def chat(self, prompt: str, options: ChatOptions | None = None) -> ChatResult:
        """Send a prompt through the backend chain.

        Args:
            prompt: User message
            options: Per-call options

        Returns:
            ChatResult from the first backend that answered

        Raises:
            NoProviderAvailableError: If every backend failed or was unavailable
        """
        options = options or ChatOptions()
        settings = self.settings
        max_duration_ms = options.max_duration_ms or settings.ai_max_duration_ms
        max_tokens = options.max_output_tokens or settings.ai_max_output_tokens
        retry_count = (
            options.retry_count if options.retry_count is not None else settings.ai_retry_ollama
        )
        temperature = (
            options.temperature if options.temperature is not None else settings.ai_temperature
        )

        models = self._models_for(prompt, options)
        bounded_prompt = enforce_token_guard(
            prompt, max_tokens, settings.ai_context_window_tokens
        )
        messages: list[ChatMessage] = []
        if options.system:
            messages.append({"role": "system", "content": options.system})
        messages.append({"role": "user", "content": bounded_prompt})

        backends = self.backends[1:] if options.force_fallback else self.backends
        attempts: list[ProviderAttempt] = []

        for index, backend in enumerate(backends):
            model = models.get(backend.provider, backend.default_model)

            if not backend.is_available():
                attempts.append(ProviderAttempt(backend.provider, model, "unavailable"))
                continue

            # Only the primary backend gets retries
            max_attempts = 1 + retry_count if index == 0 and not options.force_fallback else 1

            for attempt in range(1, max_attempts + 1):
                started = time.perf_counter()
                try:
                    text = await asyncio.wait_for(
                        backend.complete(
                            messages,
                            model=model,
                            max_tokens=max_tokens,
                            temperature=temperature,
                        ),
                        timeout=max_duration_ms / 1000,
                    )
                except asyncio.TimeoutError:
                    latency_ms = (time.perf_counter() - started) * 1000
                    self._record(backend.provider, model, attempt, "timeout", latency_ms, options)
                    attempts.append(
                        ProviderAttempt(
                            backend.provider, model, "timeout", f"timeout:{max_duration_ms}ms"
                        )
                    )
                    # A slow host stays slow; move to the next backend
                    break
                except Exception as e:
                    latency_ms = (time.perf_counter() - started) * 1000
                    reason = type(e).__name__
                    self._record(
                        backend.provider, model, attempt, "error", latency_ms, options, reason
                    )
                    attempts.append(ProviderAttempt(backend.provider, model, "error", str(e)))
                    continue

                latency_ms = (time.perf_counter() - started) * 1000
                self._record(backend.provider, model, attempt, "success", latency_ms, options)
                attempts.append(ProviderAttempt(backend.provider, model, "success"))
                return ChatResult(
                    text=text, provider=backend.provider, model=model, attempts=attempts
                )

        logger.error(f"All chat providers failed after {len(attempts)} attempt(s)")
        raise NoProviderAvailableError(attempts)

    def _record(
        self,
        provider: str,
        model: str,
        attempt: int,
        outcome: str,
        latency_ms: float,
        options: ChatOptions,
        error_reason: str | None = None,
    ) -> None:
        self._metrics.record_latency(provider, outcome, latency_ms)
        if outcome != "success":
            self._metrics.inc_error(provider, error_reason or outcome)
        self._log.log_attempt(
            provider=provider,
            model=model,
            attempt=attempt,
            outcome=outcome,
            latency_ms=latency_ms,
            mode=options.mode.value,
            error_reason=error_reason,
        )


def build_chat_client(
    settings: Settings | None = None, http_client: httpx.AsyncClient | None = None
) -> ChatClient:
    """Factory for the default Ollama -> OpenAI chain.

    Args:
        settings: Settings (defaults to cached settings)
        http_client: Optional shared httpx client for the Ollama backend

    Returns:
        ChatClient with the primary and fallback backends
    """
    settings = settings or get_settings()
    api_key = settings.openai_api_key.get_secret_value() if settings.openai_api_key else None

    if not api_key:
        logger.warning("No OpenAI API key configured, fallback provider disabled")

    backends: list[ChatBackend] = [
        OllamaBackend(settings.ollama_url, settings.ollama_model_default, client=http_client),
        OpenAIBackend(api_key, settings.openai_model),
    ]
    return ChatClient(backends, settings)
