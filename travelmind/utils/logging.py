"""Structured logging for LLM provider attempts."""

import logging
from typing import Any

logger = logging.getLogger(__name__)


class StructuredLLMLogger:
    """Structured logger for chat completion attempts."""

    def log_attempt(
        self,
        provider: str,
        model: str,
        attempt: int,
        outcome: str,
        latency_ms: float,
        mode: str | None = None,
        error_reason: str | None = None,
    ) -> None:
        """Log a provider attempt with structured data."""
        log_data: dict[str, Any] = {
            "provider": provider,
            "model": model,
            "attempt": attempt,
            "outcome": outcome,
            "latency_ms": round(latency_ms, 2),
        }

        if mode:
            log_data["mode"] = mode
        if error_reason:
            log_data["error_reason"] = error_reason

        log_msg = f"LLM call: {provider}/{model} - {outcome}"

        if outcome == "success":
            logger.info(log_msg, extra={"structured": log_data})
        else:
            logger.warning(log_msg, extra={"structured": log_data})


def configure_logging(level: str) -> None:
    """Configure root logging once per process."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
