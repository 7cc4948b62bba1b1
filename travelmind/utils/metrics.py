"""Prometheus metrics for LLM calls, generation and companion jobs."""

from prometheus_client import Counter, Histogram

llm_latency_ms = Histogram(
    "llm_latency_ms",
    "LLM provider call latency in milliseconds",
    ["provider", "outcome"],
    buckets=[100, 500, 1000, 2000, 5000, 10000, 30000, 60000, 120000, 300000],
)

llm_errors_total = Counter(
    "llm_errors_total",
    "Total LLM provider call errors",
    ["provider", "reason"],
)

itinerary_generation_total = Counter(
    "itinerary_generation_total",
    "Itinerary generation outcomes",
    ["outcome"],
)

companion_jobs_total = Counter(
    "companion_jobs_total",
    "Companion evaluation jobs processed",
    ["outcome"],
)


class PrometheusLLMMetrics:
    """Prometheus-based LLM metrics implementation."""

    def record_latency(self, provider: str, outcome: str, latency_ms: float) -> None:
        """Record provider call latency."""
        llm_latency_ms.labels(provider=provider, outcome=outcome).observe(latency_ms)

    def inc_error(self, provider: str, reason: str) -> None:
        """Increment error counter."""
        llm_errors_total.labels(provider=provider, reason=reason).inc()
