"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

# Registers the collectors with the default registry
import travelmind.utils.metrics  # noqa: F401

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes:
    - llm_latency_ms{provider, outcome}
    - llm_errors_total{provider, reason}
    - itinerary_generation_total{outcome}
    - companion_jobs_total{outcome}
    """
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
