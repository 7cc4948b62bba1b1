"""Itinerary generation with escalating-strictness retries.

Tries three prompt variants through the normal provider chain, then a fixed
number of extra attempts pinned to the fallback provider at temperature 0.
Malformed output is retried locally. A provider outage on the normal chain
propagates at once; on a pinned fallback attempt it only skips that attempt.
"""

import logging
from dataclasses import dataclass
from typing import Any

from travelmind.config import Settings, get_settings
from travelmind.llm.client import ChatClient, ChatOptions, NoProviderAvailableError
from travelmind.llm.extract import JsonExtractionError, parse_json_object
from travelmind.llm.selector import Mode
from travelmind.models.itinerary import NormalizedItinerary
from travelmind.planning.normalize import ItineraryValidationError, normalize_itinerary
from travelmind.planning.prompts import PLANNER_SYSTEM_PROMPT, build_prompt_variants
from travelmind.utils.metrics import itinerary_generation_total

logger = logging.getLogger(__name__)

RAW_EXCERPT_CHARS = 5000


class GenerationError(Exception):
    """All generation attempts failed to yield a valid itinerary."""

    def __init__(
        self,
        reason: str,
        issues: list[dict[str, Any]] | None = None,
        raw: str = "",
        attempts: int = 0,
    ) -> None:
        super().__init__(reason)
        self.reason = reason
        self.issues = issues or []
        self.raw = raw[:RAW_EXCERPT_CHARS]
        self.attempts = attempts


@dataclass
class GeneratedItinerary:
    """Accepted itinerary plus the raw object it was normalized from."""

    itinerary: NormalizedItinerary
    raw: dict[str, Any]
    attempts: int


async def generate_itinerary(
    prompt: str,
    chat_client: ChatClient,
    settings: Settings | None = None,
    *,
    model: str | None = None,
) -> GeneratedItinerary:
    """Generate, extract and normalize an itinerary from a trip prompt.

    Args:
        prompt: User's natural-language trip request
        chat_client: Provider chain
        settings: Settings (defaults to cached settings)
        model: Optional override for the primary model

    Returns:
        GeneratedItinerary

    Raises:
        GenerationError: If every attempt failed extraction or validation
        NoProviderAvailableError: If no provider could answer a normal attempt
    """
    settings = settings or get_settings()

    plan: list[tuple[str, ChatOptions]] = [
        (variant, ChatOptions(mode=Mode.planner, system=PLANNER_SYSTEM_PROMPT, model=model))
        for variant in build_prompt_variants(prompt)
    ]
    if chat_client.has_fallback:
        strictest = plan[-1][0]
        plan.extend(
            (
                strictest,
                ChatOptions(
                    mode=Mode.planner,
                    system=PLANNER_SYSTEM_PROMPT,
                    temperature=0.0,
                    force_fallback=True,
                ),
            )
            for _ in range(settings.generation_fallback_attempts)
        )

    last_error: JsonExtractionError | ItineraryValidationError | None = None
    last_raw = ""

    for attempt, (user_prompt, options) in enumerate(plan, start=1):
        try:
            result = await chat_client.chat(user_prompt, options)
        except NoProviderAvailableError as e:
            if not options.force_fallback:
                raise
            logger.warning(f"Itinerary attempt {attempt}/{len(plan)} skipped: {e}")
            continue
        last_raw = result.text

        try:
            data = parse_json_object(result.text)
            itinerary = normalize_itinerary(data)
        except (JsonExtractionError, ItineraryValidationError) as e:
            last_error = e
            logger.warning(
                f"Itinerary attempt {attempt}/{len(plan)} via {result.provider} "
                f"rejected: {e.reason}"
            )
            continue

        itinerary_generation_total.labels(outcome="success").inc()
        logger.info(f"Itinerary accepted on attempt {attempt} via {result.provider}")
        return GeneratedItinerary(itinerary=itinerary, raw=data, attempts=attempt)

    itinerary_generation_total.labels(outcome="failed").inc()
    reason = last_error.reason if last_error else JsonExtractionError.reason
    issues = last_error.issues if isinstance(last_error, ItineraryValidationError) else []
    logger.error(f"Itinerary generation failed after {len(plan)} attempts: {reason}")
    raise GenerationError(reason, issues=issues, raw=last_raw, attempts=len(plan))
