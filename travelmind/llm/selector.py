"""Model selection heuristics.

Maps a user message and request mode to a provider/model pair. The choice is
a pure function of the message text and settings: word count plus domain
keywords decide a complexity tier, and the tier plus mode pick the model.
"""

import math
from dataclasses import dataclass
from enum import Enum

from travelmind.config import Settings

COMPLEX_KEYWORDS = (
    "analyze",
    "compare",
    "detailed",
    "comprehensive",
    "optimize",
    "itinerary",
    "budget",
    "constraints",
    "multi-city",
)


class Mode(str, Enum):
    """Request classification driving model selection."""

    planner = "planner"
    companion = "companion"
    journal = "journal"


class Complexity(str, Enum):
    """Complexity tier of a user message."""

    low = "low"
    medium = "medium"
    high = "high"


@dataclass(frozen=True)
class ModelChoice:
    """Provider and model to call."""

    provider: str
    model: str


def estimate_tokens(text: str) -> int:
    """Crude token estimate (~4 chars/token), good enough for guardrails."""
    return math.ceil(len(text.strip()) / 4)


def analyze_complexity(message: str, settings: Settings) -> Complexity:
    """Classify a message as low, medium or high complexity.

    Args:
        message: Free-text user message
        settings: Settings carrying the word-count thresholds

    Returns:
        Complexity tier
    """
    word_count = len(message.split())
    lowered = message.lower()

    if any(keyword in lowered for keyword in COMPLEX_KEYWORDS):
        return Complexity.high
    if word_count > settings.selector_high_word_count:
        return Complexity.high
    if word_count > settings.selector_medium_word_count:
        return Complexity.medium
    return Complexity.low


def select_ollama_model(message: str, mode: Mode, settings: Settings) -> str:
    """Pick the local model for a message and mode."""
    complexity = analyze_complexity(message, settings)

    # Big model for complex non-chat requests
    if complexity == Complexity.high and mode != Mode.companion:
        return settings.ollama_model_complex

    # Fast model for chatty companion mode
    if mode == Mode.companion:
        return settings.ollama_model_companion

    return settings.ollama_model_default


def decide_primary(message: str, mode: Mode, settings: Settings) -> ModelChoice:
    """Primary provider choice (local inference)."""
    return ModelChoice(provider="ollama", model=select_ollama_model(message, mode, settings))


def fallback_choice(settings: Settings) -> ModelChoice:
    """Fallback provider choice (hosted API)."""
    return ModelChoice(provider="openai", model=settings.openai_model)
