"""Models package - re-exports for convenience."""

from travelmind.models.companion import (
    AskRequest,
    AskResponse,
    DayWeather,
    EnqueueResponse,
    EvaluateRequest,
    EvaluationJob,
    EvaluationResult,
    EvaluationStatus,
    OpeningInfo,
)
from travelmind.models.itinerary import (
    NormalizedActivity,
    NormalizedDay,
    NormalizedItinerary,
    RawActivity,
    RawDay,
    RawItinerary,
    RawPlan,
)
from travelmind.models.trips import (
    CreateTripRequest,
    ReplacePlanRequest,
    ReplacePlanResponse,
    TodoCreate,
    TodoOut,
    TodoPatch,
    TripOut,
    TripSummary,
)

__all__ = [
    # Itinerary
    "RawActivity",
    "RawDay",
    "RawItinerary",
    "RawPlan",
    "NormalizedActivity",
    "NormalizedDay",
    "NormalizedItinerary",
    # Trips and to-dos
    "CreateTripRequest",
    "ReplacePlanRequest",
    "ReplacePlanResponse",
    "TripSummary",
    "TripOut",
    "TodoCreate",
    "TodoPatch",
    "TodoOut",
    # Companion
    "AskRequest",
    "AskResponse",
    "EvaluateRequest",
    "EvaluationJob",
    "EnqueueResponse",
    "DayWeather",
    "OpeningInfo",
    "EvaluationResult",
    "EvaluationStatus",
]
