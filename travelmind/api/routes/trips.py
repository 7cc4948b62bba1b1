"""Trip endpoints - create from prompt, read, and replace plan."""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from travelmind.api.deps import get_chat_client
from travelmind.config import Settings, get_settings
from travelmind.db.engine import get_session
from travelmind.db.todos import bootstrap_trip_todos
from travelmind.db.trips import (
    PersistenceError,
    TripNotFoundError,
    create_trip_with_plan,
    get_trip,
    list_trips,
    replace_trip_plan,
)
from travelmind.llm.client import ChatClient, NoProviderAvailableError
from travelmind.models.trips import (
    CreateTripRequest,
    ReplacePlanRequest,
    ReplacePlanResponse,
    TripOut,
    TripSummary,
)
from travelmind.planning.generator import GenerationError, generate_itinerary
from travelmind.planning.normalize import ItineraryValidationError, normalize_itinerary

router = APIRouter(prefix="/api", tags=["trips"])
logger = logging.getLogger(__name__)


@router.post("/trips", response_model=TripOut, status_code=status.HTTP_200_OK)
async def create_trip(
    body: CreateTripRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
    chat_client: Annotated[ChatClient, Depends(get_chat_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> TripOut:
    """Generate an itinerary from a prompt and persist it as a trip.

    Raises:
        HTTPException: 502 on generation failure, 503 when no provider is
            usable, 500 on persistence failure
    """
    logger.info(f"[POST /api/trips] user_id={body.user_id}")

    try:
        generated = await generate_itinerary(
            body.prompt, chat_client, settings, model=body.model
        )
    except NoProviderAvailableError as e:
        logger.error(f"[POST /api/trips] no provider: {e}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail={"error": "no_provider_available", "detail": str(e)},
        ) from e
    except GenerationError as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error": e.reason, "issues": e.issues},
        ) from e

    try:
        trip = await create_trip_with_plan(
            session, body.user_id, generated.itinerary, generated.raw
        )
    except PersistenceError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "persistence_failed", "detail": str(e)},
        ) from e

    response = TripOut.model_validate(trip)

    if settings.bootstrap_todos:
        await bootstrap_trip_todos(session, body.user_id, trip.id)

    logger.info(
        f"[POST /api/trips] trip_id={trip.id} created after {generated.attempts} attempt(s)"
    )
    return response


@router.get("/trips", response_model=list[TripSummary])
async def list_user_trips(
    session: Annotated[AsyncSession, Depends(get_session)],
    user_id: Annotated[str, Query(alias="userId", min_length=1)],
) -> list[TripSummary]:
    """List a user's trips (summary only)."""
    trips = await list_trips(session, user_id)
    return [TripSummary.model_validate(t) for t in trips]


@router.get("/trips/{trip_id}", response_model=TripOut)
async def read_trip(
    trip_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TripOut:
    """Return a trip with its days and activities."""
    trip = await get_trip(session, trip_id)
    if trip is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail={"error": "trip_not_found"}
        )
    return TripOut.model_validate(trip)


@router.put("/plan/{trip_id}", response_model=ReplacePlanResponse)
async def replace_plan(
    trip_id: uuid.UUID,
    body: ReplacePlanRequest,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> ReplacePlanResponse:
    """Rewrite a trip's days/activities from a full plan snapshot.

    Raises:
        HTTPException: 422 for an invalid plan, 404 for an unknown trip,
            500 on persistence failure
    """
    raw_plan = body.plan or {}

    try:
        itinerary = normalize_itinerary(raw_plan, require_title=False)
    except ItineraryValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": e.reason, "issues": e.issues},
        ) from e

    try:
        await replace_trip_plan(session, trip_id, itinerary, raw_plan)
    except TripNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail={"error": "trip_not_found"}
        ) from e
    except PersistenceError as e:
        logger.error(f"[PUT /api/plan/{trip_id}] failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "plan_save_failed", "detail": str(e)},
        ) from e

    return ReplacePlanResponse(trip_id=trip_id, days=len(itinerary.days))
