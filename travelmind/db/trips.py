"""Trip persistence: create trips and replace their plans atomically.

A plan replacement is destructive-then-additive inside one transaction:
activities (scoped through day -> trip) and days are deleted, the new tree is
inserted and the trip's raw plan snapshot is updated. Any failure rolls the
whole replacement back.
"""

import logging
import uuid
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from travelmind.db.models import Activity, Day, Trip
from travelmind.models.itinerary import NormalizedItinerary

logger = logging.getLogger(__name__)

DEFAULT_TRIP_TITLE = "Untitled trip"


class PersistenceError(Exception):
    """A trip write failed and was rolled back."""

    pass


class TripNotFoundError(LookupError):
    """No trip with the given id."""

    pass


def _build_days(itinerary: NormalizedItinerary) -> list[Day]:
    """Map normalized days to ORM rows (not yet attached to a trip)."""
    return [
        Day(
            index=day.index,
            date=day.date,
            title=day.title,
            city=day.city,
            summary=day.summary,
            budget_cents=day.budget_cents,
            activities=[
                Activity(
                    position=position,
                    title=activity.title,
                    start_time=activity.start_time,
                    end_time=activity.end_time,
                    notes=activity.notes,
                    kind=activity.kind,
                    place_id=activity.place_id,
                    lat=activity.lat,
                    lon=activity.lon,
                    price_cents=activity.price_cents,
                    booking_url=activity.booking_url,
                )
                for position, activity in enumerate(day.activities)
            ],
        )
        for day in itinerary.days
    ]


def _apply_trip_fields(
    trip: Trip, itinerary: NormalizedItinerary, raw_plan: dict[str, Any] | None
) -> None:
    if itinerary.title:
        trip.title = itinerary.title
    if itinerary.destination is not None:
        trip.destination = itinerary.destination
    if itinerary.currency is not None:
        trip.currency = itinerary.currency
    trip.start_date = itinerary.start_date
    trip.end_date = itinerary.end_date
    trip.raw_plan = raw_plan


async def get_trip(session: AsyncSession, trip_id: uuid.UUID) -> Trip | None:
    """Load a trip with its days and activities."""
    result = await session.execute(
        select(Trip)
        .where(Trip.id == trip_id)
        .options(selectinload(Trip.days).selectinload(Day.activities))
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def list_trips(session: AsyncSession, user_id: str) -> list[Trip]:
    """List a user's trips, most recent start date first (no day tree)."""
    result = await session.execute(
        select(Trip).where(Trip.user_id == user_id).order_by(Trip.start_date.desc())
    )
    return list(result.scalars().all())


async def create_trip_with_plan(
    session: AsyncSession,
    user_id: str,
    itinerary: NormalizedItinerary,
    raw_plan: dict[str, Any] | None,
) -> Trip:
    """Create a trip and its full day/activity tree in one transaction.

    Raises:
        PersistenceError: If the transaction fails (nothing is written)
    """
    trip_id = uuid.uuid4()
    trip = Trip(id=trip_id, user_id=user_id, title=itinerary.title or DEFAULT_TRIP_TITLE)
    _apply_trip_fields(trip, itinerary, raw_plan)
    trip.days = _build_days(itinerary)
    session.add(trip)

    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Trip creation failed for user {user_id}: {e}")
        raise PersistenceError(str(e)) from e

    logger.info(f"Created trip {trip_id} with {len(itinerary.days)} day(s)")
    loaded = await get_trip(session, trip_id)
    assert loaded is not None
    return loaded


async def replace_trip_plan(
    session: AsyncSession,
    trip_id: uuid.UUID,
    itinerary: NormalizedItinerary,
    raw_plan: dict[str, Any] | None,
) -> Trip:
    """Replace all days/activities of a trip in one transaction.

    Args:
        session: Database session
        trip_id: Trip to rewrite
        itinerary: Normalized plan
        raw_plan: Raw JSON snapshot stored for audit

    Returns:
        The reloaded trip

    Raises:
        TripNotFoundError: If the trip does not exist
        PersistenceError: If the transaction fails (previous plan is kept)
    """
    trip = await session.get(Trip, trip_id)
    if trip is None:
        raise TripNotFoundError(str(trip_id))

    try:
        # Children first: activities scoped by day -> trip, then days
        day_ids = select(Day.id).where(Day.trip_id == trip_id)
        await session.execute(
            delete(Activity)
            .where(Activity.day_id.in_(day_ids))
            .execution_options(synchronize_session=False)
        )
        await session.execute(
            delete(Day).where(Day.trip_id == trip_id).execution_options(synchronize_session=False)
        )

        for day in _build_days(itinerary):
            day.trip_id = trip_id
            session.add(day)

        _apply_trip_fields(trip, itinerary, raw_plan)
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Plan replacement failed for trip {trip_id}: {e}")
        raise PersistenceError(str(e)) from e

    logger.info(f"Replaced plan of trip {trip_id} with {len(itinerary.days)} day(s)")
    loaded = await get_trip(session, trip_id)
    assert loaded is not None
    return loaded
