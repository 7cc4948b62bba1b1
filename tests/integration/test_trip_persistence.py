"""Integration tests for trip persistence against a SQLite database."""

import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from travelmind.db.models import Activity, Day, Todo, TodoStatus, TodoTemplate, Trip
from travelmind.db.seed_dev import DEFAULT_TODO_TEMPLATES, seed_todo_templates
from travelmind.db.todos import (
    TodoNotFoundError,
    bootstrap_trip_todos,
    create_todo,
    list_todos_for_trip,
    update_todo,
)
from travelmind.db.trips import (
    PersistenceError,
    TripNotFoundError,
    create_trip_with_plan,
    get_trip,
    list_trips,
    replace_trip_plan,
)
from travelmind.models.itinerary import NormalizedActivity, NormalizedDay, NormalizedItinerary
from travelmind.planning.normalize import normalize_itinerary

LISBON = {
    "title": "Lisbon Getaway",
    "startDate": "2025-09-01",
    "endDate": "2025-09-03",
    "destination": "Lisbon",
    "days": [
        {"date": "2025-09-01", "activities": [{"title": "Belém Tower"}]},
        {"date": "2025-09-02", "activities": []},
        {"date": "2025-09-03", "activities": []},
    ],
}

PORTO = {
    "startDate": "2025-10-10",
    "days": [
        {"activities": [{"title": "Ribeira walk", "startTime": "10:00"}, {"title": "Port tasting"}]},
        {"activities": [{"title": "Livraria Lello"}]},
    ],
}


def snapshot(trip: Trip) -> list[tuple[date, list[str]]]:
    return [(day.date, [a.title for a in day.activities]) for day in trip.days]


async def count(session: AsyncSession, model: type) -> int:
    return (await session.scalar(select(func.count()).select_from(model))) or 0


@pytest.mark.asyncio
async def test_create_trip_persists_full_tree(db_session: AsyncSession) -> None:
    itinerary = normalize_itinerary(LISBON)

    trip = await create_trip_with_plan(db_session, "user-1", itinerary, LISBON)

    assert trip.title == "Lisbon Getaway"
    assert trip.destination == "Lisbon"
    assert trip.start_date == date(2025, 9, 1)
    assert trip.end_date == date(2025, 9, 3)
    assert trip.raw_plan == LISBON
    assert snapshot(trip) == [
        (date(2025, 9, 1), ["Belém Tower"]),
        (date(2025, 9, 2), []),
        (date(2025, 9, 3), []),
    ]
    assert [d.index for d in trip.days] == [1, 2, 3]


@pytest.mark.asyncio
async def test_get_and_list_trips(db_session: AsyncSession) -> None:
    lisbon = await create_trip_with_plan(
        db_session, "user-1", normalize_itinerary(LISBON), LISBON
    )
    porto_plan = {"title": "Porto", **PORTO}
    porto = await create_trip_with_plan(
        db_session, "user-1", normalize_itinerary(porto_plan), porto_plan
    )
    await create_trip_with_plan(db_session, "user-2", normalize_itinerary(LISBON), LISBON)

    trips = await list_trips(db_session, "user-1")

    assert [t.id for t in trips] == [porto.id, lisbon.id]
    assert await get_trip(db_session, uuid.uuid4()) is None
    loaded = await get_trip(db_session, lisbon.id)
    assert loaded is not None
    assert loaded.title == "Lisbon Getaway"


@pytest.mark.asyncio
async def test_replace_plan_rewrites_days_and_activities(db_session: AsyncSession) -> None:
    trip = await create_trip_with_plan(
        db_session, "user-1", normalize_itinerary(LISBON), LISBON
    )

    itinerary = normalize_itinerary(PORTO, require_title=False)
    replaced = await replace_trip_plan(db_session, trip.id, itinerary, PORTO)

    # Title is kept when the replacement has none
    assert replaced.title == "Lisbon Getaway"
    assert replaced.start_date == date(2025, 10, 10)
    assert replaced.end_date == date(2025, 10, 11)
    assert replaced.raw_plan == PORTO
    assert snapshot(replaced) == [
        (date(2025, 10, 10), ["Ribeira walk", "Port tasting"]),
        (date(2025, 10, 11), ["Livraria Lello"]),
    ]
    assert replaced.days[0].activities[0].start_time is not None
    assert await count(db_session, Day) == 2
    assert await count(db_session, Activity) == 3


@pytest.mark.asyncio
async def test_replace_plan_is_idempotent(db_session: AsyncSession) -> None:
    trip = await create_trip_with_plan(
        db_session, "user-1", normalize_itinerary(LISBON), LISBON
    )
    itinerary = normalize_itinerary(PORTO, require_title=False)

    first = snapshot(await replace_trip_plan(db_session, trip.id, itinerary, PORTO))
    second = snapshot(await replace_trip_plan(db_session, trip.id, itinerary, PORTO))

    assert first == second
    assert await count(db_session, Day) == 2


@pytest.mark.asyncio
async def test_failed_replacement_keeps_previous_plan(db_engine: AsyncEngine) -> None:
    """Test that a write failure mid-replacement rolls everything back."""
    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        trip = await create_trip_with_plan(
            session, "user-1", normalize_itinerary(LISBON), LISBON
        )
        trip_id = trip.id
        before = snapshot(trip)

    # An activity without a title violates NOT NULL at flush time
    broken = NormalizedItinerary(
        title="Broken",
        start_date=date(2026, 1, 1),
        end_date=date(2026, 1, 2),
        days=[
            NormalizedDay(
                index=1,
                date=date(2026, 1, 1),
                activities=[NormalizedActivity(title="Fine")],
            ),
            NormalizedDay(
                index=2,
                date=date(2026, 1, 2),
                activities=[NormalizedActivity.model_construct(title=None)],
            ),
        ],
    )

    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        with pytest.raises(PersistenceError):
            await replace_trip_plan(session, trip_id, broken, {"title": "Broken"})

    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        reloaded = await get_trip(session, trip_id)
        assert reloaded is not None
        assert reloaded.title == "Lisbon Getaway"
        assert reloaded.raw_plan == LISBON
        assert snapshot(reloaded) == before
        assert await count(session, Day) == 3


@pytest.mark.asyncio
async def test_replace_unknown_trip_raises(db_session: AsyncSession) -> None:
    with pytest.raises(TripNotFoundError):
        await replace_trip_plan(
            db_session, uuid.uuid4(), normalize_itinerary(LISBON), LISBON
        )


@pytest.mark.asyncio
async def test_seed_and_bootstrap_todos(db_session: AsyncSession) -> None:
    inserted = await seed_todo_templates(db_session)
    assert inserted == len(DEFAULT_TODO_TEMPLATES)
    # Idempotent
    assert await seed_todo_templates(db_session) == 0
    assert await count(db_session, TodoTemplate) == len(DEFAULT_TODO_TEMPLATES)

    trip = await create_trip_with_plan(
        db_session, "user-1", normalize_itinerary(LISBON), LISBON
    )
    created = await bootstrap_trip_todos(db_session, "user-1", trip.id)

    assert created == len(DEFAULT_TODO_TEMPLATES)
    todos = await list_todos_for_trip(db_session, trip.id)
    assert len(todos) == len(DEFAULT_TODO_TEMPLATES)
    assert all(t.status == TodoStatus.PENDING for t in todos)
    assert all(t.user_id == "user-1" for t in todos)


@pytest.mark.asyncio
async def test_bootstrap_without_templates_creates_nothing(db_session: AsyncSession) -> None:
    trip = await create_trip_with_plan(
        db_session, "user-1", normalize_itinerary(LISBON), LISBON
    )

    assert await bootstrap_trip_todos(db_session, "user-1", trip.id) == 0
    assert await count(db_session, Todo) == 0


@pytest.mark.asyncio
async def test_bootstrap_failure_is_logged_not_raised(
    db_engine: AsyncEngine, caplog: pytest.LogCaptureFixture
) -> None:
    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        trip = await create_trip_with_plan(
            session, "user-1", normalize_itinerary(LISBON), LISBON
        )

    async with db_engine.begin() as conn:
        await conn.run_sync(TodoTemplate.__table__.drop)

    async with AsyncSession(db_engine, expire_on_commit=False) as session:
        created = await bootstrap_trip_todos(session, "user-1", trip.id)

    assert created == 0
    assert "todo_bootstrap_failed" in caplog.text


@pytest.mark.asyncio
async def test_update_todo_status_and_due_date(db_session: AsyncSession) -> None:
    due = datetime(2025, 8, 1, 9, 0, tzinfo=timezone.utc)
    todo = await create_todo(db_session, user_id="user-1", title="Buy adapter", due_date=due)
    assert todo.status == TodoStatus.PENDING

    updated = await update_todo(db_session, todo.id, status=TodoStatus.DONE)
    assert updated.status == TodoStatus.DONE
    assert updated.due_date is not None

    cleared = await update_todo(db_session, todo.id, due_date=None)
    assert cleared.due_date is None
    assert cleared.title == "Buy adapter"

    with pytest.raises(TodoNotFoundError):
        await update_todo(db_session, uuid.uuid4(), status=TodoStatus.SKIPPED)
