"""To-do data access and trip bootstrap."""

import logging
import uuid
from datetime import datetime

from sqlalchemy import case, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from travelmind.db.models import Todo, TodoStatus, TodoTemplate

logger = logging.getLogger(__name__)

BOOTSTRAP_FAILED = "todo_bootstrap_failed"

_UNSET = object()

# Lifecycle order; the column stores plain strings
STATUS_ORDER = case(
    {TodoStatus.PENDING: 0, TodoStatus.DONE: 1, TodoStatus.SKIPPED: 2},
    value=Todo.status,
    else_=3,
)


class TodoNotFoundError(LookupError):
    """No to-do with the given id."""

    pass


async def create_todo(
    session: AsyncSession,
    *,
    user_id: str,
    title: str,
    trip_id: uuid.UUID | None = None,
    kind: str | None = None,
    due_date: datetime | None = None,
) -> Todo:
    """Create a pending to-do."""
    todo = Todo(
        id=uuid.uuid4(),
        user_id=user_id,
        trip_id=trip_id,
        title=title,
        kind=kind,
        due_date=due_date,
        status=TodoStatus.PENDING,
    )
    session.add(todo)
    await session.commit()
    await session.refresh(todo)
    return todo


async def list_todos_for_trip(session: AsyncSession, trip_id: uuid.UUID) -> list[Todo]:
    """List a trip's to-dos in lifecycle order (pending first), then by creation time."""
    result = await session.execute(
        select(Todo)
        .where(Todo.trip_id == trip_id)
        .order_by(STATUS_ORDER, Todo.created_at.asc())
    )
    return list(result.scalars().all())


async def update_todo(
    session: AsyncSession,
    todo_id: uuid.UUID,
    *,
    status: TodoStatus | None = None,
    title: str | None = None,
    due_date: datetime | None | object = _UNSET,
) -> Todo:
    """Patch a to-do. Passing `due_date=None` clears it; omitting it keeps it.

    Raises:
        TodoNotFoundError: If the to-do does not exist
    """
    todo = await session.get(Todo, todo_id)
    if todo is None:
        raise TodoNotFoundError(str(todo_id))

    if status is not None:
        todo.status = status
    if title is not None:
        todo.title = title
    if due_date is not _UNSET:
        todo.due_date = due_date  # type: ignore[assignment]

    await session.commit()
    await session.refresh(todo)
    return todo


async def bootstrap_trip_todos(session: AsyncSession, user_id: str, trip_id: uuid.UUID) -> int:
    """Copy to-do templates onto a new trip.

    Best-effort: a failure is logged with a distinguishable reason code and
    reported as zero created rows; the trip itself is already committed.

    Returns:
        Number of to-dos created
    """
    try:
        result = await session.execute(select(TodoTemplate))
        templates = result.scalars().all()
        if not templates:
            return 0

        for template in templates:
            session.add(
                Todo(
                    id=uuid.uuid4(),
                    user_id=user_id,
                    trip_id=trip_id,
                    title=template.title,
                    kind=template.kind,
                    status=TodoStatus.PENDING,
                )
            )
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        logger.warning(
            f"{BOOTSTRAP_FAILED}: trip={trip_id} user={user_id}: {type(e).__name__}: {e}",
            extra={"structured": {"reason": BOOTSTRAP_FAILED, "trip_id": str(trip_id)}},
        )
        return 0

    logger.info(f"Bootstrapped {len(templates)} to-do(s) for trip {trip_id}")
    return len(templates)
