"""To-do endpoints for a trip."""

import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from travelmind.db.engine import get_session
from travelmind.db.todos import TodoNotFoundError, create_todo, list_todos_for_trip, update_todo
from travelmind.models.trips import TodoCreate, TodoOut, TodoPatch

router = APIRouter(prefix="/api/todos", tags=["todos"])
logger = logging.getLogger(__name__)


@router.get("/{trip_id}", response_model=list[TodoOut])
async def list_trip_todos(
    trip_id: uuid.UUID,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> list[TodoOut]:
    todos = await list_todos_for_trip(session, trip_id)
    return [TodoOut.model_validate(t) for t in todos]


@router.post("", response_model=TodoOut, status_code=status.HTTP_201_CREATED)
async def add_todo(
    body: TodoCreate,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TodoOut:
    todo = await create_todo(
        session,
        user_id=body.user_id,
        title=body.title,
        trip_id=body.trip_id,
        kind=body.kind,
        due_date=body.due_date,
    )
    logger.info(f"[POST /api/todos] todo_id={todo.id} trip_id={body.trip_id}")
    return TodoOut.model_validate(todo)


@router.patch("/{todo_id}", response_model=TodoOut)
async def patch_todo(
    todo_id: uuid.UUID,
    body: TodoPatch,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> TodoOut:
    """Update status, title or due date.

    An explicit `dueDate: null` clears the due date; omitting it keeps it.

    Raises:
        HTTPException: 404 if the to-do does not exist
    """
    changes = {}
    if "due_date" in body.model_fields_set:
        changes["due_date"] = body.due_date

    try:
        todo = await update_todo(
            session, todo_id, status=body.status, title=body.title, **changes
        )
    except TodoNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail={"error": "todo_not_found"}
        ) from e

    return TodoOut.model_validate(todo)
