"""Todo API routes.

Learn: Every route here depends on get_current_user, and every service
call passes the caller's id as the owner. Routes translate service
errors into HTTP responses: NotFound → 404, PersistenceError → 400.
Body validation failures become 400 in the app-level handler.

Path ids are parsed by the todo_id_path dependency. FastAPI resolves
dependencies before it validates the body, so a malformed id is a 404
even when the PATCH body would also be rejected.
"""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from todoapi.auth.dependencies import AuthContext, get_current_user
from todoapi.db.engine import get_db
from todoapi.errors import NotFound, PersistenceError
from todoapi.schemas.todo import (
    TodoCreate,
    TodoEnvelope,
    TodoList,
    TodoRead,
    TodoUpdate,
)
from todoapi.services.todo_service import TodoService, parse_todo_id

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> TodoService:
    return TodoService(db)


def todo_id_path(todo_id: str) -> uuid.UUID:
    try:
        return parse_todo_id(todo_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Todo not found")


@router.post("/todos", response_model=TodoRead)
async def create_todo(
    body: TodoCreate,
    auth: AuthContext = Depends(get_current_user),
    svc: TodoService = Depends(_svc),
):
    """Create a todo owned by the caller."""
    try:
        return await svc.create_todo(owner_id=auth.user.id, text=body.text)
    except PersistenceError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/todos", response_model=TodoList)
async def list_todos(
    auth: AuthContext = Depends(get_current_user),
    svc: TodoService = Depends(_svc),
):
    """List the caller's todos (and only theirs), oldest first."""
    try:
        todos = await svc.list_todos(owner_id=auth.user.id)
    except PersistenceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"todos": [TodoRead.model_validate(t) for t in todos]}


@router.get("/todos/{todo_id}", response_model=TodoEnvelope)
async def get_todo(
    auth: AuthContext = Depends(get_current_user),
    todo_id: uuid.UUID = Depends(todo_id_path),
    svc: TodoService = Depends(_svc),
):
    try:
        todo = await svc.get_todo(todo_id, owner_id=auth.user.id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Todo not found")
    except PersistenceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"todo": TodoRead.model_validate(todo)}


@router.delete("/todos/{todo_id}", response_model=TodoEnvelope)
async def delete_todo(
    auth: AuthContext = Depends(get_current_user),
    todo_id: uuid.UUID = Depends(todo_id_path),
    svc: TodoService = Depends(_svc),
):
    """Delete a todo and return the removed document."""
    try:
        todo = await svc.delete_todo(todo_id, owner_id=auth.user.id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Todo not found")
    except PersistenceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"todo": TodoRead.model_validate(todo)}


@router.patch("/todos/{todo_id}", response_model=TodoEnvelope)
async def update_todo(
    auth: AuthContext = Depends(get_current_user),
    todo_id: uuid.UUID = Depends(todo_id_path),
    body: Optional[TodoUpdate] = None,
    svc: TodoService = Depends(_svc),
):
    """Update text and/or completion.

    Learn: Only ``completed: true`` marks a todo done (and stamps
    completedAt). Any other request, a bodyless one included, resets
    it to not completed.
    """
    body = body or TodoUpdate()
    try:
        todo = await svc.update_todo(
            todo_id,
            owner_id=auth.user.id,
            text=body.text,
            completed=body.completed,
        )
    except NotFound:
        raise HTTPException(status_code=404, detail="Todo not found")
    except PersistenceError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"todo": TodoRead.model_validate(todo)}
