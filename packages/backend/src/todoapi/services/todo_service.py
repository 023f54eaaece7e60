"""Todo service — owner-scoped CRUD for to-do items.

Learn: Every lookup is constrained by (id, owner_id), never id alone.
A todo that exists but belongs to someone else is reported exactly like
one that does not exist, so callers cannot probe other users' ids.
"""

import time
import uuid
from typing import Optional

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from todoapi.db.models import Todo
from todoapi.errors import NotFound, PersistenceError

logger = structlog.get_logger()


def parse_todo_id(raw: str) -> uuid.UUID:
    """Parse a path id. Malformed ids are NotFound, same as missing ones."""
    try:
        return uuid.UUID(raw)
    except (ValueError, AttributeError, TypeError):
        raise NotFound(f"Todo {raw!r} not found")


def now_ms() -> int:
    return int(time.time() * 1000)


class TodoService:
    """Business logic for todos owned by a single user."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("todo.store_failed", action=action, error=str(e))
            raise PersistenceError(f"Could not {action} todo") from e

    async def _owned(self, todo_id: uuid.UUID, owner_id: uuid.UUID) -> Todo:
        try:
            result = await self.db.execute(
                select(Todo).where(Todo.id == todo_id, Todo.owner_id == owner_id)
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise PersistenceError("Could not load todo") from e
        todo = result.scalars().first()
        if not todo:
            raise NotFound(f"Todo {todo_id} not found")
        return todo

    # ─── Create / read ───────────────────────────────────

    async def create_todo(self, owner_id: uuid.UUID, text: str) -> Todo:
        todo = Todo(text=text, completed=False, completed_at=None, owner_id=owner_id)
        self.db.add(todo)
        await self._commit("create")
        logger.info("todo.created", todo_id=str(todo.id), owner_id=str(owner_id))
        return todo

    async def list_todos(self, owner_id: uuid.UUID) -> list[Todo]:
        try:
            result = await self.db.execute(
                select(Todo)
                .where(Todo.owner_id == owner_id)
                .order_by(Todo.created_at, Todo.id)
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("todo.store_failed", action="list", error=str(e))
            raise PersistenceError("Could not list todos") from e
        return list(result.scalars().all())

    async def get_todo(self, todo_id: uuid.UUID, owner_id: uuid.UUID) -> Todo:
        return await self._owned(todo_id, owner_id)

    # ─── Update / delete ─────────────────────────────────

    async def update_todo(
        self,
        todo_id: uuid.UUID,
        owner_id: uuid.UUID,
        text: Optional[str] = None,
        completed: bool = False,
    ) -> Todo:
        """Apply a PATCH.

        completed=True stamps completed_at with the current time in epoch
        milliseconds; completed=False always clears it.
        """
        todo = await self._owned(todo_id, owner_id)
        if text is not None:
            todo.text = text
        if completed:
            todo.completed = True
            todo.completed_at = now_ms()
        else:
            todo.completed = False
            todo.completed_at = None
        await self._commit("update")
        logger.info("todo.updated", todo_id=str(todo.id), completed=todo.completed)
        return todo

    async def delete_todo(self, todo_id: uuid.UUID, owner_id: uuid.UUID) -> Todo:
        """Physically remove the todo and return it as it was."""
        todo = await self._owned(todo_id, owner_id)
        await self.db.delete(todo)
        await self._commit("delete")
        logger.info("todo.deleted", todo_id=str(todo.id), owner_id=str(owner_id))
        return todo
