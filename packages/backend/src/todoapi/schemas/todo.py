"""Pydantic schemas for to-do items.

Learn: Separate schemas for create/update/read keeps the API clean.
- TodoCreate: what you POST to create a todo
- TodoUpdate: the only two fields a PATCH may change; anything else is ignored
- TodoRead: what the API returns (completedAt/owner keep the wire names)
"""

import uuid
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class TodoCreate(BaseModel):
    text: str = Field(..., min_length=1)

    model_config = {"str_strip_whitespace": True}


class TodoUpdate(BaseModel):
    """Partial update. Text is applied when given; completed is normalized.

    Only a literal boolean ``true`` marks the todo completed. Any other value
    (false, missing, "yes", 1) means not completed, which clears completedAt.
    """

    text: Optional[str] = Field(None, min_length=1)
    completed: bool = False

    model_config = {"str_strip_whitespace": True}

    @field_validator("completed", mode="before")
    @classmethod
    def only_true_completes(cls, v: Any) -> bool:
        return v is True


class TodoRead(BaseModel):
    id: uuid.UUID
    text: str
    completed: bool
    completed_at: Optional[int] = Field(None, alias="completedAt")
    owner_id: uuid.UUID = Field(alias="owner")

    model_config = {"from_attributes": True, "populate_by_name": True}


class TodoEnvelope(BaseModel):
    todo: TodoRead


class TodoList(BaseModel):
    todos: list[TodoRead]
