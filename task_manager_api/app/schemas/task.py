"""
Pydantic models for task items.

``TaskCreate`` and ``TaskUpdate`` validate request bodies; ``TaskRead``
is the response shape.  The owner is never taken from the body: a new
task always belongs to the authenticated user.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from ..core.domain import Priority, Task
from .common import ApiModel, InputModel

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


class TaskCreate(InputModel):
    """Schema for creating a task."""

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH, examples=["Write report"])
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    priority: Priority = Field(Priority.MEDIUM, examples=["high"])
    completed: bool = False


class TaskUpdate(InputModel):
    """Schema for updating a task.

    All fields are optional; only provided fields will be updated.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    priority: Optional[Priority] = None
    completed: Optional[bool] = None


class TaskRead(ApiModel):
    """Schema for a task returned by the tasks API."""

    id: str
    title: str
    description: Optional[str] = None
    completed: bool
    priority: Priority
    user_id: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, task: Task) -> "TaskRead":
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            completed=task.completed,
            priority=task.priority,
            user_id=task.user_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class Pagination(ApiModel):
    current: int
    total: int
    count: int
    total_items: int


class TaskPage(ApiModel):
    tasks: List[TaskRead]
    pagination: Pagination


class TaskList(ApiModel):
    tasks: List[TaskRead]
    count: int


class TaskData(ApiModel):
    task: TaskRead
