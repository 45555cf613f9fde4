"""
Business logic for tasks.

Non-admin actors only ever see and change their own tasks; admins see
every task.  Listing applies the owner scope first, then the optional
``completed``/``priority`` filters, then pagination.
"""

import logging
import math
from typing import List, Optional

from ..core import policy
from ..core.domain import Priority, Task, User
from ..core.errors import Forbidden, NotFound, ValidationError
from ..core.policy import Actor
from ..core.store import Store
from ..schemas.task import Pagination, TaskCreate, TaskList, TaskPage, TaskRead, TaskUpdate

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def paginate(items: List[Task], page: int, limit: int) -> TaskPage:
    """Slice ``items`` into one page and describe where it sits.

    Parameters
    ----------
    items : list[Task]
        The already scoped and filtered tasks, in listing order.
    page : int
        1-based page number.  Pages past the end are empty.
    limit : int
        Page size.

    Returns
    -------
    TaskPage
        The page's tasks with ``total = ceil(totalItems / limit)``.
    """
    start = (page - 1) * limit
    window = items[start:start + limit]
    return TaskPage(
        tasks=[TaskRead.from_record(t) for t in window],
        pagination=Pagination(
            current=page,
            total=math.ceil(len(items) / limit),
            count=len(window),
            total_items=len(items),
        ),
    )


def _matches(task: Task, completed: Optional[bool], priority: Optional[Priority]) -> bool:
    if completed is not None and task.completed != completed:
        return False
    if priority is not None and task.priority != Priority(priority):
        return False
    return True


class TaskService:
    """Service for task CRUD operations."""

    def __init__(self, store: Store) -> None:
        self.store = store

    def _visible(self, actor: User, completed: Optional[bool], priority: Optional[Priority]) -> List[Task]:
        owner_id = policy.task_scope(Actor.from_user(actor))
        return [t for t in self.store.list_tasks(owner_id=owner_id) if _matches(t, completed, priority)]

    def _require_task(self, actor: User, task_id: str, action: str) -> Task:
        task = self.store.get_task(task_id)
        if task is None:
            raise NotFound("Task not found", code="TASK_NOT_FOUND")
        allowed = (
            policy.can_read_task(Actor.from_user(actor), task)
            if action == "read"
            else policy.can_write_task(Actor.from_user(actor), task)
        )
        if not allowed:
            raise Forbidden(f"Access denied to {action} this task", code="ACCESS_DENIED")
        return task

    def list_tasks(
        self,
        actor: User,
        *,
        completed: Optional[bool] = None,
        priority: Optional[Priority] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> TaskPage:
        """Return one page of the tasks visible to ``actor``."""
        details = []
        if page < 1:
            details.append("page: must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            details.append(f"limit: must be between 1 and {MAX_PAGE_SIZE}")
        if details:
            raise ValidationError("Invalid data", details=details)
        return paginate(self._visible(actor, completed, priority), page, limit)

    def my_tasks(
        self,
        actor: User,
        *,
        completed: Optional[bool] = None,
        priority: Optional[Priority] = None,
    ) -> TaskList:
        """Return all tasks owned by ``actor``, admins included."""
        tasks = [
            TaskRead.from_record(t)
            for t in self.store.list_tasks(owner_id=actor.id)
            if _matches(t, completed, priority)
        ]
        return TaskList(tasks=tasks, count=len(tasks))

    def get_task(self, actor: User, task_id: str) -> TaskRead:
        return TaskRead.from_record(self._require_task(actor, task_id, "read"))

    def create_task(self, actor: User, data: TaskCreate) -> TaskRead:
        """Create a task owned by ``actor``."""
        task = self.store.create_task(
            title=data.title,
            description=data.description,
            completed=data.completed,
            priority=data.priority,
            user_id=actor.id,
        )
        logger.info("Task %s created by %s", task.id, actor.id)
        return TaskRead.from_record(task)

    def update_task(self, actor: User, task_id: str, data: TaskUpdate) -> TaskRead:
        self._require_task(actor, task_id, "update")
        changes = data.model_dump(exclude_unset=True)
        updated = self.store.update_task(task_id, **changes)
        if updated is None:
            raise NotFound("Task not found", code="TASK_NOT_FOUND")
        return TaskRead.from_record(updated)

    def delete_task(self, actor: User, task_id: str) -> None:
        self._require_task(actor, task_id, "delete")
        self.store.delete_task(task_id)
        logger.info("Task %s deleted by %s", task_id, actor.id)
