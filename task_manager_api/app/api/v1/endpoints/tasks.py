"""
Task endpoints for API v1.

All routes require authentication.  Regular users only see and change
their own tasks; administrators see every task.  ``/tasks/my`` is
declared before ``/tasks/{task_id}`` so it is not captured as an id.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from task_manager_api.app.api.deps import get_task_service
from task_manager_api.app.core.domain import Priority, User
from task_manager_api.app.core.security import get_current_user
from task_manager_api.app.schemas.common import Envelope, MessageResponse
from task_manager_api.app.schemas.task import TaskCreate, TaskData, TaskList, TaskPage, TaskUpdate
from task_manager_api.app.services.task_service import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, TaskService

router = APIRouter()


@router.get("", response_model=Envelope[TaskPage])
async def list_tasks(
    completed: Optional[bool] = Query(None),
    priority: Optional[Priority] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> Envelope[TaskPage]:
    """List tasks visible to the caller, page by page.

    - **completed** and **priority** are optional equality filters.
    - **page** starts at 1; **limit** is between 1 and 100.
    """
    data = service.list_tasks(current_user, completed=completed, priority=priority, page=page, limit=limit)
    return Envelope[TaskPage](message="Tasks retrieved successfully", data=data)


@router.get("/my", response_model=Envelope[TaskList])
async def my_tasks(
    completed: Optional[bool] = Query(None),
    priority: Optional[Priority] = Query(None),
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> Envelope[TaskList]:
    """List the caller's own tasks without pagination."""
    data = service.my_tasks(current_user, completed=completed, priority=priority)
    return Envelope[TaskList](message="Your tasks retrieved successfully", data=data)


@router.get("/{task_id}", response_model=Envelope[TaskData])
async def get_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> Envelope[TaskData]:
    task = service.get_task(current_user, task_id)
    return Envelope[TaskData](message="Task retrieved successfully", data=TaskData(task=task))


@router.post("", response_model=Envelope[TaskData], status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> Envelope[TaskData]:
    """Create a task owned by the caller."""
    task = service.create_task(current_user, task_in)
    return Envelope[TaskData](message="Task created successfully", data=TaskData(task=task))


@router.put("/{task_id}", response_model=Envelope[TaskData])
async def update_task(
    task_id: str,
    task_in: TaskUpdate,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> Envelope[TaskData]:
    """Update the supplied fields of a task.

    Responds with 404 ``TASK_NOT_FOUND`` or 403 ``ACCESS_DENIED``.
    """
    task = service.update_task(current_user, task_id, task_in)
    return Envelope[TaskData](message="Task updated successfully", data=TaskData(task=task))


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> MessageResponse:
    service.delete_task(current_user, task_id)
    return MessageResponse(message="Task deleted successfully")
