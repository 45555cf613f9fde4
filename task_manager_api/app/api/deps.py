"""
FastAPI dependencies that hand out the services built by ``create_app``.

Services live on ``app.state`` so that each application instance (and
each test) works against its own store.
"""

from fastapi import Request

from ..services.auth_service import AuthService
from ..services.task_service import TaskService
from ..services.user_service import UserService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service
