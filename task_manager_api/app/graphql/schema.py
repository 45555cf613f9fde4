"""
GraphQL surface of the Task Manager API.

The schema is a thin adapter over the same services the REST endpoints
use.  Resolvers authenticate through the request's ``Authorization``
header, convert input objects into the pydantic request models, and
translate ``ApiError`` into ``GraphQLError`` with ``extensions.code``
set to one of ``UNAUTHENTICATED``, ``FORBIDDEN``, ``BAD_USER_INPUT`` or
``INTERNAL_SERVER_ERROR``.  Any other exception is logged and reported
as "Internal server error".
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional

import strawberry
from fastapi import Request
from graphql import GraphQLError
from strawberry.extensions import MaskErrors
from strawberry.fastapi import BaseContext, GraphQLRouter
from strawberry.types import Info

from ..core.domain import Priority as PriorityValue
from ..core.domain import Role as RoleValue
from ..core.domain import User as UserRecord
from ..core.errors import ApiError
from ..core.security import CredentialService, authenticate
from ..core.store import Store
from ..schemas.auth import AuthData
from ..schemas.task import TaskCreate, TaskPage, TaskRead, TaskUpdate
from ..schemas.user import ChangePasswordRequest, LoginRequest, UserCreate, UserRead, UserUpdate
from ..services import parse_input
from ..services.auth_service import AuthService
from ..services.task_service import DEFAULT_PAGE_SIZE, TaskService
from ..services.user_service import UserService

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"

# Wire values are the member names (USER, HIGH); resolvers see the
# lowercase domain values.
Role = strawberry.enum(RoleValue, name="Role")
Priority = strawberry.enum(PriorityValue, name="Priority")


# ---------------------------------------------------------------------------
# Context and error translation
# ---------------------------------------------------------------------------

class GraphQLContext(BaseContext):
    """Per-request context: the raw credentials and the app's services."""

    def __init__(
        self,
        authorization: Optional[str],
        store: Store,
        credentials: CredentialService,
        auth_service: AuthService,
        task_service: TaskService,
        user_service: UserService,
    ) -> None:
        super().__init__()
        self.authorization = authorization
        self.store = store
        self.credentials = credentials
        self.auth_service = auth_service
        self.task_service = task_service
        self.user_service = user_service

    def current_user(self) -> UserRecord:
        return authenticate(self.authorization, self.store, self.credentials)


async def get_context(request: Request) -> GraphQLContext:
    state = request.app.state
    return GraphQLContext(
        authorization=request.headers.get("Authorization"),
        store=state.store,
        credentials=state.credentials,
        auth_service=state.auth_service,
        task_service=state.task_service,
        user_service=state.user_service,
    )


def to_graphql_error(exc: ApiError) -> GraphQLError:
    extensions: Dict[str, Any] = {"code": exc.graphql_code, "errorCode": exc.code}
    if exc.details:
        extensions["details"] = list(exc.details)
    return GraphQLError(exc.message, extensions=extensions)


@contextmanager
def api_errors() -> Iterator[None]:
    """Re-raise ``ApiError`` as a ``GraphQLError`` carrying its code."""
    try:
        yield
    except ApiError as exc:
        raise to_graphql_error(exc) from exc


def _is_unexpected(error: GraphQLError) -> bool:
    original = error.original_error
    return original is not None and not isinstance(original, GraphQLError)


class MaskInternalErrors(MaskErrors):
    """Replace unexpected resolver failures with a generic error."""

    def anonymise_error(self, error: GraphQLError) -> GraphQLError:
        logger.error(
            "Unhandled exception in GraphQL resolver at %s",
            error.path,
            exc_info=error.original_error,
        )
        return GraphQLError(
            message=self.error_message,
            nodes=error.nodes,
            source=error.source,
            positions=error.positions,
            path=error.path,
            extensions={"code": "INTERNAL_SERVER_ERROR"},
        )


def _provided(obj: Any) -> Dict[str, Any]:
    """Fields of an input object that the client actually sent."""
    return {k: v for k, v in vars(obj).items() if v is not strawberry.UNSET}


# ---------------------------------------------------------------------------
# Object types
# ---------------------------------------------------------------------------

@strawberry.type(name="User")
class UserNode:
    id: strawberry.ID
    name: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_read(cls, user: UserRead) -> "UserNode":
        return cls(
            id=strawberry.ID(user.id),
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


@strawberry.type(name="Task")
class TaskNode:
    id: strawberry.ID
    title: str
    description: Optional[str]
    completed: bool
    priority: Priority
    user_id: strawberry.ID
    created_at: datetime
    updated_at: datetime

    @strawberry.field
    def user(self, info: Info) -> Optional[UserNode]:
        """The owner, or null once the owner has been deleted."""
        record = info.context.store.get_user(str(self.user_id))
        return UserNode.from_read(UserRead.from_record(record)) if record else None

    @classmethod
    def from_read(cls, task: TaskRead) -> "TaskNode":
        return cls(
            id=strawberry.ID(task.id),
            title=task.title,
            description=task.description,
            completed=task.completed,
            priority=task.priority,
            user_id=strawberry.ID(task.user_id),
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


@strawberry.type
class AuthPayload:
    user: UserNode
    token: str
    expires_in: str

    @classmethod
    def from_data(cls, data: AuthData) -> "AuthPayload":
        return cls(user=UserNode.from_read(data.user), token=data.token, expires_in=data.expires_in)


@strawberry.type
class Pagination:
    current: int
    total: int
    count: int
    total_items: int


@strawberry.type
class TaskConnection:
    tasks: List[TaskNode]
    pagination: Pagination

    @classmethod
    def from_page(cls, page: TaskPage) -> "TaskConnection":
        p = page.pagination
        return cls(
            tasks=[TaskNode.from_read(t) for t in page.tasks],
            pagination=Pagination(current=p.current, total=p.total, count=p.count, total_items=p.total_items),
        )


# ---------------------------------------------------------------------------
# Input types
# ---------------------------------------------------------------------------

@strawberry.input
class RegisterInput:
    name: str
    email: str
    password: str
    role: Role = RoleValue.USER


@strawberry.input
class LoginInput:
    email: str
    password: str


@strawberry.input
class CreateTaskInput:
    title: str
    description: Optional[str] = strawberry.UNSET
    priority: Priority = PriorityValue.MEDIUM
    completed: bool = False


@strawberry.input
class UpdateTaskInput:
    title: Optional[str] = strawberry.UNSET
    description: Optional[str] = strawberry.UNSET
    priority: Optional[Priority] = strawberry.UNSET
    completed: Optional[bool] = strawberry.UNSET


@strawberry.input
class UpdateUserInput:
    name: Optional[str] = strawberry.UNSET
    email: Optional[str] = strawberry.UNSET
    role: Optional[Role] = strawberry.UNSET


@strawberry.input
class ChangePasswordInput:
    current_password: str
    new_password: str
    confirm_password: str


# ---------------------------------------------------------------------------
# Root types
# ---------------------------------------------------------------------------

@strawberry.type
class Query:
    @strawberry.field
    def me(self, info: Info) -> Optional[UserNode]:
        ctx: GraphQLContext = info.context
        with api_errors():
            return UserNode.from_read(ctx.auth_service.profile(ctx.current_user()))

    @strawberry.field
    def users(self, info: Info) -> List[UserNode]:
        ctx: GraphQLContext = info.context
        with api_errors():
            result = ctx.user_service.list_users(ctx.current_user())
        return [UserNode.from_read(u) for u in result.users]

    @strawberry.field
    def user(self, info: Info, id: strawberry.ID) -> Optional[UserNode]:
        ctx: GraphQLContext = info.context
        with api_errors():
            return UserNode.from_read(ctx.user_service.get_user(ctx.current_user(), str(id)))

    @strawberry.field
    def tasks(
        self,
        info: Info,
        completed: Optional[bool] = None,
        priority: Optional[Priority] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> TaskConnection:
        ctx: GraphQLContext = info.context
        with api_errors():
            result = ctx.task_service.list_tasks(
                ctx.current_user(),
                completed=completed,
                priority=priority,
                page=page,
                limit=limit,
            )
        return TaskConnection.from_page(result)

    @strawberry.field
    def task(self, info: Info, id: strawberry.ID) -> Optional[TaskNode]:
        ctx: GraphQLContext = info.context
        with api_errors():
            return TaskNode.from_read(ctx.task_service.get_task(ctx.current_user(), str(id)))

    @strawberry.field
    def my_tasks(
        self,
        info: Info,
        completed: Optional[bool] = None,
        priority: Optional[Priority] = None,
    ) -> List[TaskNode]:
        ctx: GraphQLContext = info.context
        with api_errors():
            result = ctx.task_service.my_tasks(ctx.current_user(), completed=completed, priority=priority)
        return [TaskNode.from_read(t) for t in result.tasks]


@strawberry.type
class Mutation:
    @strawberry.mutation
    async def register(self, info: Info, input: RegisterInput) -> AuthPayload:
        ctx: GraphQLContext = info.context
        with api_errors():
            data = await ctx.auth_service.register(parse_input(UserCreate, _provided(input)))
        return AuthPayload.from_data(data)

    @strawberry.mutation
    async def login(self, info: Info, input: LoginInput) -> AuthPayload:
        ctx: GraphQLContext = info.context
        with api_errors():
            data = await ctx.auth_service.login(parse_input(LoginRequest, _provided(input)))
        return AuthPayload.from_data(data)

    @strawberry.mutation
    def refresh_token(self, info: Info) -> AuthPayload:
        ctx: GraphQLContext = info.context
        with api_errors():
            data = ctx.auth_service.refresh(ctx.current_user())
        return AuthPayload.from_data(data)

    @strawberry.mutation
    def update_user(self, info: Info, id: strawberry.ID, input: UpdateUserInput) -> UserNode:
        ctx: GraphQLContext = info.context
        with api_errors():
            actor = ctx.current_user()
            data = parse_input(UserUpdate, _provided(input))
            return UserNode.from_read(ctx.user_service.update_user(actor, str(id), data))

    @strawberry.mutation
    def delete_user(self, info: Info, id: strawberry.ID) -> bool:
        ctx: GraphQLContext = info.context
        with api_errors():
            ctx.user_service.delete_user(ctx.current_user(), str(id))
        return True

    @strawberry.mutation
    async def change_password(self, info: Info, input: ChangePasswordInput) -> bool:
        ctx: GraphQLContext = info.context
        with api_errors():
            actor = ctx.current_user()
            await ctx.user_service.change_password(actor, parse_input(ChangePasswordRequest, _provided(input)))
        return True

    @strawberry.mutation
    def create_task(self, info: Info, input: CreateTaskInput) -> TaskNode:
        ctx: GraphQLContext = info.context
        with api_errors():
            actor = ctx.current_user()
            data = parse_input(TaskCreate, _provided(input))
            return TaskNode.from_read(ctx.task_service.create_task(actor, data))

    @strawberry.mutation
    def update_task(self, info: Info, id: strawberry.ID, input: UpdateTaskInput) -> TaskNode:
        ctx: GraphQLContext = info.context
        with api_errors():
            actor = ctx.current_user()
            data = parse_input(TaskUpdate, _provided(input))
            return TaskNode.from_read(ctx.task_service.update_task(actor, str(id), data))

    @strawberry.mutation
    def delete_task(self, info: Info, id: strawberry.ID) -> bool:
        ctx: GraphQLContext = info.context
        with api_errors():
            ctx.task_service.delete_task(ctx.current_user(), str(id))
        return True


schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
    extensions=[
        lambda: MaskInternalErrors(should_mask_error=_is_unexpected, error_message=INTERNAL_ERROR_MESSAGE),
    ],
)


def create_graphql_router(graphiql: bool = True) -> GraphQLRouter:
    """Build the router mounted at ``/graphql``."""
    return GraphQLRouter(
        schema,
        context_getter=get_context,
        graphql_ide="graphiql" if graphiql else None,
    )
