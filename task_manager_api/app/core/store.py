"""
In-memory store for users and tasks.

The store keeps users and tasks in two dictionaries keyed by
record id.  It is constructed explicitly by ``create_app`` and shared
through ``app.state``; tests get isolation by building a new one.

Every method runs to completion without awaiting, so on the asyncio
event loop each call is an atomic unit.  Records are copied on the way
in and out: callers never hold a reference into the collections.
"""

import dataclasses
import logging
import uuid
from typing import Callable, Dict, List, Optional

from .domain import Priority, Role, Task, User, utcnow

logger = logging.getLogger(__name__)

USER_FIELDS = frozenset({"name", "email", "password", "role"})
TASK_FIELDS = frozenset({"title", "description", "completed", "priority"})


def _new_id() -> str:
    return str(uuid.uuid4())


class Store:
    """Process-local collections of users and tasks.

    Parameters
    ----------
    password_hasher : Callable[[str], str], optional
        Used only by :meth:`seed` to hash the demo passwords.
    """

    def __init__(self, password_hasher: Optional[Callable[[str], str]] = None) -> None:
        self._users: Dict[str, User] = {}
        self._tasks: Dict[str, Task] = {}
        self._password_hasher = password_hasher

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def list_users(self) -> List[User]:
        return [dataclasses.replace(u) for u in self._users.values()]

    def get_user(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return dataclasses.replace(user) if user else None

    def get_user_by_email(self, email: str) -> Optional[User]:
        for user in self._users.values():
            if user.email == email:
                return dataclasses.replace(user)
        return None

    def count_admins(self) -> int:
        return sum(1 for u in self._users.values() if u.role == Role.ADMIN)

    def create_user(self, *, name: str, email: str, password: str, role: Role = Role.USER) -> User:
        now = utcnow()
        user = User(
            id=_new_id(),
            name=name,
            email=email,
            password=password,
            role=Role(role),
            created_at=now,
            updated_at=now,
        )
        self._users[user.id] = user
        return dataclasses.replace(user)

    def update_user(self, user_id: str, **changes) -> Optional[User]:
        """Replace the given fields of a user and refresh ``updated_at``.

        Returns the updated record, or ``None`` if the user does not exist.
        Unknown field names raise ``ValueError``.
        """
        unknown = set(changes) - USER_FIELDS
        if unknown:
            raise ValueError(f"Unknown user fields: {', '.join(sorted(unknown))}")
        user = self._users.get(user_id)
        if user is None:
            return None
        if "role" in changes:
            changes["role"] = Role(changes["role"])
        updated = dataclasses.replace(user, **changes, updated_at=utcnow())
        self._users[user_id] = updated
        return dataclasses.replace(updated)

    def delete_user(self, user_id: str) -> bool:
        # Tasks of the user are left in place.
        return self._users.pop(user_id, None) is not None

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------
    def list_tasks(self, owner_id: Optional[str] = None) -> List[Task]:
        """Return tasks in insertion order, optionally only those of one owner."""
        return [
            dataclasses.replace(t)
            for t in self._tasks.values()
            if owner_id is None or t.user_id == owner_id
        ]

    def get_task(self, task_id: str) -> Optional[Task]:
        task = self._tasks.get(task_id)
        return dataclasses.replace(task) if task else None

    def create_task(
        self,
        *,
        title: str,
        user_id: str,
        description: Optional[str] = None,
        completed: bool = False,
        priority: Priority = Priority.MEDIUM,
    ) -> Task:
        now = utcnow()
        task = Task(
            id=_new_id(),
            title=title,
            user_id=user_id,
            description=description,
            completed=completed,
            priority=Priority(priority),
            created_at=now,
            updated_at=now,
        )
        self._tasks[task.id] = task
        return dataclasses.replace(task)

    def update_task(self, task_id: str, **changes) -> Optional[Task]:
        unknown = set(changes) - TASK_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")
        task = self._tasks.get(task_id)
        if task is None:
            return None
        if "priority" in changes:
            changes["priority"] = Priority(changes["priority"])
        updated = dataclasses.replace(task, **changes, updated_at=utcnow())
        self._tasks[task_id] = updated
        return dataclasses.replace(updated)

    def delete_task(self, task_id: str) -> bool:
        return self._tasks.pop(task_id, None) is not None

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------
    def clear(self) -> None:
        self._users.clear()
        self._tasks.clear()

    def seed(self) -> None:
        """Insert the demo accounts and tasks."""
        if self._password_hasher is None:
            raise RuntimeError("Store.seed() needs a password_hasher")
        hash_password = self._password_hasher
        self.create_user(
            name="Admin User",
            email="admin@test.com",
            password=hash_password("admin123"),
            role=Role.ADMIN,
        )
        user = self.create_user(
            name="Test User",
            email="user@test.com",
            password=hash_password("user123"),
            role=Role.USER,
        )
        self.create_task(
            title="Sample task 1",
            description="A sample task to demonstrate the API",
            user_id=user.id,
            priority=Priority.MEDIUM,
        )
        self.create_task(
            title="Completed task",
            description="This task is already done",
            user_id=user.id,
            completed=True,
            priority=Priority.HIGH,
        )
        logger.info("Store seeded with %d users and %d tasks", len(self._users), len(self._tasks))

    def reset(self) -> None:
        self.clear()
        self.seed()
