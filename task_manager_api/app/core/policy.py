"""
Authorization policy.

Pure decision functions: they take the acting identity and the target
and answer allow/deny, without touching the store or raising.  The
services call them after authentication and before any store write, and
translate a denial into the right error for the operation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .domain import Role, Task, User


@dataclass(frozen=True)
class Actor:
    """The authenticated identity performing a request."""

    id: str
    role: Role

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(id=user.id, role=user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


class Decision(str, Enum):
    ALLOW = "allow"
    DENY = "deny"
    LAST_ADMIN_PROTECTED = "last_admin_protected"


def can_read_task(actor: Actor, task: Task) -> bool:
    return actor.is_admin or actor.id == task.user_id


def can_write_task(actor: Actor, task: Task) -> bool:
    # Update and delete follow the read rule.
    return can_read_task(actor, task)


def can_read_user(actor: Actor, target_id: str) -> bool:
    """Any authenticated actor may read any public profile."""
    return True


def can_write_user(actor: Actor, target_id: str) -> bool:
    return actor.is_admin or actor.id == target_id


def can_change_role(actor: Actor) -> bool:
    return actor.is_admin


def can_list_users(actor: Actor) -> bool:
    return actor.is_admin


def can_delete_user(actor: Actor, target: User, admin_count: int) -> Decision:
    """Decide whether ``actor`` may delete ``target``.

    ``admin_count`` is the number of admins currently in the store,
    target included.  Removing the only admin is never allowed, not even
    by that admin.
    """
    if not can_write_user(actor, target.id):
        return Decision.DENY
    if target.role == Role.ADMIN and admin_count <= 1:
        return Decision.LAST_ADMIN_PROTECTED
    return Decision.ALLOW


def can_demote_user(target: User, new_role: Role, admin_count: int) -> bool:
    """Whether changing ``target`` to ``new_role`` keeps at least one admin."""
    return not (target.role == Role.ADMIN and new_role != Role.ADMIN and admin_count <= 1)


def task_scope(actor: Actor) -> Optional[str]:
    """Owner filter applied before any other listing filter.

    ``None`` means every task is visible (admins); otherwise only tasks
    owned by the returned id are.
    """
    return None if actor.is_admin else actor.id
