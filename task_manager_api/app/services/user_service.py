"""
Business logic for users.

``UserService`` reads and changes user records on behalf of an
authenticated actor.  Every method takes the actor first and asks
``core.policy`` before touching the store.  Results are always
``UserRead`` objects, never raw records.
"""

import logging
from typing import List

from fastapi.concurrency import run_in_threadpool

from ..core import policy
from ..core.domain import User
from ..core.errors import (
    Conflict,
    Forbidden,
    InternalError,
    InvariantViolation,
    NotFound,
    ValidationError,
)
from ..core.policy import Actor, Decision
from ..core.security import CredentialService
from ..core.store import Store
from ..schemas.user import ChangePasswordRequest, UserList, UserRead, UserUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Service for reading, updating and deleting users."""

    def __init__(self, store: Store, credentials: CredentialService) -> None:
        self.store = store
        self.credentials = credentials

    def _require_user(self, user_id: str) -> User:
        user = self.store.get_user(user_id)
        if user is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        return user

    def list_users(self, actor: User) -> UserList:
        """Return all users.  Admins only."""
        if not policy.can_list_users(Actor.from_user(actor)):
            raise Forbidden("Access denied. Insufficient permissions", code="INSUFFICIENT_PERMISSIONS")
        users: List[UserRead] = [UserRead.from_record(u) for u in self.store.list_users()]
        return UserList(users=users, count=len(users))

    def get_user(self, actor: User, user_id: str) -> UserRead:
        if not policy.can_read_user(Actor.from_user(actor), user_id):
            raise Forbidden("Access denied to this user", code="ACCESS_DENIED")
        return UserRead.from_record(self._require_user(user_id))

    def update_user(self, actor: User, user_id: str, data: UserUpdate) -> UserRead:
        """Update a user's name, email or role.

        Users may edit themselves; admins may edit anyone.  Only admins
        may change a role, and the last admin cannot be demoted.
        """
        who = Actor.from_user(actor)
        existing = self._require_user(user_id)
        if not policy.can_write_user(who, user_id):
            raise Forbidden("Access denied to edit this user", code="ACCESS_DENIED")

        changes = data.model_dump(exclude_unset=True)
        if "email" in changes and changes["email"] != existing.email:
            if self.store.get_user_by_email(changes["email"]) is not None:
                raise Conflict("Email already in use", code="EMAIL_ALREADY_EXISTS")
        if "role" in changes:
            if not policy.can_change_role(who):
                raise Forbidden("Only administrators can change roles", code="INSUFFICIENT_PERMISSIONS")
            if not policy.can_demote_user(existing, changes["role"], self.store.count_admins()):
                raise InvariantViolation(
                    "Cannot demote the last administrator",
                    code="LAST_ADMIN_CANNOT_BE_DEMOTED",
                )

        updated = self.store.update_user(user_id, **changes)
        if updated is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        logger.info("User %s updated by %s (%s)", user_id, actor.id, ", ".join(sorted(changes)) or "no changes")
        return UserRead.from_record(updated)

    def delete_user(self, actor: User, user_id: str) -> None:
        """Delete a user.  Their tasks are kept."""
        target = self._require_user(user_id)
        decision = policy.can_delete_user(Actor.from_user(actor), target, self.store.count_admins())
        if decision is Decision.DENY:
            raise Forbidden("Access denied to delete this user", code="ACCESS_DENIED")
        if decision is Decision.LAST_ADMIN_PROTECTED:
            raise InvariantViolation(
                "Cannot delete the last administrator",
                code="LAST_ADMIN_CANNOT_BE_DELETED",
            )
        if not self.store.delete_user(user_id):
            raise InternalError("Error deleting user", code="DELETE_ERROR")
        logger.info("User %s deleted by %s", user_id, actor.id)

    async def change_password(self, actor: User, data: ChangePasswordRequest) -> None:
        """Replace the actor's own password after checking the current one."""
        user = self._require_user(actor.id)
        valid = await run_in_threadpool(
            self.credentials.verify_password, data.current_password, user.password
        )
        if not valid:
            raise ValidationError("Current password is incorrect", code="INVALID_CURRENT_PASSWORD")
        hashed = await run_in_threadpool(self.credentials.hash_password, data.new_password)
        if self.store.update_user(user.id, password=hashed) is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        logger.info("User %s changed their password", user.id)
