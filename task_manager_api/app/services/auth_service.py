"""
Business logic for registration, login and token refresh.

Password hashing and verification are CPU bound, so they run in the
thread pool instead of blocking the event loop.
"""

import logging

from fastapi.concurrency import run_in_threadpool

from ..core.domain import User
from ..core.errors import Conflict, NotFound, Unauthenticated
from ..core.security import CredentialService
from ..core.store import Store
from ..schemas.auth import AuthData
from ..schemas.user import LoginRequest, UserCreate, UserRead

logger = logging.getLogger(__name__)


class AuthService:
    """Issue tokens to new and returning users."""

    def __init__(self, store: Store, credentials: CredentialService) -> None:
        self.store = store
        self.credentials = credentials

    def _auth_data(self, user: User) -> AuthData:
        token = self.credentials.issue_token(user.id, user.email, user.role)
        return AuthData(
            user=UserRead.from_record(user),
            token=token,
            expires_in=self.credentials.expires_in,
        )

    async def register(self, data: UserCreate) -> AuthData:
        """Create an account and return it with a token.

        Raises ``Conflict`` (``EMAIL_ALREADY_EXISTS``) if the email is
        taken.  The plaintext password is hashed before it reaches the
        store.
        """
        if self.store.get_user_by_email(data.email) is not None:
            raise Conflict("Email already in use", code="EMAIL_ALREADY_EXISTS")
        hashed = await run_in_threadpool(self.credentials.hash_password, data.password)
        # The hash took a while; re-check before inserting.
        if self.store.get_user_by_email(data.email) is not None:
            raise Conflict("Email already in use", code="EMAIL_ALREADY_EXISTS")
        user = self.store.create_user(
            name=data.name,
            email=data.email,
            password=hashed,
            role=data.role,
        )
        logger.info("Registered user %s with role %s", user.id, user.role.value)
        return self._auth_data(user)

    async def login(self, data: LoginRequest) -> AuthData:
        """Check credentials and return a fresh token.

        Unknown email and wrong password fail identically with
        ``INVALID_CREDENTIALS``.
        """
        user = self.store.get_user_by_email(data.email)
        valid = user is not None and await run_in_threadpool(
            self.credentials.verify_password, data.password, user.password
        )
        if not valid:
            logger.warning("Failed login attempt")
            raise Unauthenticated("Invalid credentials", code="INVALID_CREDENTIALS")
        logger.info("User %s logged in", user.id)
        return self._auth_data(user)

    def profile(self, actor: User) -> UserRead:
        user = self.store.get_user(actor.id)
        if user is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        return UserRead.from_record(user)

    def refresh(self, actor: User) -> AuthData:
        """Issue a new token for an already authenticated user."""
        user = self.store.get_user(actor.id)
        if user is None:
            raise NotFound("User not found", code="USER_NOT_FOUND")
        return self._auth_data(user)
