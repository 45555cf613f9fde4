"""
Security helpers for password hashing and JWT authentication.

``CredentialService`` implements a lightweight JSON Web Token (JWT)
mechanism using HMAC-SHA256 signatures and base64url encoding, plus
salted PBKDF2-HMAC-SHA256 password hashing.  The signing secret, token
lifetime and hash cost are passed in at construction; the service never
reads configuration on its own.

The second half of the module wires the service into FastAPI:
``get_current_user`` resolves the bearer token of a request to a stored
``User`` and ``require_roles`` restricts an endpoint to given roles.
Both REST and GraphQL go through :func:`authenticate`, so the two
surfaces accept and reject exactly the same credentials.
"""

import base64
import hashlib
import hmac
import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader

from .domain import Role, User
from .errors import Forbidden, InvalidSignature, MalformedToken, TokenExpired, Unauthenticated
from .store import Store

logger = logging.getLogger(__name__)

HASH_ALGORITHM = "pbkdf2_sha256"
TOKEN_HEADER = {"alg": "HS256", "typ": "JWT"}


def _b64_url_encode(data: bytes) -> str:
    """Base64-url encode bytes without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("utf-8")


def _b64_url_decode(data: str) -> bytes:
    """Decode base64-url encoded string, adding padding if necessary."""
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode((data + padding).encode("ascii"))


def format_duration(seconds: int) -> str:
    """Render a token lifetime the way clients expect it (``"24h"``, ``"90m"``)."""
    if seconds % 3600 == 0:
        return f"{seconds // 3600}h"
    if seconds % 60 == 0:
        return f"{seconds // 60}m"
    return f"{seconds}s"


@dataclass(frozen=True)
class TokenClaims:
    """Decoded payload of a verified token."""

    sub: str
    email: str
    role: Role
    iat: int
    exp: int


class CredentialService:
    """Password hashing and signed token issuance/verification.

    Parameters
    ----------
    secret_key : str
        Shared secret used to sign tokens.
    token_ttl_seconds : int
        Default lifetime of issued tokens.
    hash_iterations : int
        PBKDF2 iteration count for new password hashes.
    clock : Callable[[], float]
        Source of the current UNIX time; tests substitute a fixed clock.
    """

    def __init__(
        self,
        secret_key: str,
        token_ttl_seconds: int = 24 * 60 * 60,
        hash_iterations: int = 100_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if not secret_key:
            raise ValueError("secret_key must not be empty")
        self._secret = secret_key.encode("utf-8")
        self.token_ttl_seconds = token_ttl_seconds
        self.hash_iterations = hash_iterations
        self._clock = clock

    @property
    def expires_in(self) -> str:
        return format_duration(self.token_ttl_seconds)

    # ------------------------------------------------------------------
    # Passwords
    # ------------------------------------------------------------------
    def hash_password(self, password: str) -> str:
        """Hash a password using PBKDF2-HMAC with SHA-256.

        A 16-byte random salt is generated for each password.  The
        result has the form ``pbkdf2_sha256$<iterations>$<salt>$<hash>``
        (salt and hash in hex), so the cost factor is stored alongside
        the hash and can be raised later without breaking old hashes.
        """
        salt = os.urandom(16)
        dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, self.hash_iterations)
        return f"{HASH_ALGORITHM}${self.hash_iterations}${salt.hex()}${dk.hex()}"

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a plain password against a stored hash string.

        Recomputes the PBKDF2 digest with the stored salt and iteration
        count and compares it using constant-time comparison.  A stored
        value that cannot be parsed never verifies.
        """
        try:
            algorithm, iterations, salt_hex, hash_hex = hashed_password.split("$")
            if algorithm != HASH_ALGORITHM:
                return False
            salt = bytes.fromhex(salt_hex)
            stored_hash = bytes.fromhex(hash_hex)
            rounds = int(iterations)
        except (AttributeError, ValueError):
            return False
        if rounds <= 0:
            return False
        dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, rounds)
        return hmac.compare_digest(dk, stored_hash)

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------
    def _sign(self, message: bytes) -> bytes:
        return hmac.new(self._secret, message, hashlib.sha256).digest()

    def issue_token(self, subject_id: str, email: str, role: Role, ttl: Optional[int] = None) -> str:
        """Create a signed JWT for a user.

        Parameters
        ----------
        subject_id : str
            The user id, stored as ``sub``.
        email : str
            The user's email, stored as ``email``.
        role : Role
            The user's role, stored as ``role``.
        ttl : Optional[int]
            Lifetime in seconds.  Defaults to ``token_ttl_seconds``.

        Returns
        -------
        str
            A token of the form ``header.payload.signature``.
        """
        now = int(self._clock())
        lifetime = self.token_ttl_seconds if ttl is None else int(ttl)
        payload = {
            "sub": subject_id,
            "email": email,
            "role": Role(role).value,
            "iat": now,
            "exp": now + lifetime,
        }
        header_b64 = _b64_url_encode(json.dumps(TOKEN_HEADER, separators=(",", ":")).encode("utf-8"))
        payload_b64 = _b64_url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
        signing_input = f"{header_b64}.{payload_b64}".encode("utf-8")
        signature_b64 = _b64_url_encode(self._sign(signing_input))
        return f"{header_b64}.{payload_b64}.{signature_b64}"

    def verify_token(self, token: str) -> TokenClaims:
        """Verify and decode a JWT.

        Raises
        ------
        MalformedToken
            The token cannot be parsed or lacks required claims.
        InvalidSignature
            The signature (or the declared algorithm) does not match.
        TokenExpired
            The current time is at or past ``exp``.
        """
        parts = token.split(".") if isinstance(token, str) else []
        if len(parts) != 3:
            raise MalformedToken("Invalid token")
        header_b64, payload_b64, signature_b64 = parts
        try:
            header = json.loads(_b64_url_decode(header_b64))
            payload = json.loads(_b64_url_decode(payload_b64))
            signature = _b64_url_decode(signature_b64)
        except (ValueError, UnicodeError):
            raise MalformedToken("Invalid token")
        if not isinstance(header, dict) or not isinstance(payload, dict):
            raise MalformedToken("Invalid token")

        if header.get("alg") != TOKEN_HEADER["alg"]:
            raise InvalidSignature("Invalid token")
        expected_sig = self._sign(f"{header_b64}.{payload_b64}".encode("utf-8"))
        # Constant-time comparison to prevent timing attacks
        if not hmac.compare_digest(expected_sig, signature):
            raise InvalidSignature("Invalid token")

        try:
            claims = TokenClaims(
                sub=str(payload["sub"]),
                email=str(payload["email"]),
                role=Role(payload["role"]),
                iat=int(payload.get("iat", 0)),
                exp=int(payload["exp"]),
            )
        except (KeyError, TypeError, ValueError):
            raise MalformedToken("Invalid token")
        if int(self._clock()) >= claims.exp:
            raise TokenExpired("Token expired")
        return claims


# ---------------------------------------------------------------------------
# Request authentication
# ---------------------------------------------------------------------------

def parse_bearer(authorization: Optional[str]) -> str:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization or not authorization.strip():
        raise Unauthenticated("Access token not provided", code="NO_TOKEN")
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise Unauthenticated("Invalid token format", code="INVALID_TOKEN_FORMAT")
    return parts[1]


def authenticate(authorization: Optional[str], store: Store, credentials: CredentialService) -> User:
    """Resolve an ``Authorization`` header value to the stored user.

    The token is verified first; then the subject is looked up so that
    tokens of deleted users stop working immediately.  The returned
    record carries the role currently stored, not the one in the token.
    """
    token = parse_bearer(authorization)
    try:
        claims = credentials.verify_token(token)
    except Unauthenticated as exc:
        logger.debug("Rejected token: %s", exc.code)
        raise
    user = store.get_user(claims.sub)
    if user is None:
        raise Unauthenticated("User not found", code="USER_NOT_FOUND")
    return user


authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_credentials(request: Request) -> CredentialService:
    return request.app.state.credentials


def get_current_user(
    authorization: Optional[str] = Depends(authorization_header),
    store: Store = Depends(get_store),
    credentials: CredentialService = Depends(get_credentials),
) -> User:
    """Dependency that retrieves the current authenticated user.

    Raises ``Unauthenticated`` (HTTP 401) when the header is missing or
    malformed, the token is invalid or expired, or its subject no longer
    exists.
    """
    return authenticate(authorization, store, credentials)


# ---------------------------------------------------------------------------
# Role-based access control (RBAC) helpers
# ---------------------------------------------------------------------------

def require_roles(*roles: Role) -> Callable[[User], User]:
    """Dependency factory to enforce that the current user has one of the given roles.

    Use this in FastAPI endpoints via ``Depends(require_roles(Role.ADMIN))``.
    Users with any other role get HTTP 403 ``INSUFFICIENT_PERMISSIONS``.
    """

    def _role_dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise Forbidden(
                "Access denied. Insufficient permissions",
                code="INSUFFICIENT_PERMISSIONS",
            )
        return current_user

    return _role_dependency
