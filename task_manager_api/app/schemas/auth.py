"""Response bodies of the authentication endpoints."""

from .common import ApiModel
from .user import UserRead


class AuthData(ApiModel):
    """Returned by register and login: the public user plus a fresh token."""

    user: UserRead
    token: str
    expires_in: str


class TokenData(ApiModel):
    token: str
    expires_in: str
