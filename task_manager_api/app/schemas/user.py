"""
Pydantic models for user data.

Defines the request bodies for registration, login, profile updates and
password changes, and ``UserRead``, the only shape in which a user ever
leaves the API.  ``UserRead`` has no password field, and
``UserRead.from_record`` is the single place where a stored ``User`` is
turned into a response, for both REST and GraphQL.
"""

from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, Field, model_validator
from pydantic.networks import validate_email

from ..core.domain import Role, User
from .common import ApiModel, InputModel


def check_email(value: str) -> str:
    # Stored exactly as given; uniqueness is case-sensitive.
    if "<" in value or ">" in value:
        raise ValueError("must be a plain email address")
    validate_email(value)
    return value


EmailAddress = Annotated[str, AfterValidator(check_email)]


class UserCreate(InputModel):
    """Schema for registering a user."""

    name: str = Field(..., min_length=2, max_length=100, examples=["Jane Doe"])
    email: EmailAddress = Field(..., examples=["jane@example.com"])
    password: str = Field(..., min_length=6, examples=["strongpassword"])
    role: Role = Field(Role.USER, examples=["user"])


class LoginRequest(InputModel):
    email: EmailAddress = Field(..., examples=["user@test.com"])
    password: str = Field(..., min_length=1, examples=["user123"])


class UserUpdate(InputModel):
    """Schema for updating a user.

    All fields are optional; only provided fields will be updated.
    Changing ``role`` additionally requires an admin.
    """

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailAddress] = None
    role: Optional[Role] = None


class ChangePasswordRequest(InputModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.new_password != self.confirm_password:
            raise ValueError("confirmPassword must match newPassword")
        return self


class UserRead(ApiModel):
    """Schema for reading a user from the API."""

    id: str
    name: str
    email: str
    role: Role
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, user: User) -> "UserRead":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class UserData(ApiModel):
    user: UserRead


class UserList(ApiModel):
    users: List[UserRead]
    count: int
