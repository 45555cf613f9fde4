"""
Domain records for users and tasks.

These are the shapes held by the in-memory ``Store``.  They are plain
dataclasses rather than Pydantic models: validation happens at the API
edge, and the store only ever receives data that already passed it.
``User`` carries the password hash, so it must never be returned to a
client directly; see ``schemas.user.UserRead.from_record``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class User:
    id: str
    name: str
    email: str
    password: str
    role: Role = Role.USER
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)


@dataclass
class Task:
    id: str
    title: str
    user_id: str
    description: Optional[str] = None
    completed: bool = False
    priority: Priority = Priority.MEDIUM
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
