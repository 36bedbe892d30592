"""
Identity data model.

UserInDB is the stored record; UserPublic is the only shape that ever
leaves the service.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from lessonhub.core.utils import generate_id, utc_now


class UserRole(str, Enum):
    """Platform-wide privilege tier. Every identity has exactly one."""

    ADMIN = "admin"      # Manages accounts and roles
    TEACHER = "teacher"  # Uploads course content
    STUDENT = "student"  # Consumes course content


VALID_ROLES: frozenset[str] = frozenset(r.value for r in UserRole)


class UserInDB(BaseModel):
    """User stored in the credential store."""

    id: str = Field(default_factory=lambda: generate_id("user"))
    email: str
    full_name: str
    phone: str
    password_hash: str
    role: UserRole = UserRole.STUDENT
    is_verified: bool = False

    # Both set or both None
    reset_password_token: str | None = None
    reset_password_expire: datetime | None = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def public(self) -> UserPublic:
        return UserPublic(
            id=self.id,
            email=self.email,
            full_name=self.full_name,
            phone=self.phone,
            role=self.role,
            is_verified=self.is_verified,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class UserPublic(BaseModel):
    """User data returned to clients (no password or reset fields)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str
    full_name: str
    phone: str
    role: UserRole
    is_verified: bool
    created_at: datetime
    updated_at: datetime

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
