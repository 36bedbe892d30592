"""
Credential store adapter.

Maps UserInDB records onto MetadataStorage. Lookups, creation, field
updates and password comparison live here; business rules do not.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from lessonhub.auth.jwt import verify_password
from lessonhub.core.errors import DuplicateEmailError
from lessonhub.core.models import UserInDB, UserRole
from lessonhub.core.utils import utc_now
from lessonhub.storage.base import Collections, DuplicateKeyError, MetadataStorage

logger = logging.getLogger(__name__)


class UserStore:
    """Persistent user records keyed by id and (unique) email."""

    collection = Collections.USERS
    page_size = 500

    def __init__(self, metadata: MetadataStorage):
        self.metadata = metadata

    @staticmethod
    def _to_user(doc: dict[str, Any] | None) -> UserInDB | None:
        return UserInDB.model_validate(doc) if doc else None

    async def _first(self, filters: dict[str, Any]) -> UserInDB | None:
        docs = await self.metadata.query(self.collection, filters, limit=1)
        return self._to_user(docs[0]) if docs else None

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_by_id(self, user_id: str) -> UserInDB | None:
        return self._to_user(await self.metadata.get(self.collection, user_id))

    async def get_by_email(self, email: str) -> UserInDB | None:
        """Exact match; callers normalise first."""
        return await self._first({"email": email})

    async def get_by_reset_token(self, token: str) -> UserInDB | None:
        return await self._first({"reset_password_token": token})

    async def list(self, role: UserRole | None = None) -> list[UserInDB]:
        """Every user, optionally of one role, oldest first."""
        filters = {"role": role} if role else None
        docs: list[dict[str, Any]] = []
        while True:
            page = await self.metadata.query(
                self.collection, filters, limit=self.page_size, offset=len(docs)
            )
            docs.extend(page)
            if len(page) < self.page_size:
                break
        users = [UserInDB.model_validate(d) for d in docs]
        return sorted(users, key=lambda u: u.created_at)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(self, user: UserInDB) -> UserInDB:
        """
        Insert a new user.

        Raises DuplicateEmailError if the email is taken; the uniqueness
        check is done by the storage backend in the same step as the write.
        """
        try:
            await self.metadata.insert(
                self.collection,
                user.id,
                user.model_dump(),
                unique=("email",),
            )
        except DuplicateKeyError as e:
            if e.field == "email":
                raise DuplicateEmailError() from e
            raise
        return user

    async def update(self, user_id: str, **fields: Any) -> UserInDB | None:
        fields["updated_at"] = utc_now()
        if not await self.metadata.update(self.collection, user_id, fields):
            return None
        return await self.get_by_id(user_id)

    async def delete(self, user_id: str) -> bool:
        return await self.metadata.delete(self.collection, user_id)

    # -------------------------------------------------------------------------
    # Reset tokens
    # -------------------------------------------------------------------------

    async def set_reset_token(self, user_id: str, token: str, expires: datetime) -> bool:
        return await self.metadata.update(
            self.collection,
            user_id,
            {
                "reset_password_token": token,
                "reset_password_expire": expires,
                "updated_at": utc_now(),
            },
        )

    async def clear_reset_token(self, user_id: str, token: str | None = None) -> bool:
        """
        Clear both reset fields.

        With `token`, only clears if that token is still the stored one, so
        a newer request's token is left alone.
        """
        expected = {"reset_password_token": token} if token else {}
        return await self.metadata.update_if(
            self.collection,
            user_id,
            expected,
            {
                "reset_password_token": None,
                "reset_password_expire": None,
                "updated_at": utc_now(),
            },
        )

    async def consume_reset_token(
        self,
        token: str,
        password_hash: str,
        now: datetime | None = None,
    ) -> UserInDB | None:
        """
        Swap in a new password hash if `token` is live, clearing it.

        Returns the updated user, or None if the token is unknown, expired,
        or was consumed by a concurrent request first.
        """
        now = now or utc_now()
        user = await self.get_by_reset_token(token)
        if user is None:
            return None
        if user.reset_password_expire is None or user.reset_password_expire <= now:
            return None

        swapped = await self.metadata.update_if(
            self.collection,
            user.id,
            {"reset_password_token": token},
            {
                "password_hash": password_hash,
                "reset_password_token": None,
                "reset_password_expire": None,
                "updated_at": now,
            },
        )
        if not swapped:
            logger.info(f"Reset token for {user.id} consumed concurrently")
            return None
        return await self.get_by_id(user.id)

    # -------------------------------------------------------------------------
    # Passwords
    # -------------------------------------------------------------------------

    @staticmethod
    def check_password(user: UserInDB, password: str) -> bool:
        """Constant-time comparison against the stored hash."""
        return verify_password(password, user.password_hash)
