"""
Administrator account management.

Every mutating call takes the caller's AuthContext and runs it through the
policy before touching the store, so the guards hold even if a route
forgets its dependency.
"""

from __future__ import annotations

import logging

from lessonhub.auth.capabilities import Action
from lessonhub.auth.context import AuthContext
from lessonhub.auth.policies import enforce
from lessonhub.auth.workflows import AuthWorkflows
from lessonhub.core.errors import NotFoundError
from lessonhub.core.models import UserPublic, UserRole
from lessonhub.storage.users import UserStore

logger = logging.getLogger(__name__)


class AdminService:
    """User management for the admin console."""

    def __init__(self, users: UserStore, workflows: AuthWorkflows):
        self.users = users
        self.workflows = workflows

    async def create_teacher(
        self,
        ctx: AuthContext,
        full_name: str,
        email: str,
        password: str,
        phone: str,
    ) -> UserPublic:
        """Create a pre-verified teacher. No welcome email is sent."""
        enforce(ctx, Action.USER_CREATE)
        user = await self.workflows.create_account(
            full_name, email, password, phone, UserRole.TEACHER
        )
        logger.info(f"Admin {ctx.user_id} created teacher {user.id}")
        return user.public()

    async def list_users(self, ctx: AuthContext, role: UserRole | None = None) -> list[UserPublic]:
        enforce(ctx, Action.USER_LIST)
        return [u.public() for u in await self.users.list(role)]

    async def delete_user(self, ctx: AuthContext, user_id: str) -> None:
        """
        Hard-delete an account. Irreversible.

        Raises:
            ForbiddenError: Deleting own account, or caller is not admin
            NotFoundError: No such user
        """
        enforce(ctx, Action.USER_DELETE, target_id=user_id)

        if not await self.users.delete(user_id):
            raise NotFoundError("User not found")
        logger.info(f"Admin {ctx.user_id} deleted user {user_id}")

    async def update_role(self, ctx: AuthContext, user_id: str, role: str) -> UserPublic:
        """
        Change another user's role.

        Raises:
            ValidationFailed: Role is not admin/teacher/student (checked first)
            ForbiddenError: Changing own role, or caller is not admin
            NotFoundError: No such user
        """
        enforce(ctx, Action.USER_ROLE_UPDATE, target_id=user_id, new_role=role)

        user = await self.users.update(user_id, role=UserRole(role))
        if user is None:
            raise NotFoundError("User not found")
        logger.info(f"Admin {ctx.user_id} set role of {user_id} to {role}")
        return user.public()
