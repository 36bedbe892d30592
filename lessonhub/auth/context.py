"""
Auth context - the "who is calling" for each request.

This is the lightweight object passed to route handlers. It is built from
the stored user record (not from token claims), so a role change takes
effect on the caller's next request.
"""

from __future__ import annotations

from dataclasses import dataclass

from lessonhub.auth.capabilities import Action, get_actions
from lessonhub.core.models import UserInDB, UserRole


@dataclass(frozen=True)
class AuthContext:
    """
    Authorization context for a request.

    Usage in routes:
        async def my_route(ctx: AuthContext = Depends(require(Action.USER_LIST))):
            print(f"User {ctx.user_id} ({ctx.role.value}) listing users")
    """

    user_id: str | None = None
    email: str | None = None
    role: UserRole | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_anonymous(self) -> bool:
        return self.user_id is None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def actions(self) -> frozenset[Action]:
        return get_actions(self.role)

    def can(self, action: Action | str) -> bool:
        """Role-level check only; self and ownership guards live in policies."""
        if isinstance(action, str):
            try:
                action = Action(action)
            except ValueError:
                return False
        return action in self.actions

    def is_self(self, user_id: str | None) -> bool:
        return self.user_id is not None and self.user_id == user_id

    @classmethod
    def anonymous(cls) -> AuthContext:
        return cls()

    @classmethod
    def for_user(cls, user: UserInDB) -> AuthContext:
        return cls(user_id=user.id, email=user.email, role=user.role)
