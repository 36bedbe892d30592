"""
Policies - access control decisions and the route-facing dependencies.

`evaluate()` is the pure decision function. Rules are applied in a fixed
order and the first failing rule wins:

1. Input validation (role-update must name a real role)
2. Authentication
3. Self-action guard (overrides every role, admin included)
4. Role gate
5. Ownership (for owner-scoped content actions, non-admins only)

Routes use `Depends(require(...))` for plain role gates and call
`enforce()` inline when the decision depends on a target id or body value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from lessonhub.auth.capabilities import OWNER_SCOPED, SELF_FORBIDDEN, Action
from lessonhub.auth.context import AuthContext
from lessonhub.core.errors import (
    AuthenticationRequired,
    ForbiddenError,
    LessonHubError,
    TokenError,
    ValidationFailed,
)
from lessonhub.core.models import VALID_ROLES, UserRole

logger = logging.getLogger(__name__)

INVALID_ROLE_MESSAGE = "Invalid role. Must be admin, teacher, or student"


# =============================================================================
# Decision
# =============================================================================


@dataclass(frozen=True)
class Decision:
    """Outcome of a policy evaluation."""

    allowed: bool
    error: type[LessonHubError] | None = None
    reason: str | None = None
    errors: tuple[str, ...] = ()

    @classmethod
    def allow(cls) -> Decision:
        return cls(allowed=True)

    @classmethod
    def deny(
        cls,
        error: type[LessonHubError],
        reason: str | None = None,
        errors: tuple[str, ...] = (),
    ) -> Decision:
        return cls(allowed=False, error=error, reason=reason, errors=errors)

    def raise_for_denial(self) -> None:
        if self.allowed or self.error is None:
            return
        if issubclass(self.error, ValidationFailed):
            raise self.error(self.reason, errors=list(self.errors))
        raise self.error(self.reason)


def evaluate(
    ctx: AuthContext,
    action: Action,
    *,
    target_id: str | None = None,
    owner_id: str | None = None,
    new_role: str | UserRole | None = None,
) -> Decision:
    """
    Decide whether `ctx` may perform `action`.

    Args:
        ctx: The caller
        action: What they want to do
        target_id: Account being acted on (user management actions)
        owner_id: Creator of the resource (content actions)
        new_role: Requested role (role updates only)
    """
    if action == Action.USER_ROLE_UPDATE:
        role_value = new_role.value if isinstance(new_role, UserRole) else new_role
        if role_value not in VALID_ROLES:
            return Decision.deny(
                ValidationFailed, INVALID_ROLE_MESSAGE, errors=(INVALID_ROLE_MESSAGE,)
            )

    if ctx.is_anonymous:
        return Decision.deny(AuthenticationRequired)

    if action in SELF_FORBIDDEN and ctx.is_self(target_id):
        return Decision.deny(ForbiddenError, SELF_FORBIDDEN[action])

    if not ctx.can(action):
        role = ctx.role.value if ctx.role else "unknown"
        return Decision.deny(
            ForbiddenError,
            f"User role '{role}' is not authorized to access this route",
        )

    if action in OWNER_SCOPED and not ctx.is_admin and not ctx.is_self(owner_id):
        return Decision.deny(ForbiddenError, "Not authorized to modify this resource")

    return Decision.allow()


def enforce(ctx: AuthContext, action: Action, **kwargs) -> AuthContext:
    """Evaluate and raise on denial. Returns ctx for chaining."""
    decision = evaluate(ctx, action, **kwargs)
    if not decision.allowed:
        logger.info(
            f"Denied {action.value} for {ctx.user_id or 'anonymous'}: {decision.reason}"
        )
    decision.raise_for_denial()
    return ctx


def authorize_content(ctx: AuthContext, action: Action, owner_id: str | None = None) -> AuthContext:
    """Gate for course-content handlers (create/read/update/delete)."""
    if not action.value.startswith("content."):
        raise ValueError(f"Not a content action: {action}")
    return enforce(ctx, action, owner_id=owner_id)


# =============================================================================
# Bearer Token Handling
# =============================================================================


# Doesn't fail if no token; we raise our own 401 with the standard envelope
optional_bearer = HTTPBearer(auto_error=False)


async def get_auth_context(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(optional_bearer),
) -> AuthContext:
    """
    Resolve the caller from the bearer token.

    Raises AuthenticationRequired when the token is missing, invalid,
    expired, or belongs to a user that no longer exists.
    """
    if not credentials or not credentials.credentials:
        raise AuthenticationRequired()

    tokens = request.app.state.tokens
    users = request.app.state.users

    try:
        user_id = tokens.verify(credentials.credentials)
    except TokenError as e:
        logger.info(f"Rejected bearer token: {type(e).__name__}")
        raise

    user = await users.get_by_id(user_id)
    if user is None:
        raise AuthenticationRequired("The user belonging to this token no longer exists")

    return AuthContext.for_user(user)


# =============================================================================
# Main Interface - the require() function
# =============================================================================


def require(*actions: Action) -> Callable:
    """
    Require an authenticated caller whose role grants every listed action.

    Usage:
        @router.get("/users")
        async def list_users(ctx: AuthContext = Depends(require(Action.USER_LIST))):
            ...
    """

    async def dependency(ctx: AuthContext = Depends(get_auth_context)) -> AuthContext:
        for action in actions:
            enforce(ctx, action)
        return ctx

    return dependency


def require_auth() -> Callable:
    """Just require authentication, no specific action."""
    return require()
