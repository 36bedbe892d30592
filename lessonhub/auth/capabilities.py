"""
Roles and actions.

This defines WHAT each role can do, not HOW we check it.
The actual checking happens in policies.py.
"""

from enum import Enum

from lessonhub.core.models import UserRole


class Action(str, Enum):
    """
    Fine-grained actions.

    These are the permissions checked by policies. A caller's actions
    are derived from their single role.
    """

    # Self-service
    PROFILE_READ = "profile.read"
    PROFILE_UPDATE = "profile.update"

    # Course content
    CONTENT_READ = "content.read"
    CONTENT_CREATE = "content.create"
    CONTENT_UPDATE = "content.update"
    CONTENT_DELETE = "content.delete"

    # Administration
    USER_CREATE = "user.create"
    USER_LIST = "user.list"
    USER_DELETE = "user.delete"
    USER_ROLE_UPDATE = "user.role_update"


# Never allowed when the target account is the caller's own, whatever the role
SELF_FORBIDDEN: dict[Action, str] = {
    Action.USER_DELETE: "You cannot delete your own account",
    Action.USER_ROLE_UPDATE: "You cannot change your own role",
}

# Non-admins need to own the resource for these
OWNER_SCOPED: frozenset[Action] = frozenset({
    Action.CONTENT_UPDATE,
    Action.CONTENT_DELETE,
})


# =============================================================================
# Capability Mappings
# =============================================================================


_SELF_SERVICE = {Action.PROFILE_READ, Action.PROFILE_UPDATE}

ROLE_ACTIONS: dict[UserRole, frozenset[Action]] = {
    UserRole.ADMIN: frozenset(Action),
    UserRole.TEACHER: frozenset({
        *_SELF_SERVICE,
        Action.CONTENT_READ,
        Action.CONTENT_CREATE,
        Action.CONTENT_UPDATE,
        Action.CONTENT_DELETE,
    }),
    UserRole.STUDENT: frozenset({
        *_SELF_SERVICE,
        Action.CONTENT_READ,
    }),
}


def get_actions(role: UserRole | None) -> frozenset[Action]:
    """All actions a role may attempt (before self/ownership guards)."""
    if role is None:
        return frozenset()
    return ROLE_ACTIONS.get(role, frozenset())


def has_action(role: UserRole | None, action: Action | str) -> bool:
    if isinstance(action, str):
        try:
            action = Action(action)
        except ValueError:
            return False
    return action in get_actions(role)
