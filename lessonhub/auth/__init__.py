"""
Authentication and authorization.

Design principles:
1. Stateless session tokens (signature + expiry, nothing stored)
2. One fixed, ordered policy consulted by every protected operation
3. Three roles, one per user: admin, teacher, student
4. Self-action guards beat every role, admin included

Workflows, admin operations and routes import storage and are imported
from their own modules.
"""

from lessonhub.auth.capabilities import Action, get_actions, has_action
from lessonhub.auth.context import AuthContext
from lessonhub.auth.jwt import TokenService, hash_password, verify_password
from lessonhub.auth.policies import (
    Decision,
    authorize_content,
    enforce,
    evaluate,
    get_auth_context,
    require,
    require_auth,
)

__all__ = [
    # Main interface
    "require",
    "require_auth",
    "evaluate",
    "enforce",
    "authorize_content",
    "get_auth_context",
    "AuthContext",
    # Types
    "Action",
    "Decision",
    "get_actions",
    "has_action",
    # Tokens / passwords
    "TokenService",
    "hash_password",
    "verify_password",
]
