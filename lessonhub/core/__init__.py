"""
Core module - identity model, error taxonomy, shared utilities.
"""

from lessonhub.core.errors import (
    AuthenticationRequired,
    DeliveryError,
    DuplicateEmailError,
    ForbiddenError,
    InternalError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    LessonHubError,
    NotFoundError,
    NotVerifiedError,
    TokenError,
    TokenExpiredError,
    TokenInvalidError,
    ValidationFailed,
)
from lessonhub.core.models import VALID_ROLES, UserInDB, UserPublic, UserRole
from lessonhub.core.utils import generate_id, normalize_email, utc_now

__all__ = [
    # Models
    "UserInDB",
    "UserPublic",
    "UserRole",
    "VALID_ROLES",
    # Errors
    "LessonHubError",
    "ValidationFailed",
    "DuplicateEmailError",
    "InvalidResetTokenError",
    "AuthenticationRequired",
    "TokenError",
    "TokenExpiredError",
    "TokenInvalidError",
    "InvalidCredentialsError",
    "NotVerifiedError",
    "ForbiddenError",
    "NotFoundError",
    "DeliveryError",
    "InternalError",
    # Utils
    "generate_id",
    "normalize_email",
    "utc_now",
]
