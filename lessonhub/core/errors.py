"""
Error taxonomy.

Every failure a caller can observe is one of these. Each carries the HTTP
status it maps to and the message the caller sees; the API layer turns
them into the standard error envelope.
"""

from __future__ import annotations


class LessonHubError(Exception):
    """Base exception for all application errors."""

    status_code: int = 500
    message: str = "Something went wrong"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


# =============================================================================
# 400 - bad input
# =============================================================================


class ValidationFailed(LessonHubError):
    """Missing or malformed input fields."""

    status_code = 400
    message = "Validation failed"

    def __init__(self, message: str | None = None, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


class DuplicateEmailError(LessonHubError):
    """Email already registered."""

    status_code = 400
    message = "User with this email already exists"


class InvalidResetTokenError(LessonHubError):
    """Reset secret is unknown, expired, or already used."""

    status_code = 400
    message = "Password reset token is invalid or has expired"


# =============================================================================
# 401 - who are you
# =============================================================================


class AuthenticationRequired(LessonHubError):
    """No usable bearer credential on the request."""

    status_code = 401
    message = "Not authorized to access this route"


class TokenError(AuthenticationRequired):
    """Base exception for session token errors."""


class TokenExpiredError(TokenError):
    """Token has expired."""


class TokenInvalidError(TokenError):
    """Token is invalid, forged, or malformed."""


class InvalidCredentialsError(LessonHubError):
    """Wrong email or password. The two causes are never told apart."""

    status_code = 401
    message = "Invalid email or password"


class NotVerifiedError(LessonHubError):
    status_code = 401
    message = "Please verify your email before logging in"


# =============================================================================
# 403 / 404
# =============================================================================


class ForbiddenError(LessonHubError):
    """Authorization denied: self-action, insufficient role, or not the owner."""

    status_code = 403
    message = "You do not have permission to perform this action"


class NotFoundError(LessonHubError):
    status_code = 404
    message = "Resource not found"


# =============================================================================
# 500
# =============================================================================


class DeliveryError(LessonHubError):
    """Outbound notification could not be delivered."""

    status_code = 500
    message = "Failed to send email. Please try again."


class InternalError(LessonHubError):
    status_code = 500
    message = "Internal server error"
