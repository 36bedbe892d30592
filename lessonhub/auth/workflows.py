"""
Auth workflows - register, login, password reset, current user.

Business rules and failure policy live here:

- Creation is never rolled back because a notification failed. A failed
  welcome email only changes the success message.
- The reset request is the exception: the email *is* the operation, so a
  delivery failure clears the stored token and is reported to the caller.
- Login and reset request never reveal whether an account exists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache

from lessonhub.auth.jwt import TokenService, hash_password, verify_password
from lessonhub.config import Settings, get_settings
from lessonhub.core.errors import (
    DeliveryError,
    ForbiddenError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    NotFoundError,
    NotVerifiedError,
    ValidationFailed,
)
from lessonhub.core.models import UserInDB, UserPublic, UserRole
from lessonhub.core.utils import normalize_email
from lessonhub.integrations.email import EmailService
from lessonhub.storage.users import UserStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

REGISTERED_MESSAGE = "Registration successful! Welcome to LessonHub!"
REGISTERED_NO_EMAIL_MESSAGE = (
    "Registration successful! However, welcome email could not be sent."
)
RESET_REQUESTED_MESSAGE = (
    "If an account exists with this email, you will receive password reset instructions."
)


@lru_cache(maxsize=1)
def _decoy_hash() -> str:
    """Hash compared against when the email is unknown, so both paths cost the same."""
    return hash_password("lessonhub-decoy-password")


# =============================================================================
# Results
# =============================================================================


@dataclass
class RegistrationResult:
    user: UserPublic
    welcome_sent: bool

    @property
    def message(self) -> str:
        return REGISTERED_MESSAGE if self.welcome_sent else REGISTERED_NO_EMAIL_MESSAGE


@dataclass
class LoginResult:
    user: UserPublic
    token: str


# =============================================================================
# Workflows
# =============================================================================


class AuthWorkflows:
    """Orchestrates the credential store, token service and email gateway."""

    def __init__(
        self,
        users: UserStore,
        tokens: TokenService,
        email: EmailService,
        settings: Settings | None = None,
    ):
        self.users = users
        self.tokens = tokens
        self.email = email
        self.settings = settings or get_settings()

    # -------------------------------------------------------------------------
    # Account creation
    # -------------------------------------------------------------------------

    async def create_account(
        self,
        full_name: str,
        email: str,
        password: str,
        phone: str,
        role: UserRole,
    ) -> UserInDB:
        """Create a verified account. Shared by registration and admin creation."""
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(
                errors=[f"Password must be at least {MIN_PASSWORD_LENGTH} characters"]
            )

        user = UserInDB(
            email=normalize_email(email),
            full_name=full_name.strip(),
            phone=phone.strip(),
            password_hash=hash_password(password),
            role=role,
            is_verified=True,
        )
        await self.users.create(user)
        logger.info(f"Created {role.value} account {user.id}")
        return user

    async def register(
        self,
        full_name: str,
        email: str,
        password: str,
        phone: str,
        role: UserRole | None = None,
    ) -> RegistrationResult:
        """
        Public self-registration.

        Role defaults to student. A supplied role is honoured only while
        `allow_role_on_register` is on.

        Raises:
            DuplicateEmailError: Email (case-insensitive) already registered
            ForbiddenError: Role supplied but self-assignment is disabled
        """
        if role is not None and not self.settings.allow_role_on_register:
            raise ForbiddenError("Role cannot be chosen at registration")

        user = await self.create_account(
            full_name, email, password, phone, role or UserRole.STUDENT
        )
        welcome_sent = await self._send_welcome(user)
        return RegistrationResult(user=user.public(), welcome_sent=welcome_sent)

    async def _send_welcome(self, user: UserInDB) -> bool:
        try:
            sent = await self.email.send_welcome(user.email, user.full_name, user.role.value)
        except Exception:
            logger.exception(f"Welcome email to {user.id} raised")
            return False
        if not sent:
            logger.warning(f"Welcome email to {user.id} could not be sent")
        return sent

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    async def login(self, email: str, password: str) -> LoginResult:
        """
        Check credentials and issue a session token.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password (same message)
            NotVerifiedError: Account not verified
        """
        user = await self.users.get_by_email(normalize_email(email))

        if user is None:
            verify_password(password, _decoy_hash())
            logger.warning("Login rejected: unknown email")
            raise InvalidCredentialsError()

        if not self.users.check_password(user, password):
            logger.warning(f"Login rejected: wrong password for {user.id}")
            raise InvalidCredentialsError()

        if not user.is_verified:
            logger.warning(f"Login rejected: {user.id} not verified")
            raise NotVerifiedError()

        token = self.tokens.issue(user.id)
        logger.info(f"User {user.id} logged in")
        return LoginResult(user=user.public(), token=token)

    # -------------------------------------------------------------------------
    # Password reset
    # -------------------------------------------------------------------------

    async def request_password_reset(self, email: str) -> str:
        """
        Issue a reset secret and email it.

        Returns the generic acknowledgement whether or not the account
        exists.

        Raises:
            DeliveryError: Account exists but the email could not be sent.
                The stored secret is cleared first so it can never be used.
        """
        user = await self.users.get_by_email(normalize_email(email))
        if user is None:
            logger.info("Password reset requested for unknown email")
            return RESET_REQUESTED_MESSAGE

        secret = self.tokens.generate_reset_secret()
        await self.users.set_reset_token(user.id, secret, self.tokens.reset_expiry())
        logger.info(f"Reset token issued for {user.id}")

        try:
            sent = await self.email.send_password_reset(user.email, user.full_name, secret)
        except Exception:
            logger.exception(f"Reset email to {user.id} raised")
            sent = False

        if not sent:
            await self.users.clear_reset_token(user.id, token=secret)
            logger.warning(f"Reset email to {user.id} failed; token cleared")
            raise DeliveryError("Failed to send password reset email. Please try again.")

        return RESET_REQUESTED_MESSAGE

    async def reset_password(self, token: str, new_password: str) -> UserPublic:
        """
        Consume a reset secret and set a new password.

        Raises:
            ValidationFailed: New password too short
            InvalidResetTokenError: Unknown, expired, or already used
        """
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationFailed(
                errors=[f"Password must be at least {MIN_PASSWORD_LENGTH} characters"]
            )

        user = await self.users.consume_reset_token(token, hash_password(new_password))
        if user is None:
            raise InvalidResetTokenError()

        logger.info(f"Password reset completed for {user.id}")
        return user.public()

    # -------------------------------------------------------------------------
    # Current user
    # -------------------------------------------------------------------------

    async def get_current_user(self, user_id: str) -> UserPublic:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user.public()

    async def update_profile(
        self,
        user_id: str,
        full_name: str | None = None,
        phone: str | None = None,
    ) -> UserPublic:
        """Self-service edit of name and phone. Nothing else is editable here."""
        fields = {}
        if full_name is not None:
            fields["full_name"] = full_name.strip()
        if phone is not None:
            fields["phone"] = phone.strip()

        if not fields:
            return await self.get_current_user(user_id)

        user = await self.users.update(user_id, **fields)
        if user is None:
            raise NotFoundError("User not found")
        return user.public()
