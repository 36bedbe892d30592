# =============================================================================
# Session Tokens, Reset Secrets, Password Hashing
# =============================================================================
#
# Session tokens are stateless HS256 JWTs: the identity id in `sub` and an
# `exp` claim. Nothing is stored server-side; validity is signature + expiry.
#
# Reset secrets are random hex strings stored on the user record and checked
# against the store, never against a signature.
#
# =============================================================================

from __future__ import annotations

import hashlib
import logging
import secrets
from datetime import datetime, timedelta, timezone

import jwt
from pydantic import BaseModel

from lessonhub.config import Settings, get_settings
from lessonhub.core.errors import TokenExpiredError, TokenInvalidError
from lessonhub.core.utils import generate_id, utc_now

logger = logging.getLogger(__name__)

RESET_SECRET_BYTES = 32


# =============================================================================
# Models
# =============================================================================


class TokenPayload(BaseModel):
    """Validated session token claims."""
    sub: str  # user_id
    exp: datetime
    iat: datetime
    jti: str


# =============================================================================
# Password Hashing
# =============================================================================


def hash_password(password: str) -> str:
    """
    Hash a password using PBKDF2-SHA256.

    Returns: salt:hash format string
    """
    salt = secrets.token_hex(32)
    hash_bytes = hashlib.pbkdf2_hmac(
        'sha256',
        password.encode('utf-8'),
        salt.encode('utf-8'),
        iterations=100_000
    )
    return f"{salt}:{hash_bytes.hex()}"


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        salt, stored_hash = password_hash.split(':')
        hash_bytes = hashlib.pbkdf2_hmac(
            'sha256',
            password.encode('utf-8'),
            salt.encode('utf-8'),
            iterations=100_000
        )
        return secrets.compare_digest(hash_bytes.hex(), stored_hash)
    except (ValueError, AttributeError):
        return False


# =============================================================================
# Token Service
# =============================================================================


class TokenService:
    """
    Issues and verifies session tokens, generates reset secrets.

    Holds its settings by reference so tests can swap the secret or
    lifetime without touching process-wide config.
    """

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    @property
    def lifetime(self) -> timedelta:
        return timedelta(days=self.settings.jwt_expire_days)

    @property
    def reset_window(self) -> timedelta:
        return timedelta(minutes=self.settings.reset_token_expire_minutes)

    def issue(self, user_id: str, now: datetime | None = None) -> str:
        """Create a signed session token for `user_id`."""
        now = now or utc_now()
        payload = {
            "sub": user_id,
            "iat": now,
            "exp": now + self.lifetime,
            "jti": generate_id("tok"),
        }
        return jwt.encode(
            payload,
            self.settings.jwt_secret_key,
            algorithm=self.settings.jwt_algorithm,
        )

    def decode(self, token: str) -> TokenPayload:
        """
        Decode and validate a session token.

        Raises:
            TokenExpiredError: Token has expired
            TokenInvalidError: Bad signature, malformed, or missing claims
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret_key,
                algorithms=[self.settings.jwt_algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Session expired, please log in again")
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected session token: {e}")
            raise TokenInvalidError()

        if not isinstance(payload.get("sub"), str) or not payload["sub"]:
            raise TokenInvalidError()

        return TokenPayload(
            sub=payload["sub"],
            exp=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            iat=datetime.fromtimestamp(payload.get("iat", payload["exp"]), tz=timezone.utc),
            jti=payload.get("jti", ""),
        )

    def verify(self, token: str) -> str:
        """Return the user id a valid token binds to."""
        return self.decode(token).sub

    @staticmethod
    def generate_reset_secret() -> str:
        """64 hex chars from 32 random bytes."""
        return secrets.token_hex(RESET_SECRET_BYTES)

    def reset_expiry(self, now: datetime | None = None) -> datetime:
        return (now or utc_now()) + self.reset_window
