"""
Shared fixtures.

Everything runs against the in-memory store and a fake email gateway that
records what would have been sent.
"""

import re

import pytest
from fastapi.testclient import TestClient

from lessonhub.api.app import create_app
from lessonhub.auth.jwt import TokenService
from lessonhub.auth.workflows import AuthWorkflows
from lessonhub.config import Settings
from lessonhub.core.models import UserRole
from lessonhub.integrations.email import EmailService
from lessonhub.storage import UserStore, create_local_storage

PASSWORD = "secret123"


class FakeEmailService(EmailService):
    """Records rendered messages instead of calling SES."""

    def __init__(self, settings: Settings):
        super().__init__(settings)
        self.sent: list[dict] = []
        self.fail = False

    async def deliver(self, to: str, subject: str, html_body: str, text_body: str) -> bool:
        if self.fail:
            return False
        self.sent.append({"to": to, "subject": subject, "html": html_body, "text": text_body})
        return True

    def last_reset_token(self) -> str:
        for message in reversed(self.sent):
            match = re.search(r"/reset-password/([0-9a-f]+)", message["text"])
            if match:
                return match.group(1)
        raise AssertionError("no reset email sent")


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        environment="test",
        jwt_secret_key="test-secret-key-with-enough-length-for-hs256",
        cors_origins="http://frontend.test",
    )


@pytest.fixture
def storage():
    return create_local_storage()


@pytest.fixture
def users(storage):
    return UserStore(storage.metadata)


@pytest.fixture
def tokens(settings):
    return TokenService(settings)


@pytest.fixture
def email(settings):
    return FakeEmailService(settings)


@pytest.fixture
def workflows(users, tokens, email, settings):
    return AuthWorkflows(users, tokens, email, settings)


@pytest.fixture
def app(settings, storage, email):
    return create_app(settings=settings, storage=storage, email=email)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(app, client):
    """Create a verified user straight through the workflows, on the app's loop."""

    def _make(email: str, role: UserRole = UserRole.STUDENT, full_name: str = "Test User"):
        return client.portal.call(
            app.state.workflows.create_account, full_name, email, PASSWORD, "555-0100", role
        )

    return _make


@pytest.fixture
def auth_header(app):
    """Bearer header for a user, bypassing login."""

    def _header(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {app.state.tokens.issue(user.id)}"}

    return _header
