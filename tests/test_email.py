"""
Tests for the email gateway without AWS credentials.
"""

import asyncio

import pytest

from lessonhub.integrations.email import EmailService


class SlowEmailService(EmailService):
    async def deliver(self, to, subject, html_body, text_body):
        await asyncio.sleep(1)
        return True


class TestEmailService:
    @pytest.mark.asyncio
    async def test_unconfigured_dev_reports_success(self, settings):
        service = EmailService(settings)
        assert not service.is_configured
        assert await service.send_welcome("a@x.com", "Ann", "student") is True

    @pytest.mark.asyncio
    async def test_unconfigured_production_reports_failure(self, settings):
        service = EmailService(settings.model_copy(update={"environment": "production"}))
        assert await service.send_password_reset("a@x.com", "Ann", "f" * 64) is False

    @pytest.mark.asyncio
    async def test_unknown_template(self, settings):
        assert await EmailService(settings).send("a@x.com", "newsletter") is False

    @pytest.mark.asyncio
    async def test_missing_template_variable(self, settings):
        assert await EmailService(settings).send("a@x.com", "welcome", {"full_name": "Ann"}) is False

    @pytest.mark.asyncio
    async def test_timeout_reports_failure(self, settings):
        service = SlowEmailService(settings.model_copy(update={"email_timeout_seconds": 0.01}))
        assert await service.send_welcome("a@x.com", "Ann", "student") is False

    @pytest.mark.asyncio
    async def test_reset_link_points_at_frontend(self, email):
        await email.send_password_reset("a@x.com", "Ann", "ab" * 32)

        assert "http://frontend.test/reset-password/" + "ab" * 32 in email.sent[0]["text"]
        assert email.last_reset_token() == "ab" * 32

    @pytest.mark.asyncio
    async def test_names_are_escaped_in_html_only(self, email):
        name = '<script>alert("x")</script> & Co'
        await email.send_welcome("a@x.com", name, "student")

        message = email.sent[0]
        assert "<script>" not in message["html"]
        assert "&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt; &amp; Co" in message["html"]
        assert name in message["text"]
