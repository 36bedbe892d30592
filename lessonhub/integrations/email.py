# =============================================================================
# Email Delivery Integration (AWS SES)
# =============================================================================
#
# Setup:
#   1. Verify your sending email in AWS SES console
#   2. Set env vars:
#      - AWS_SES_FROM_EMAIL=noreply@yourdomain.com
#      - AWS_ACCESS_KEY_ID=...
#      - AWS_SECRET_ACCESS_KEY=...
#      - AWS_REGION=us-east-1
#      - EMAIL_TIMEOUT_SECONDS=10
#
# Without AWS credentials, development builds log the message instead of
# sending it and report success; production builds report failure.
#
# =============================================================================

from __future__ import annotations

import asyncio
import html
import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from lessonhub.config import Settings, get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Email Templates
# =============================================================================

TEMPLATES = {
    "welcome": {
        "subject": "Welcome to LessonHub!",
        "html": """
        <html>
        <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h1 style="color: #333;">Welcome to LessonHub, {full_name}!</h1>
            <p>Your {role} account is ready. You can sign in right away.</p>
            <p style="text-align: center; margin: 30px 0;">
                <a href="{login_url}" style="background: #4A90A4; color: white; padding: 12px 30px; text-decoration: none; border-radius: 6px; display: inline-block;">
                    Sign In
                </a>
            </p>
            <p style="color: #666; font-size: 14px;">Or copy this link: {login_url}</p>
        </body>
        </html>
        """,
        "text": """
Welcome to LessonHub, {full_name}!

Your {role} account is ready. Sign in at:
{login_url}
        """,
    },

    "password_reset": {
        "subject": "Password Reset Request - LessonHub",
        "html": """
        <html>
        <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h1 style="color: #333;">Reset Your Password</h1>
            <p>Hi {full_name}, we received a request to reset your password. Click the button below to choose a new one:</p>
            <p style="text-align: center; margin: 30px 0;">
                <a href="{reset_url}" style="background: #4A90A4; color: white; padding: 12px 30px; text-decoration: none; border-radius: 6px; display: inline-block;">
                    Reset Password
                </a>
            </p>
            <p style="color: #666; font-size: 14px;">Or copy this link: {reset_url}</p>
            <p style="color: #666; font-size: 14px;">This link expires in {expires_minutes} minutes.</p>
            <p style="color: #666; font-size: 14px;">If you didn't request this, you can safely ignore this email.</p>
        </body>
        </html>
        """,
        "text": """
Reset Your Password

Hi {full_name}, we received a request to reset your password. Visit this link to choose a new one:
{reset_url}

This link expires in {expires_minutes} minutes.

If you didn't request this, you can safely ignore this email.
        """,
    },
}


# =============================================================================
# Email Service
# =============================================================================

class EmailService:
    """Send templated transactional email via AWS SES."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self._client = None

    @property
    def client(self):
        """Lazy-load SES client."""
        if self._client is None and self.settings.use_aws:
            timeout = self.settings.email_timeout_seconds
            self._client = boto3.client(
                'ses',
                region_name=self.settings.aws_region,
                aws_access_key_id=self.settings.aws_access_key_id,
                aws_secret_access_key=self.settings.aws_secret_access_key,
                config=Config(
                    connect_timeout=timeout,
                    read_timeout=timeout,
                    retries={"max_attempts": 1},
                ),
            )
        return self._client

    @property
    def is_configured(self) -> bool:
        """Check if email sending is properly configured."""
        return self.settings.use_aws and bool(self.settings.aws_ses_from_email)

    async def send(
        self,
        to: str,
        template: str,
        data: dict[str, Any] | None = None,
        subject_override: str | None = None,
    ) -> bool:
        """
        Send an email using a template.

        Args:
            to: Recipient email address
            template: Template name ("welcome", "password_reset")
            data: Template variables to substitute
            subject_override: Override the template's subject

        Returns:
            True if delivered, False otherwise. Never raises.
        """
        if template not in TEMPLATES:
            logger.error(f"Unknown email template: {template}")
            return False

        tpl = TEMPLATES[template]
        data = data or {}

        try:
            subject = subject_override or tpl["subject"]
            html_body = tpl["html"].format(
                **{key: html.escape(str(value)) for key, value in data.items()}
            )
            text_body = tpl["text"].format(**data)
        except KeyError as e:
            logger.error(f"Missing template variable for '{template}': {e}")
            return False

        try:
            return await asyncio.wait_for(
                self.deliver(to, subject, html_body, text_body),
                timeout=self.settings.email_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(f"Timed out sending '{template}' email to {to}")
            return False

    async def deliver(self, to: str, subject: str, html_body: str, text_body: str) -> bool:
        """Hand a rendered message to the transport."""
        if not self.is_configured:
            if self.settings.is_production:
                logger.error(f"Email not configured - cannot send '{subject}' to {to}")
                return False
            logger.warning(f"Email not configured - would send '{subject}' to {to}")
            logger.debug(f"Email content: {text_body}")
            return True

        try:
            response = await asyncio.to_thread(
                self.client.send_email,
                Source=self.settings.aws_ses_from_email,
                Destination={"ToAddresses": [to]},
                Message={
                    "Subject": {"Data": subject, "Charset": "UTF-8"},
                    "Body": {
                        "Html": {"Data": html_body, "Charset": "UTF-8"},
                        "Text": {"Data": text_body, "Charset": "UTF-8"},
                    },
                },
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False

        logger.info(f"Email sent to {to}: {subject} (MessageId: {response['MessageId']})")
        return True

    async def send_welcome(self, email: str, full_name: str, role: str) -> bool:
        """Send welcome email after registration."""
        return await self.send(
            to=email,
            template="welcome",
            data={
                "full_name": full_name,
                "role": role,
                "login_url": f"{self.settings.frontend_url}/login",
            },
        )

    async def send_password_reset(self, email: str, full_name: str, reset_token: str) -> bool:
        """Send password reset email."""
        return await self.send(
            to=email,
            template="password_reset",
            data={
                "full_name": full_name,
                "reset_url": f"{self.settings.frontend_url}/reset-password/{reset_token}",
                "expires_minutes": self.settings.reset_token_expire_minutes,
            },
        )
