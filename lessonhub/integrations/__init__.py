"""
External collaborators: outbound email and error tracking.
"""

from lessonhub.integrations.email import EmailService
from lessonhub.integrations.sentry import capture_exception, init_sentry

__all__ = ["EmailService", "capture_exception", "init_sentry"]
