"""
Outgoing email for account confirmation and password resets.

Delivery providers are external collaborators, so the service layer
depends only on the ``EmailSender`` interface.  The default
``LoggingEmailSender`` writes each message to the application log and
keeps it in an in-memory outbox, which is enough for development and
for tests.  A provider-backed sender can be swapped in through the
``get_email_sender`` dependency.
"""

import html
import logging
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlencode

from reactivities_api.app.core.config import settings


logger = logging.getLogger(__name__)


@dataclass
class EmailMessage:
    sender: str
    to: str
    subject: str
    html_body: str


class EmailSender:
    """Interface for sending HTML email."""

    async def send(self, message: EmailMessage) -> None:
        raise NotImplementedError

    async def send_confirmation_link(self, display_name: Optional[str], email: str, user_id: str, code: str) -> None:
        link = f"{settings.client_app_url}/confirm-email?{urlencode({'userId': user_id, 'code': code})}"
        body = (
            f"<p>Hi {html.escape(display_name or '')}</p>"
            "<p>Please confirm your email by clicking the link below</p>"
            f"<p><a href='{html.escape(link)}'>Click here to verify email</a></p>"
            "<p>Thanks</p>"
        )
        await self.send(EmailMessage(settings.email_from, email, "Confirm your email address", body))

    async def send_password_reset_code(self, display_name: Optional[str], email: str, code: str) -> None:
        link = f"{settings.client_app_url}/reset-password?{urlencode({'email': email, 'code': code})}"
        body = (
            f"<p>Hi {html.escape(display_name or '')}</p>"
            "<p>Please click this link to reset your password</p>"
            f"<p><a href='{html.escape(link)}'>Click here to reset your password</a></p>"
            "<p>If you did not request this, you can ignore this email</p>"
        )
        await self.send(EmailMessage(settings.email_from, email, "Reset your password", body))


class LoggingEmailSender(EmailSender):
    """Email sender that logs messages instead of delivering them."""

    def __init__(self) -> None:
        self.outbox: List[EmailMessage] = []

    async def send(self, message: EmailMessage) -> None:
        logger.info("Sending email '%s' to %s", message.subject, message.to)
        logger.debug("Email body: %s", message.html_body)
        self.outbox.append(message)


_email_sender: Optional[EmailSender] = None


def get_email_sender() -> EmailSender:
    """FastAPI dependency returning the process-wide email sender."""
    global _email_sender
    if _email_sender is None:
        _email_sender = LoggingEmailSender()
    return _email_sender
