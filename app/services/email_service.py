"""
Transactional email via Resend.
"""
import html
import logging
from typing import Optional

import resend

from app.core.config import EMAIL_FROM_ADDRESS, RESEND_API_KEY

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


class ResendEmailSender:
    def __init__(self, api_key: Optional[str] = RESEND_API_KEY, from_address: str = EMAIL_FROM_ADDRESS):
        self.api_key = api_key
        self.from_address = from_address
        if api_key:
            resend.api_key = api_key
        else:
            logger.warning("RESEND_API_KEY not configured - email delivery disabled")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str, subject: str, body: str) -> Optional[dict]:
        """
        Send a plain notification email.

        Returns None without sending when no API key is configured.

        Raises:
            EmailDeliveryError: if Resend rejects the message
        """
        if not self.enabled:
            logger.info(f"Email skipped (not configured): to={to}, subject={subject!r}")
            return None

        email_data = {
            "from": self.from_address,
            "to": [to],
            "subject": subject,
            "html": f"<p>{html.escape(body)}</p>",
        }
        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            logger.error(f"Email send error to {to}: {e}")
            raise EmailDeliveryError(f"Failed to send email: {e}") from e

        logger.info(f"Email sent via Resend to {to}: {response}")
        return response
