"""
EmailService - deliver appeal run reports through the Resend API.
"""

import logging
from datetime import datetime, timezone
from typing import Optional
from dataclasses import dataclass

import resend

from ..core.config import Config
from ..core.models import RunSummary
from .report_renderer import REPORT_SUBJECT, render_html, render_text

logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    """Result of an email send operation."""
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class EmailService:
    """
    Sends the run report to the account's notification address.

    Example:
        >>> service = EmailService()
        >>> result = service.send_report(summary, "ops@example.com")
        >>> result.success
        True
    """

    def __init__(self, api_key: Optional[str] = None, from_email: Optional[str] = None):
        """
        Args:
            api_key: Resend API key (if None, uses Config.RESEND_API_KEY)
            from_email: Sender address (if None, uses Config.EMAIL_FROM)
        """
        self.api_key = api_key or Config.RESEND_API_KEY
        self._enabled = bool(self.api_key)
        if self._enabled:
            resend.api_key = self.api_key
        else:
            logger.warning("RESEND_API_KEY not set - appeal reports will not be emailed")

        self.from_email = from_email or Config.EMAIL_FROM or "noreply@adappeal.io"

    @property
    def enabled(self) -> bool:
        """True when a Resend API key is configured."""
        return self._enabled

    def send_report(
        self,
        summary: RunSummary,
        to_email: str,
        generated_at: Optional[datetime] = None,
    ) -> EmailResult:
        """
        Email the rendered report for a run.

        The text report is sent as the plain-text part and, escaped, as the
        HTML part, so both clients show the same content.
        """
        generated_at = generated_at or datetime.now(timezone.utc)
        subject = f"{REPORT_SUBJECT} - {summary.appeals_submitted_count} appeal(s) submitted"
        return self.send_email(
            to_email=to_email,
            subject=subject,
            html_body=render_html(summary, generated_at),
            text_body=render_text(summary, generated_at),
        )

    def send_email(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None
    ) -> EmailResult:
        """Send one message. Resend errors come back in the result, never raised."""
        if not self._enabled:
            return EmailResult(
                success=False,
                error="Email disabled - RESEND_API_KEY not configured"
            )

        params = {
            "from": self.from_email,
            "to": [to_email],
            "subject": subject,
            "html": html_body,
        }
        if text_body:
            params["text"] = text_body

        try:
            response = resend.Emails.send(params)
        except Exception as e:
            logger.error(f"Report email to {to_email} failed: {e}")
            return EmailResult(success=False, error=str(e))

        message_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        logger.info(f"Report email sent to {to_email} (id={message_id})")
        return EmailResult(success=True, message_id=message_id)
