"""
Dev Email Adapter.

Logs emails instead of sending them.
Used for local development (``email_client.enabled: false``) and tests.

Key behaviors:
- Logs email details through the module logger
- Returns SKIPPED status (not SENT)
- Stores emails in memory for test assertions
- Can be switched into a failing mode to exercise delivery errors
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from newsletter_api.core.ports.email import (
    EmailResult,
    EmailStatus,
)

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    """Record of a logged email for test assertions."""

    id: str
    recipient: str
    subject: str
    body_html: str
    body_text: str
    logged_at: datetime


@dataclass
class DevEmailAdapter:
    """
    Dev email adapter that logs instead of sending.

    Implements the EmailPort protocol.
    """

    sent_emails: list[SentEmail] = field(default_factory=list)

    log_level: int = logging.INFO
    log_body: bool = True
    body_preview_length: int = 100
    fail_sends: bool = False  # Report every send as failed

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str,
    ) -> EmailResult:
        """
        Log an email instead of sending.

        Returns:
            EmailResult with SKIPPED status, or FAILED when ``fail_sends`` is set
        """
        message_id = f"dev-{uuid4().hex[:12]}"

        self.sent_emails.append(
            SentEmail(
                id=message_id,
                recipient=recipient,
                subject=subject,
                body_html=body_html,
                body_text=body_text,
                logged_at=datetime.now(UTC),
            )
        )

        if self.fail_sends:
            logger.warning("EMAIL (dev): simulated failure for To=%s", recipient)
            return EmailResult.failed(recipient, "Dev mode - simulated failure")

        self._log_email(recipient, subject, body_html, message_id)
        return EmailResult(
            status=EmailStatus.SKIPPED,
            message_id=message_id,
            recipient=recipient,
            error="Dev mode - email logged, not sent",
        )

    def _log_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        message_id: str,
    ) -> None:
        parts = [
            f"EMAIL (dev): To={recipient}",
            f"Subject={subject}",
        ]

        if self.log_body and body_html:
            preview = body_html[: self.body_preview_length]
            if len(body_html) > self.body_preview_length:
                preview += "..."
            parts.append(f"Body={preview}")

        parts.append(f"MessageID={message_id}")
        logger.log(self.log_level, ", ".join(parts))

    # --- Test Helper Methods ---

    def get_last_email(self) -> SentEmail | None:
        return self.sent_emails[-1] if self.sent_emails else None

    def get_emails_to(self, recipient: str) -> list[SentEmail]:
        return [e for e in self.sent_emails if e.recipient == recipient]

    def clear(self) -> None:
        self.sent_emails.clear()

    @property
    def email_count(self) -> int:
        return len(self.sent_emails)
