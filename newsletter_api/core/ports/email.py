"""
Email Adapter Interface.

Protocol-based interface for sending transactional emails.
Used by the subscription workflow for confirmation emails and by the
newsletter publisher for issue delivery.

Key requirements:
- Send transactional emails with both HTML and plain text bodies
- Stateless send operation
- Never raise on delivery problems; report them through EmailResult
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol


class EmailStatus(Enum):
    """Email send result status."""

    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"  # Dev adapter or dry-run


@dataclass(frozen=True)
class EmailAddress:
    """
    Email address with optional display name.

    Examples:
        EmailAddress("user@example.com")
        EmailAddress("user@example.com", "Ursula Le Guin")
    """

    email: str
    name: str | None = None

    def __str__(self) -> str:
        """Format as RFC 5322 address."""
        if self.name:
            safe_name = self.name.replace('"', '\\"')
            return f'"{safe_name}" <{self.email}>'
        return self.email


@dataclass
class EmailResult:
    """Result of an email send attempt."""

    status: EmailStatus
    message_id: str | None = None  # Provider's message ID
    error: str | None = None
    sent_at: datetime | None = None
    recipient: str = ""

    @property
    def delivered(self) -> bool:
        """True unless the send failed (skipped counts as delivered in dev)."""
        return self.status != EmailStatus.FAILED

    @classmethod
    def success(cls, recipient: str, message_id: str | None = None) -> EmailResult:
        return cls(
            status=EmailStatus.SENT,
            message_id=message_id,
            recipient=recipient,
            sent_at=datetime.now(UTC),
        )

    @classmethod
    def failed(cls, recipient: str, error: str) -> EmailResult:
        return cls(
            status=EmailStatus.FAILED,
            recipient=recipient,
            error=error,
        )


class EmailPort(Protocol):
    """
    Email sending interface.

    Implementations:
    - DevEmailAdapter: Logs to console (dev/test)
    - EmailClient: HTTP email provider
    """

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str,
    ) -> EmailResult:
        """
        Send a transactional email.

        Args:
            recipient: Email address of recipient
            subject: Email subject line
            body_html: HTML body content
            body_text: Plain text body

        Returns:
            EmailResult with send outcome

        Notes:
            Must not raise exceptions; return failed status instead.
        """
        ...
