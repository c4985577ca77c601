"""
Newsletters component models.

Data models for delivering a newsletter issue to confirmed subscribers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from uuid import UUID

from newsletter_api.components.subscriptions.models import ValidationError

# --- Input Models ---


@dataclass(frozen=True)
class PublishInput:
    """A newsletter issue to deliver."""

    title: str
    html_content: str
    text_content: str


# --- Output Models ---


class PublishErrorKind(Enum):
    INVALID_INPUT = "invalid_input"
    PERSISTENCE_UNAVAILABLE = "persistence_unavailable"
    NOTIFICATION_FAILURE = "notification_failure"


@dataclass(frozen=True)
class PublishOutput:
    """Output from a publish run."""

    success: bool
    sent_count: int = 0
    skipped: list[UUID] = field(default_factory=list)  # Stored email no longer valid
    error_kind: PublishErrorKind | None = None
    errors: list[ValidationError] = field(default_factory=list)
