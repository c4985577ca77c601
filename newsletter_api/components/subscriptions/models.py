"""
Subscriptions component models.

Data models for double opt-in subscription management.

State machine: pending_confirmation -> confirmed (one way, no path back)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from uuid import UUID

# --- State Machine ---


class SubscriberStatus(Enum):
    """
    Subscriber status.

    State transitions:
    - pending_confirmation -> confirmed (via confirmation link)
    """

    PENDING_CONFIRMATION = "pending_confirmation"
    CONFIRMED = "confirmed"


VALID_TRANSITIONS: dict[SubscriberStatus, set[SubscriberStatus]] = {
    SubscriberStatus.PENDING_CONFIRMATION: {SubscriberStatus.CONFIRMED},
    SubscriberStatus.CONFIRMED: set(),  # Terminal state
}


def can_transition(from_status: SubscriberStatus, to_status: SubscriberStatus) -> bool:
    """Check if a status transition is allowed."""
    return to_status in VALID_TRANSITIONS.get(from_status, set())


# --- Entities ---


@dataclass
class Subscriber:
    """Person who submitted the subscription form."""

    id: UUID
    email: str
    name: str
    status: SubscriberStatus = SubscriberStatus.PENDING_CONFIRMATION
    subscribed_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class SubscriptionToken:
    """Random token binding a confirmation link to one subscriber."""

    token: str
    subscriber_id: UUID


# --- Input Models ---


@dataclass(frozen=True)
class SubscribeInput:
    """Input for a new subscription."""

    name: str
    email: str
    base_confirmation_url: str


@dataclass(frozen=True)
class ConfirmInput:
    """Input for confirming a subscription."""

    token: str


# --- Output Models ---


class SubscriptionErrorKind(Enum):
    """Outcome categories the HTTP surface maps to status codes."""

    INVALID_INPUT = "invalid_input"
    UNKNOWN_TOKEN = "unknown_token"
    DUPLICATE_EMAIL = "duplicate_email"
    PERSISTENCE_UNAVAILABLE = "persistence_unavailable"
    NOTIFICATION_FAILURE = "notification_failure"


@dataclass(frozen=True)
class ValidationError:
    """Validation error detail."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ValidateOutput:
    """Output from a field validator."""

    is_valid: bool
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class SubscribeOutput:
    """Output from a subscription attempt."""

    success: bool
    subscriber_id: UUID | None = None
    error_kind: SubscriptionErrorKind | None = None
    errors: list[ValidationError] = field(default_factory=list)
    token_reissued: bool = False  # Pending subscriber got a fresh link


@dataclass(frozen=True)
class ConfirmOutput:
    """Output from a confirmation attempt."""

    success: bool
    subscriber_id: UUID | None = None
    error_kind: SubscriptionErrorKind | None = None
    errors: list[ValidationError] = field(default_factory=list)
    already_confirmed: bool = False  # Idempotent success


# --- Store Errors ---


class SubscriptionStoreError(Exception):
    """Base error raised by subscription store adapters."""

    pass


class PersistenceUnavailableError(SubscriptionStoreError):
    """Store unreachable, pool exhausted, or transaction failed."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Persistence unavailable: {reason}")


class DuplicateEmailError(SubscriptionStoreError):
    """Insert violated the unique email constraint."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__(f"Subscriber with email '{email}' already exists")


class TokenCollisionError(SubscriptionStoreError):
    """Insert violated the unique token constraint."""

    def __init__(self) -> None:
        super().__init__("Subscription token already exists")
