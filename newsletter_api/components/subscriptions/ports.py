"""
Subscriptions component ports.

Protocol interfaces for subscription workflow dependencies.
"""

from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol
from uuid import UUID

from newsletter_api.components.subscriptions.models import (
    Subscriber,
    SubscriberStatus,
    SubscriptionToken,
)


class SubscriptionTransactionPort(Protocol):
    """
    Writes that must become visible together.

    Opened through ``SubscriptionStorePort.transaction()``; committed when
    the context exits cleanly and rolled back otherwise.
    """

    def insert_subscriber(self, subscriber: Subscriber) -> Subscriber:
        """
        Insert a new subscriber.

        Raises:
            DuplicateEmailError: email already on record
            PersistenceUnavailableError: any other store failure
        """
        ...

    def insert_token(self, token: SubscriptionToken) -> SubscriptionToken:
        """
        Insert a token bound to an existing subscriber.

        Raises:
            TokenCollisionError: token already on record
            PersistenceUnavailableError: any other store failure
        """
        ...


class SubscriptionStorePort(Protocol):
    """
    Subscription store interface.

    Abstracts persistence for subscribers and their tokens.
    """

    def transaction(self) -> AbstractContextManager[SubscriptionTransactionPort]:
        """Open an atomic write scope."""
        ...

    def get_subscriber(self, subscriber_id: UUID) -> Subscriber | None:
        """Get subscriber by ID."""
        ...

    def get_subscriber_by_email(self, email: str) -> Subscriber | None:
        """Get subscriber by exact email address."""
        ...

    def find_subscriber_by_token(self, token: str) -> Subscriber | None:
        """Get the subscriber a token belongs to (exact match)."""
        ...

    def update_status(self, subscriber_id: UUID, status: SubscriberStatus) -> None:
        """Set a subscriber's status. Setting the current status is a no-op."""
        ...

    def withdraw_token(self, token: str) -> None:
        """
        Remove a token after its confirmation email failed.

        In the same transaction, removes the token's subscriber if it is
        still pending and no other token references it.
        """
        ...

    def list_by_status(self, status: SubscriberStatus) -> list[Subscriber]:
        """List subscribers in a given status, oldest first."""
        ...
