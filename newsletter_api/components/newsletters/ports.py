"""
Newsletters component ports.
"""

from __future__ import annotations

from typing import Protocol

from newsletter_api.components.subscriptions.models import Subscriber, SubscriberStatus


class SubscriberDirectoryPort(Protocol):
    """Read access to subscribers by status."""

    def list_by_status(self, status: SubscriberStatus) -> list[Subscriber]:
        """List subscribers in a given status, oldest first."""
        ...
