# newsletter-api: Ports (Protocol Interfaces)
# Abstract interfaces for adapters; no implementations here

from newsletter_api.core.ports.clock import ClockPort
from newsletter_api.core.ports.email import (
    EmailAddress,
    EmailPort,
    EmailResult,
    EmailStatus,
)

__all__ = [
    # Clock
    "ClockPort",
    # Email
    "EmailAddress",
    "EmailPort",
    "EmailResult",
    "EmailStatus",
]
