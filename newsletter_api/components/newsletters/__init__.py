"""
Newsletters component.

Delivers newsletter issues to confirmed subscribers.
"""

from newsletter_api.components.newsletters.component import run_publish, validate_issue
from newsletter_api.components.newsletters.models import (
    PublishErrorKind,
    PublishInput,
    PublishOutput,
)
from newsletter_api.components.newsletters.ports import SubscriberDirectoryPort

__all__ = [
    "run_publish",
    "validate_issue",
    "PublishInput",
    "PublishOutput",
    "PublishErrorKind",
    "SubscriberDirectoryPort",
]
