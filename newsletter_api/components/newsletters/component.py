"""
Newsletters component.

Delivers a newsletter issue to every confirmed subscriber.

Key behaviors:
- Only confirmed subscribers receive the issue
- Stored addresses are re-validated; invalid ones are skipped and logged
- The first failed send stops the run
"""

from __future__ import annotations

import logging

from newsletter_api.components.newsletters.models import (
    PublishErrorKind,
    PublishInput,
    PublishOutput,
)
from newsletter_api.components.newsletters.ports import SubscriberDirectoryPort
from newsletter_api.components.subscriptions.component import validate_email
from newsletter_api.components.subscriptions.models import (
    SubscriberStatus,
    SubscriptionStoreError,
    ValidationError,
)
from newsletter_api.core.ports.email import EmailPort

_logger = logging.getLogger(__name__)


def validate_issue(inp: PublishInput) -> list[ValidationError]:
    """Check an issue has a title and at least one body."""
    errors: list[ValidationError] = []
    if not inp.title.strip():
        errors.append(ValidationError("EMPTY_TITLE", "Title is required", "title"))
    if not inp.html_content.strip() and not inp.text_content.strip():
        errors.append(
            ValidationError("EMPTY_CONTENT", "Newsletter content is required", "content")
        )
    return errors


def run_publish(
    inp: PublishInput,
    directory: SubscriberDirectoryPort,
    *,
    email_sender: EmailPort,
    logger: logging.Logger | None = None,
) -> PublishOutput:
    """Send the issue to all confirmed subscribers."""
    log = logger or _logger

    errors = validate_issue(inp)
    if errors:
        return PublishOutput(
            success=False,
            error_kind=PublishErrorKind.INVALID_INPUT,
            errors=errors,
        )

    try:
        subscribers = directory.list_by_status(SubscriberStatus.CONFIRMED)
    except SubscriptionStoreError as e:
        log.error("Failed to load confirmed subscribers: %s", e)
        return PublishOutput(
            success=False,
            error_kind=PublishErrorKind.PERSISTENCE_UNAVAILABLE,
            errors=[ValidationError("PERSISTENCE_UNAVAILABLE", "Could not load subscribers")],
        )

    sent = 0
    skipped = []
    for subscriber in subscribers:
        if not validate_email(subscriber.email).is_valid:
            log.warning(
                "Skipping confirmed subscriber %s: stored contact details are invalid",
                subscriber.id,
            )
            skipped.append(subscriber.id)
            continue

        result = email_sender.send_email(
            subscriber.email,
            inp.title,
            inp.html_content,
            inp.text_content,
        )
        if not result.delivered:
            log.error(
                "Failed to send newsletter issue to subscriber %s: %s",
                subscriber.id,
                result.error,
            )
            return PublishOutput(
                success=False,
                sent_count=sent,
                skipped=skipped,
                error_kind=PublishErrorKind.NOTIFICATION_FAILURE,
                errors=[ValidationError("NOTIFICATION_FAILURE", "Could not send newsletter")],
            )
        sent += 1

    log.info("Published '%s' to %d subscribers (%d skipped)", inp.title, sent, len(skipped))
    return PublishOutput(success=True, sent_count=sent, skipped=skipped)
