"""
Subscriptions component.

Functional core for double opt-in subscription management.

Key behaviors:
- Name and email validation (all violations reported together)
- Cryptographic alphanumeric tokens (secrets)
- Subscriber and token inserted in one transaction
- Confirmation link identical in the HTML and text bodies
- Compensating rollback when the confirmation email cannot be sent
- Idempotent confirmation

Invariants:
- Validation happens before any side effect
- A subscriber never exists without a token issued in the same transaction
- Status only moves pending_confirmation -> confirmed
"""

from __future__ import annotations

import logging
import secrets
import string
from uuid import UUID, uuid4

import regex
from email_validator import EmailNotValidError
from email_validator import validate_email as check_email_address

from newsletter_api.components.subscriptions.models import (
    ConfirmInput,
    ConfirmOutput,
    DuplicateEmailError,
    SubscribeInput,
    SubscribeOutput,
    Subscriber,
    SubscriberStatus,
    SubscriptionErrorKind,
    SubscriptionStoreError,
    SubscriptionToken,
    TokenCollisionError,
    ValidateOutput,
    ValidationError,
    can_transition,
)
from newsletter_api.components.subscriptions.ports import (
    SubscriptionStorePort,
    SubscriptionTransactionPort,
)
from newsletter_api.core.ports.clock import ClockPort
from newsletter_api.core.ports.email import EmailPort

_logger = logging.getLogger(__name__)

MAX_EMAIL_LENGTH = 254
MAX_NAME_GRAPHEMES = 256
FORBIDDEN_NAME_CHARACTERS = frozenset('/()"<>\\{}')
GRAPHEME_CLUSTER = regex.compile(r"\X")

TOKEN_LENGTH = 25
TOKEN_ALPHABET = string.ascii_letters + string.digits
MAX_TOKEN_ATTEMPTS = 3

CONFIRMATION_SUBJECT = "Welcome!"


# --- Validators ---


def validate_email(candidate: str) -> ValidateOutput:
    """
    Validate an email address against the address grammar.

    The candidate is checked as submitted; no normalisation is applied,
    so surrounding whitespace is a violation.
    """
    if not candidate:
        return ValidateOutput(
            is_valid=False,
            errors=[ValidationError("EMPTY_EMAIL", "Email address is required", "email")],
        )

    if len(candidate) > MAX_EMAIL_LENGTH:
        return ValidateOutput(
            is_valid=False,
            errors=[ValidationError("EMAIL_TOO_LONG", "Email address is too long", "email")],
        )

    try:
        check_email_address(candidate, check_deliverability=False)
    except EmailNotValidError as e:
        return ValidateOutput(
            is_valid=False,
            errors=[ValidationError("INVALID_EMAIL", f"Invalid email address: {e}", "email")],
        )

    return ValidateOutput(is_valid=True)


def count_graphemes(value: str) -> int:
    """Count extended grapheme clusters (user-perceived characters)."""
    return len(GRAPHEME_CLUSTER.findall(value))


def validate_name(candidate: str) -> ValidateOutput:
    """Validate a subscriber display name."""
    errors: list[ValidationError] = []

    if not candidate or not candidate.strip():
        return ValidateOutput(
            is_valid=False,
            errors=[ValidationError("EMPTY_NAME", "Name is required", "name")],
        )

    if count_graphemes(candidate) > MAX_NAME_GRAPHEMES:
        errors.append(
            ValidationError(
                "NAME_TOO_LONG",
                f"Name must be at most {MAX_NAME_GRAPHEMES} characters",
                "name",
            )
        )

    forbidden = sorted(FORBIDDEN_NAME_CHARACTERS.intersection(candidate))
    if forbidden:
        errors.append(
            ValidationError(
                "FORBIDDEN_CHARACTERS",
                f"Name contains forbidden characters: {' '.join(forbidden)}",
                "name",
            )
        )

    return ValidateOutput(is_valid=not errors, errors=errors)


# --- Tokens and Links ---


def generate_token(length: int = TOKEN_LENGTH) -> str:
    """Generate a random alphanumeric subscription token."""
    return "".join(secrets.choice(TOKEN_ALPHABET) for _ in range(length))


def build_confirmation_link(base_confirmation_url: str, token: str) -> str:
    """Append the token to the confirmation endpoint URL."""
    return f"{base_confirmation_url}?subscription_token={token}"


def build_confirmation_email(link: str) -> tuple[str, str, str]:
    """
    Render the confirmation email.

    Returns:
        (subject, html_body, text_body), both bodies carrying the same link
    """
    html_body = (
        "Welcome to our newsletter!<br />"
        f'Click <a href="{link}">here</a> to confirm your subscription.'
    )
    text_body = (
        "Welcome to our newsletter!\n"
        f"Visit {link} to confirm your subscription."
    )
    return CONFIRMATION_SUBJECT, html_body, text_body


def _redact(token: str) -> str:
    return f"{token[:4]}..."


# --- Run Handlers ---


def _insert_fresh_token(
    tx: SubscriptionTransactionPort,
    subscriber_id: UUID,
) -> str:
    """Insert a new token for the subscriber, regenerating on collision."""
    for _ in range(MAX_TOKEN_ATTEMPTS):
        token = generate_token()
        try:
            tx.insert_token(SubscriptionToken(token=token, subscriber_id=subscriber_id))
        except TokenCollisionError:
            continue
        return token
    raise TokenCollisionError()


def _compensate(
    store: SubscriptionStorePort,
    token: str,
    subscriber_id: UUID,
    logger: logging.Logger,
) -> None:
    """
    Undo the writes of a subscribe call whose email could not be sent.

    Only this call's token is withdrawn. The subscriber row goes with it
    only when no other token, such as one a concurrent call emailed,
    still points at it.
    """
    try:
        store.withdraw_token(token)
    except SubscriptionStoreError:
        logger.exception(
            "Failed to roll back subscription %s after email failure", subscriber_id
        )


def run_subscribe(
    inp: SubscribeInput,
    store: SubscriptionStorePort,
    *,
    email_sender: EmailPort,
    clock: ClockPort,
    logger: logging.Logger | None = None,
) -> SubscribeOutput:
    """
    Handle a subscription request.

    1. Validate name and email
    2. Insert pending subscriber + token atomically (or reissue a token
       for an existing pending subscriber)
    3. Send the confirmation email; on failure undo step 2
    """
    log = logger or _logger

    errors = validate_name(inp.name).errors + validate_email(inp.email).errors
    if errors:
        log.info("Rejected subscription request: %s", ", ".join(e.code for e in errors))
        return SubscribeOutput(
            success=False,
            error_kind=SubscriptionErrorKind.INVALID_INPUT,
            errors=errors,
        )

    try:
        existing = store.get_subscriber_by_email(inp.email)
        if existing is not None and existing.status == SubscriberStatus.CONFIRMED:
            log.info("Subscription request for already confirmed subscriber %s", existing.id)
            return SubscribeOutput(
                success=False,
                subscriber_id=existing.id,
                error_kind=SubscriptionErrorKind.DUPLICATE_EMAIL,
                errors=[
                    ValidationError("DUPLICATE_EMAIL", "Email is already subscribed", "email")
                ],
            )

        with store.transaction() as tx:
            if existing is None:
                subscriber = tx.insert_subscriber(
                    Subscriber(
                        id=uuid4(),
                        email=inp.email,
                        name=inp.name,
                        status=SubscriberStatus.PENDING_CONFIRMATION,
                        subscribed_at=clock.now_utc(),
                    )
                )
            else:
                subscriber = existing
            token = _insert_fresh_token(tx, subscriber.id)
    except DuplicateEmailError:
        log.warning("Concurrent subscription for the same email address")
        return SubscribeOutput(
            success=False,
            error_kind=SubscriptionErrorKind.DUPLICATE_EMAIL,
            errors=[ValidationError("DUPLICATE_EMAIL", "Email is already subscribed", "email")],
        )
    except SubscriptionStoreError as e:
        log.error("Failed to persist subscription: %s", e)
        return SubscribeOutput(
            success=False,
            error_kind=SubscriptionErrorKind.PERSISTENCE_UNAVAILABLE,
            errors=[ValidationError("PERSISTENCE_UNAVAILABLE", "Could not store subscription")],
        )

    created = existing is None
    log.info(
        "Stored pending subscriber %s with token %s (new=%s)",
        subscriber.id,
        _redact(token),
        created,
    )

    link = build_confirmation_link(inp.base_confirmation_url, token)
    subject, html_body, text_body = build_confirmation_email(link)
    result = email_sender.send_email(inp.email, subject, html_body, text_body)

    if not result.delivered:
        log.error(
            "Failed to send confirmation email to subscriber %s: %s",
            subscriber.id,
            result.error,
        )
        _compensate(store, token, subscriber.id, log)
        return SubscribeOutput(
            success=False,
            subscriber_id=subscriber.id,
            error_kind=SubscriptionErrorKind.NOTIFICATION_FAILURE,
            errors=[ValidationError("NOTIFICATION_FAILURE", "Could not send confirmation email")],
        )

    return SubscribeOutput(
        success=True,
        subscriber_id=subscriber.id,
        token_reissued=not created,
    )


def run_confirm(
    inp: ConfirmInput,
    store: SubscriptionStorePort,
    *,
    logger: logging.Logger | None = None,
) -> ConfirmOutput:
    """
    Handle a confirmation request.

    Looks the token up and moves its subscriber to confirmed.
    Confirming twice succeeds and leaves the status unchanged.
    """
    log = logger or _logger

    if not inp.token:
        return ConfirmOutput(
            success=False,
            error_kind=SubscriptionErrorKind.UNKNOWN_TOKEN,
            errors=[ValidationError("MISSING_TOKEN", "Confirmation token is required")],
        )

    try:
        subscriber = store.find_subscriber_by_token(inp.token)
        if subscriber is None:
            log.info("Confirmation attempted with unknown token %s", _redact(inp.token))
            return ConfirmOutput(
                success=False,
                error_kind=SubscriptionErrorKind.UNKNOWN_TOKEN,
                errors=[ValidationError("UNKNOWN_TOKEN", "Invalid confirmation link")],
            )

        # confirmed is terminal
        if not can_transition(subscriber.status, SubscriberStatus.CONFIRMED):
            return ConfirmOutput(
                success=True,
                subscriber_id=subscriber.id,
                already_confirmed=True,
            )

        store.update_status(subscriber.id, SubscriberStatus.CONFIRMED)
    except SubscriptionStoreError as e:
        log.error("Failed to confirm subscription: %s", e)
        return ConfirmOutput(
            success=False,
            error_kind=SubscriptionErrorKind.PERSISTENCE_UNAVAILABLE,
            errors=[ValidationError("PERSISTENCE_UNAVAILABLE", "Could not confirm subscription")],
        )

    log.info("Confirmed subscriber %s", subscriber.id)
    return ConfirmOutput(success=True, subscriber_id=subscriber.id)


def run(
    inp: SubscribeInput | ConfirmInput,
    *,
    store: SubscriptionStorePort,
    email_sender: EmailPort | None = None,
    clock: ClockPort | None = None,
    logger: logging.Logger | None = None,
) -> SubscribeOutput | ConfirmOutput:
    """
    Main component entry point.

    Args:
        inp: Input command
        store: Subscription store (Required)
        email_sender: Email port (Required for SubscribeInput)
        clock: Clock port (Required for SubscribeInput)
        logger: Logger handle (Optional)

    Returns:
        Operation result
    """
    if isinstance(inp, SubscribeInput):
        if email_sender is None or clock is None:
            raise ValueError("Subscribing requires an email sender and a clock")
        return run_subscribe(
            inp,
            store,
            email_sender=email_sender,
            clock=clock,
            logger=logger,
        )
    elif isinstance(inp, ConfirmInput):
        return run_confirm(inp, store, logger=logger)
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")
