"""
Subscriptions component.

Double opt-in subscription workflow: validate, persist a pending subscriber
with its token, email the confirmation link, confirm by token.
"""

from newsletter_api.components.subscriptions.component import (
    FORBIDDEN_NAME_CHARACTERS,
    MAX_NAME_GRAPHEMES,
    MAX_TOKEN_ATTEMPTS,
    TOKEN_ALPHABET,
    TOKEN_LENGTH,
    build_confirmation_email,
    build_confirmation_link,
    count_graphemes,
    generate_token,
    run,
    run_confirm,
    run_subscribe,
    validate_email,
    validate_name,
)
from newsletter_api.components.subscriptions.models import (
    VALID_TRANSITIONS,
    ConfirmInput,
    ConfirmOutput,
    DuplicateEmailError,
    PersistenceUnavailableError,
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

__all__ = [
    # Component
    "run",
    "run_subscribe",
    "run_confirm",
    # Pure functions
    "validate_email",
    "validate_name",
    "count_graphemes",
    "generate_token",
    "build_confirmation_link",
    "build_confirmation_email",
    # Constants
    "FORBIDDEN_NAME_CHARACTERS",
    "MAX_NAME_GRAPHEMES",
    "MAX_TOKEN_ATTEMPTS",
    "TOKEN_ALPHABET",
    "TOKEN_LENGTH",
    # Models
    "Subscriber",
    "SubscriberStatus",
    "SubscriptionToken",
    "VALID_TRANSITIONS",
    "can_transition",
    # Input/Output
    "SubscribeInput",
    "SubscribeOutput",
    "ConfirmInput",
    "ConfirmOutput",
    "ValidateOutput",
    "ValidationError",
    "SubscriptionErrorKind",
    # Errors
    "SubscriptionStoreError",
    "PersistenceUnavailableError",
    "DuplicateEmailError",
    "TokenCollisionError",
    # Ports
    "SubscriptionStorePort",
    "SubscriptionTransactionPort",
]
