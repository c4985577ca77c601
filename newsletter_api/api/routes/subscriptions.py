"""
Subscription endpoints.

Endpoints:
- POST /subscriptions - Start the double opt-in flow (form-urlencoded)
- GET /subscriptions/confirm - Confirm via the emailed token

Handlers decode the request into the component's input dataclass and map
the component's error kind onto a status code. Success bodies are empty.
"""

from __future__ import annotations

import logging
from typing import Annotated, NoReturn

from fastapi import APIRouter, Depends, Form, Query, Response, status

from newsletter_api.adapters.sqlite_db import SQLiteSubscriptionStore
from newsletter_api.api.deps import (
    get_clock,
    get_confirmation_url,
    get_email_sender,
    get_subscription_store,
    get_workflow_logger,
)
from newsletter_api.api.errors import raise_http_error
from newsletter_api.components.subscriptions import (
    ConfirmInput,
    SubscribeInput,
    SubscriptionErrorKind,
    ValidationError,
    run,
)
from newsletter_api.core.ports.clock import ClockPort
from newsletter_api.core.ports.email import EmailPort

router = APIRouter()

ERROR_STATUS: dict[SubscriptionErrorKind, int] = {
    SubscriptionErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    SubscriptionErrorKind.UNKNOWN_TOKEN: status.HTTP_400_BAD_REQUEST,
    SubscriptionErrorKind.DUPLICATE_EMAIL: status.HTTP_409_CONFLICT,
    SubscriptionErrorKind.PERSISTENCE_UNAVAILABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    SubscriptionErrorKind.NOTIFICATION_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_error(kind: SubscriptionErrorKind | None, errors: list[ValidationError]) -> NoReturn:
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    if kind is not None:
        status_code = ERROR_STATUS[kind]
    raise_http_error(status_code, errors)


@router.post(
    "/subscriptions",
    response_class=Response,
    responses={
        400: {"description": "Missing or invalid name/email"},
        409: {"description": "Email already confirmed"},
        500: {"description": "Store or email provider failure"},
    },
    summary="Subscribe to the newsletter",
)
def subscribe(
    name: Annotated[str, Form()],
    email: Annotated[str, Form()],
    store: SQLiteSubscriptionStore = Depends(get_subscription_store),
    email_sender: EmailPort = Depends(get_email_sender),
    clock: ClockPort = Depends(get_clock),
    confirmation_url: str = Depends(get_confirmation_url),
    logger: logging.Logger = Depends(get_workflow_logger),
) -> Response:
    """
    Subscribe to the newsletter.

    Stores a pending subscriber and emails a confirmation link.
    """
    result = run(
        SubscribeInput(name=name, email=email, base_confirmation_url=confirmation_url),
        store=store,
        email_sender=email_sender,
        clock=clock,
        logger=logger,
    )
    if not result.success:
        raise_for_error(result.error_kind, result.errors)
    return Response(status_code=status.HTTP_200_OK)


@router.get(
    "/subscriptions/confirm",
    response_class=Response,
    responses={
        400: {"description": "Missing or unknown token"},
        500: {"description": "Store failure"},
    },
    summary="Confirm a pending subscription",
)
def confirm(
    subscription_token: Annotated[str, Query()],
    store: SQLiteSubscriptionStore = Depends(get_subscription_store),
    logger: logging.Logger = Depends(get_workflow_logger),
) -> Response:
    """
    Confirm a subscription.

    Idempotent: an already confirmed subscriber still gets 200.
    """
    result = run(ConfirmInput(token=subscription_token), store=store, logger=logger)
    if not result.success:
        raise_for_error(result.error_kind, result.errors)
    return Response(status_code=status.HTTP_200_OK)
