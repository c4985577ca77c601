"""
Newsletter publishing endpoint.

Endpoints:
- POST /newsletters - Deliver an issue to every confirmed subscriber (JSON)
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from newsletter_api.adapters.sqlite_db import SQLiteSubscriptionStore
from newsletter_api.api.deps import get_email_sender, get_subscription_store, get_workflow_logger
from newsletter_api.api.errors import raise_http_error
from newsletter_api.components.newsletters import PublishErrorKind, PublishInput, run_publish
from newsletter_api.core.ports.email import EmailPort

router = APIRouter()

ERROR_STATUS: dict[PublishErrorKind, int] = {
    PublishErrorKind.INVALID_INPUT: status.HTTP_400_BAD_REQUEST,
    PublishErrorKind.PERSISTENCE_UNAVAILABLE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    PublishErrorKind.NOTIFICATION_FAILURE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


# --- Request Models ---


class NewsletterContent(BaseModel):
    html: str = Field(..., description="HTML body of the issue")
    text: str = Field(..., description="Plain text body of the issue")


class NewsletterRequest(BaseModel):
    """Request body for publishing an issue."""

    title: str = Field(..., description="Subject line of the issue")
    content: NewsletterContent


@router.post(
    "/newsletters",
    response_class=Response,
    responses={
        400: {"description": "Invalid newsletter body"},
        500: {"description": "Store or email provider failure"},
    },
    summary="Publish a newsletter issue",
)
def publish_newsletter(
    body: NewsletterRequest,
    store: SQLiteSubscriptionStore = Depends(get_subscription_store),
    email_sender: EmailPort = Depends(get_email_sender),
    logger: logging.Logger = Depends(get_workflow_logger),
) -> Response:
    result = run_publish(
        PublishInput(
            title=body.title,
            html_content=body.content.html,
            text_content=body.content.text,
        ),
        store,
        email_sender=email_sender,
        logger=logger,
    )
    if not result.success:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        if result.error_kind is not None:
            status_code = ERROR_STATUS[result.error_kind]
        raise_http_error(status_code, result.errors)
    return Response(status_code=status.HTTP_200_OK)
