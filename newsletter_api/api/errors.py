"""Error translation shared by route handlers."""

from __future__ import annotations

from typing import NoReturn

from fastapi import HTTPException, status

from newsletter_api.components.subscriptions.models import ValidationError


def raise_http_error(status_code: int, errors: list[ValidationError]) -> NoReturn:
    """
    Raise an HTTPException for a failed component output.

    Client errors carry the validation details; server errors stay opaque.
    """
    if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        raise HTTPException(status_code=status_code, detail="Internal server error")
    raise HTTPException(
        status_code=status_code,
        detail=[{"code": e.code, "message": e.message, "field": e.field} for e in errors],
    )
