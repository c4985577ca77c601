"""
Health endpoint.

Liveness only: answers 200 with an empty body whenever the process can
serve requests. It does not touch the database or the email provider.
"""

from fastapi import APIRouter, Response, status

router = APIRouter()


@router.get("/health", response_class=Response, summary="Liveness probe")
def health_check() -> Response:
    return Response(status_code=status.HTTP_200_OK)
