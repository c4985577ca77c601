"""
HTTP email provider adapter.

Sends transactional email through a Postmark-style REST API:
``POST {base_url}/email`` with a JSON payload carrying ``From``, ``To``,
``Subject``, ``HtmlBody`` and ``TextBody``. The server token travels in the
``X-Postmark-Server-Token`` header.

Every request is bounded by the configured timeout. Transport errors,
timeouts and non-2xx responses are reported as a failed EmailResult, never
raised, so one slow provider call cannot stall a request.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import SecretStr

from newsletter_api.core.ports.email import EmailAddress, EmailResult

logger = logging.getLogger(__name__)

SERVER_TOKEN_HEADER = "X-Postmark-Server-Token"


class EmailClient:
    """Implements EmailPort against the HTTP email provider."""

    def __init__(
        self,
        base_url: str,
        sender: EmailAddress,
        authorization_token: SecretStr,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.sender = sender
        self._authorization_token = authorization_token
        self._client = httpx.Client(timeout=timeout_seconds, transport=transport)

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str,
    ) -> EmailResult:
        payload = {
            "From": str(self.sender),
            "To": recipient,
            "Subject": subject,
            "HtmlBody": body_html,
            "TextBody": body_text,
        }
        return self._post(recipient, payload)

    def _post(self, recipient: str, payload: dict[str, Any]) -> EmailResult:
        try:
            response = self._client.post(
                f"{self.base_url}/email",
                headers={
                    SERVER_TOKEN_HEADER: self._authorization_token.get_secret_value(),
                    "Accept": "application/json",
                },
                json=payload,
            )
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.error("Email provider timed out sending to %s", recipient)
            return EmailResult.failed(recipient, "Email provider timed out")
        except httpx.HTTPStatusError as e:
            logger.error(
                "Email provider rejected message to %s with status %s",
                recipient,
                e.response.status_code,
            )
            return EmailResult.failed(
                recipient, f"Email provider returned {e.response.status_code}"
            )
        except httpx.HTTPError as e:
            logger.error("Email provider unreachable sending to %s: %s", recipient, e)
            return EmailResult.failed(recipient, f"Email provider unreachable: {e}")

        message_id = None
        if response.content:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict):
                message_id = body.get("MessageID")
        return EmailResult.success(recipient, message_id=message_id)

    def close(self) -> None:
        self._client.close()
