"""
Unit tests for the HTTP email provider client.

Requests are served by httpx.MockTransport; nothing leaves the process.
"""

import json

import httpx
import pytest
from pydantic import SecretStr

from newsletter_api.adapters.email_client import SERVER_TOKEN_HEADER, EmailClient
from newsletter_api.core.ports.email import EmailAddress, EmailStatus

SENDER = EmailAddress("newsletter@gmail.com", "Newsletter")


def make_client(handler, timeout_seconds: float = 10.0) -> EmailClient:
    return EmailClient(
        base_url="https://api.postmarkapp.com/",
        sender=SENDER,
        authorization_token=SecretStr("server-token"),
        timeout_seconds=timeout_seconds,
        transport=httpx.MockTransport(handler),
    )


class Recorder:
    def __init__(self, response: httpx.Response | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.response = response or httpx.Response(200, json={"MessageID": "abc-123"})

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.response


class TestRequestShape:
    def test_posts_to_email_endpoint(self) -> None:
        recorder = Recorder()
        client = make_client(recorder)

        client.send_email("user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert str(request.url) == "https://api.postmarkapp.com/email"

    def test_sends_server_token_header(self) -> None:
        recorder = Recorder()
        client = make_client(recorder)

        client.send_email("user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi")

        assert recorder.requests[0].headers[SERVER_TOKEN_HEADER] == "server-token"

    def test_payload_carries_all_fields(self) -> None:
        recorder = Recorder()
        client = make_client(recorder)

        client.send_email("user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi")

        payload = json.loads(recorder.requests[0].content)
        assert payload == {
            "From": '"Newsletter" <newsletter@gmail.com>',
            "To": "user@gmail.com",
            "Subject": "Welcome!",
            "HtmlBody": "<p>Hi</p>",
            "TextBody": "Hi",
        }

    def test_timeout_is_applied(self) -> None:
        client = make_client(Recorder(), timeout_seconds=0.25)

        assert client._client.timeout.read == 0.25


class TestOutcomes:
    def test_success_returns_sent_with_message_id(self) -> None:
        client = make_client(Recorder())

        result = client.send_email("user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi")

        assert result.status == EmailStatus.SENT
        assert result.message_id == "abc-123"
        assert result.sent_at is not None

    def test_success_without_json_body(self) -> None:
        client = make_client(Recorder(httpx.Response(200, text="ok")))

        result = client.send_email("user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi")

        assert result.status == EmailStatus.SENT
        assert result.message_id is None

    @pytest.mark.parametrize("status_code", [400, 401, 422, 500, 503])
    def test_error_status_returns_failed(self, status_code: int) -> None:
        client = make_client(Recorder(httpx.Response(status_code)))

        result = client.send_email("user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi")

        assert result.status == EmailStatus.FAILED
        assert str(status_code) in (result.error or "")

    def test_timeout_returns_failed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = make_client(handler).send_email(
            "user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi"
        )

        assert result.status == EmailStatus.FAILED
        assert result.error == "Email provider timed out"

    def test_connection_error_returns_failed(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        result = make_client(handler).send_email(
            "user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi"
        )

        assert result.status == EmailStatus.FAILED
        assert not result.delivered
