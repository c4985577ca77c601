"""
Unit tests for DevEmailAdapter.

Tests cover:
1. send_email logs and stores without sending
2. Simulated failures
3. Test helper methods
"""

import logging

from newsletter_api.adapters.dev_email import DevEmailAdapter
from newsletter_api.core.ports.email import EmailStatus


class TestDevEmailAdapterSendEmail:
    def test_send_email_returns_skipped_status(self) -> None:
        """Dev adapter returns SKIPPED, not SENT."""
        adapter = DevEmailAdapter()

        result = adapter.send_email(
            recipient="user@gmail.com",
            subject="Welcome!",
            body_html="<p>Hi</p>",
            body_text="Hi",
        )

        assert result.status == EmailStatus.SKIPPED
        assert result.delivered

    def test_send_email_includes_message_id(self) -> None:
        adapter = DevEmailAdapter()

        result = adapter.send_email("user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi")

        assert result.message_id is not None
        assert result.message_id.startswith("dev-")

    def test_send_email_stores_both_bodies(self) -> None:
        adapter = DevEmailAdapter()

        adapter.send_email("user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi")

        sent = adapter.get_last_email()
        assert sent is not None
        assert sent.recipient == "user@gmail.com"
        assert sent.body_html == "<p>Hi</p>"
        assert sent.body_text == "Hi"

    def test_send_email_logs_recipient(self, caplog) -> None:
        adapter = DevEmailAdapter()

        with caplog.at_level(logging.INFO, logger="newsletter_api.adapters.dev_email"):
            adapter.send_email("user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi")

        assert "To=user@gmail.com" in caplog.text
        assert "Subject=Welcome!" in caplog.text

    def test_long_bodies_are_truncated_in_log(self, caplog) -> None:
        adapter = DevEmailAdapter(body_preview_length=10)

        with caplog.at_level(logging.INFO, logger="newsletter_api.adapters.dev_email"):
            adapter.send_email("user@gmail.com", "Welcome!", "x" * 50, "x")

        assert "Body=" + "x" * 10 + "..." in caplog.text


class TestDevEmailAdapterFailures:
    def test_fail_sends_reports_failure(self) -> None:
        adapter = DevEmailAdapter(fail_sends=True)

        result = adapter.send_email("user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi")

        assert result.status == EmailStatus.FAILED
        assert not result.delivered
        assert result.error is not None

    def test_failed_sends_are_still_recorded(self) -> None:
        adapter = DevEmailAdapter(fail_sends=True)

        adapter.send_email("user@gmail.com", "Welcome!", "<p>Hi</p>", "Hi")

        assert adapter.email_count == 1


class TestDevEmailAdapterHelpers:
    def test_get_emails_to_filters_by_recipient(self) -> None:
        adapter = DevEmailAdapter()
        adapter.send_email("a@gmail.com", "One", "<p>1</p>", "1")
        adapter.send_email("b@gmail.com", "Two", "<p>2</p>", "2")
        adapter.send_email("a@gmail.com", "Three", "<p>3</p>", "3")

        subjects = [e.subject for e in adapter.get_emails_to("a@gmail.com")]

        assert subjects == ["One", "Three"]

    def test_clear_empties_outbox(self) -> None:
        adapter = DevEmailAdapter()
        adapter.send_email("a@gmail.com", "One", "<p>1</p>", "1")

        adapter.clear()

        assert adapter.email_count == 0
        assert adapter.get_last_email() is None
