import io
import logging

import pytest

from newsletter_api import telemetry


@pytest.fixture
def basic_config_calls(monkeypatch):
    """Start unconfigured and record what init_logging asks logging for."""
    calls = []
    monkeypatch.setattr(telemetry, "_initialized", False)
    monkeypatch.setattr(telemetry.logging, "basicConfig", lambda **kw: calls.append(kw))
    return calls


def test_init_logging_configures_once(basic_config_calls):
    stream = io.StringIO()

    assert telemetry.init_logging("DEBUG", stream=stream) is True
    assert telemetry.init_logging("ERROR") is False

    assert len(basic_config_calls) == 1
    assert basic_config_calls[0]["level"] == logging.DEBUG
    assert basic_config_calls[0]["stream"] is stream
    assert basic_config_calls[0]["format"] == telemetry.LOG_FORMAT


def test_unknown_level_falls_back_to_info(basic_config_calls):
    telemetry.init_logging("chatty")

    assert basic_config_calls[0]["level"] == logging.INFO


def test_log_format_names_the_logger():
    record = logging.LogRecord(
        "newsletter_api.workflow", logging.INFO, __file__, 1, "hello", None, None
    )

    line = logging.Formatter(telemetry.LOG_FORMAT).format(record)

    assert line.endswith("INFO [newsletter_api.workflow] hello")


def test_get_logger_returns_named_logger():
    assert telemetry.get_logger("newsletter_api.test").name == "newsletter_api.test"
