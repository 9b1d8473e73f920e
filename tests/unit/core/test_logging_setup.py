"""Tests for centralized logging configuration."""

import threading
from unittest.mock import patch

import logfire
import pytest

import insights_gateway.core.logging as log_module
from insights_gateway.core.logging import configure_logging, is_configured


@pytest.fixture
def unconfigured():
    """Temporarily mark logging as unconfigured."""
    original = log_module._configured
    log_module._configured = False
    try:
        yield
    finally:
        log_module._configured = original


def test_configure_logging_idempotent():
    configure_logging()
    configure_logging()

    logfire.info("Test message")
    assert is_configured()


@patch("insights_gateway.core.logging.logfire.configure")
def test_configures_once_across_threads(mock_configure, unconfigured):
    errors = []

    def worker():
        try:
            configure_logging()
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, name=f"worker-{i}") for i in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert mock_configure.call_count == 1
    assert is_configured()


@patch("insights_gateway.core.logging.logfire.configure")
def test_console_options_passed_when_enabled(mock_configure, unconfigured):
    configure_logging(enable_console=True, min_level="warn")

    kwargs = mock_configure.call_args.kwargs
    assert kwargs["min_level"] == "warn"
    assert isinstance(kwargs["console"], logfire.ConsoleOptions)


@patch("insights_gateway.core.logging.logfire.configure")
def test_configure_failure_reported_to_stderr(mock_configure, unconfigured):
    mock_configure.side_effect = Exception("Configuration failed")

    with patch("sys.stderr") as mock_stderr:
        configure_logging()

    mock_stderr.write.assert_called()
    assert not is_configured()
