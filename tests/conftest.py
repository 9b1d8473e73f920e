"""Pytest configuration and fixtures for the insights gateway tests."""

import logging

import pytest

from insights_gateway.core.logging import configure_logging


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")


@pytest.fixture(scope="session", autouse=True)
def configure_test_logging():
    """Configure logfire once, without console output or remote export."""
    configure_logging(enable_console=False, min_level="debug")

    # Reduce log verbosity during tests
    logging.getLogger("httpx").setLevel(logging.WARNING)
    yield


@pytest.fixture(autouse=True)
def clean_gateway_env(monkeypatch):
    """Keep the developer's environment out of config-dependent tests."""
    for name in (
        "MODEL_TOKEN",
        "PORT",
        "HOST",
        "LANGFLOW_BASE_URL",
        "FLOW_ID",
        "FLOW_GROUP_ID",
        "REQUEST_TIMEOUT_SECONDS",
        "STREAM_IDLE_TIMEOUT_SECONDS",
        "CACHE_TTL_SECONDS",
        "RATE_LIMIT_MAX",
        "RATE_LIMIT_WINDOW_SECONDS",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
