"""Tests for gateway configuration loading."""

import pytest
from pydantic import ValidationError

from insights_gateway.core.config import (
    DEFAULT_BASE_URL,
    DEFAULT_FLOW_GROUP_ID,
    DEFAULT_FLOW_ID,
    GatewayConfig,
    load_config,
)


def test_defaults_without_environment():
    config = load_config()

    assert config.model_token is None
    assert config.application_token is None
    assert config.host == "0.0.0.0"
    assert config.port == 3000
    assert config.base_url == DEFAULT_BASE_URL
    assert config.flow_id == DEFAULT_FLOW_ID
    assert config.flow_group_id == DEFAULT_FLOW_GROUP_ID
    assert config.request_timeout == 30.0
    assert config.stream_idle_timeout == 30.0
    assert config.cache_ttl_seconds == 3600
    assert config.rate_limit_max == 100
    assert config.rate_limit_window_seconds == 60
    assert config.cors_max_age == 86400


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("MODEL_TOKEN", "  AstraCS:secret  ")
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("HOST", "127.0.0.1")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "60")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    config = GatewayConfig.from_env()

    assert config.application_token == "AstraCS:secret"
    assert config.port == 8080
    assert config.host == "127.0.0.1"
    assert config.cache_ttl_seconds == 60
    assert config.log_level == "debug"


def test_blank_token_treated_as_missing(monkeypatch):
    monkeypatch.setenv("MODEL_TOKEN", "   ")
    assert load_config().model_token is None


def test_unparseable_numbers_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("PORT", "not-a-port")
    monkeypatch.setenv("REQUEST_TIMEOUT_SECONDS", "soon")

    config = load_config()

    assert config.port == 3000
    assert config.request_timeout == 30.0


def test_token_hidden_from_repr():
    config = GatewayConfig(model_token="AstraCS:secret")
    assert "AstraCS:secret" not in repr(config)


def test_config_is_read_only():
    config = GatewayConfig()
    with pytest.raises(ValidationError):
        config.port = 9000


def test_rejects_invalid_port():
    with pytest.raises(ValidationError):
        GatewayConfig(port=0)
