"""Shared fixtures for gateway API tests."""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from insights_gateway.api.main import create_app
from insights_gateway.core.config import GatewayConfig
from insights_gateway.services.result_cache import InMemoryResultCache
from upstream_test_utils import BASE_URL, TOKEN, FakeFlowAPI, session_response


@pytest.fixture
def fake_api():
    return FakeFlowAPI(run=httpx.Response(200, json=session_response(text="Rust is fast")))


@pytest.fixture
def gateway_config():
    return GatewayConfig(model_token=TOKEN, base_url=BASE_URL)


@pytest.fixture
def result_cache():
    return InMemoryResultCache()


@pytest.fixture
def app(gateway_config, result_cache, fake_api):
    return create_app(gateway_config, result_cache, fake_api.client())


@pytest.fixture
def client(app):
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client
