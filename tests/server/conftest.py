"""Pytest fixtures for FastAPI server tests.

This module provides the gateway application, test clients and a shared
state codec for the HTTP-level tests.
"""

from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from oauth_gateway.oauth.config import OAuthGatewayConfig
from oauth_gateway.oauth.flow import OAuthFlow
from oauth_gateway.oauth.state_codec import StateCodec
from oauth_gateway.server.config import Settings
from oauth_gateway.server.main import create_app
from oauth_gateway.server.rate_limit import AllowAllRateLimiter

STATE_PASSWORD = "server-test-passphrase"


@pytest.fixture(scope="session")
def gateway_config() -> OAuthGatewayConfig:
    """OAuth configuration used by every server test."""
    return OAuthGatewayConfig(
        client_id="test_client_id",
        client_secret="test_client_secret",
        state_password=STATE_PASSWORD,
    )


@pytest.fixture(scope="session")
def codec(gateway_config: OAuthGatewayConfig) -> StateCodec:
    """State codec sharing the gateway's passphrase.

    Derived once per session since key derivation is deliberately slow.
    """
    return StateCodec.from_config(gateway_config)


@pytest.fixture(scope="function")
def app(gateway_config: OAuthGatewayConfig, codec: StateCodec) -> FastAPI:
    """Create the gateway application without rate limiting."""
    flow = OAuthFlow(gateway_config, codec=codec)
    return create_app(
        settings=Settings(),
        rate_limiter=AllowAllRateLimiter(),
        flow=flow,
    )


@pytest.fixture(scope="function")
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Create a test client for the gateway.

    Example:
        >>> def test_health(client):
        >>>     response = client.get("/health")
        >>>     assert response.status_code == 200
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def lenient_client(app: FastAPI) -> Generator[TestClient, None, None]:
    """Test client that returns 500 responses instead of re-raising server errors."""
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
