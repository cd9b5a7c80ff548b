"""Tests for the identity provider client."""

from unittest import mock

import pytest
import requests

from oauth_gateway.oauth.config import OAuthGatewayConfig
from oauth_gateway.oauth.exceptions import UpstreamExchangeError
from oauth_gateway.oauth.provider import ProviderClient


def _response(status_code=200, json_data=None, json_error=None):
    response = mock.Mock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = json_data
    return response


class TestProviderClient:
    """Tests for ProviderClient class."""

    @pytest.fixture
    def config(self):
        """Create test OAuth config."""
        return OAuthGatewayConfig(
            client_id="test_client_id",
            client_secret="test_client_secret",
            state_password="test_password",
        )

    @mock.patch("requests.post")
    def test_exchange_code_success(self, mock_post, config):
        """exchange_code posts the code and returns the access token."""
        mock_post.return_value = _response(
            json_data={"access_token": "gho_abc", "token_type": "bearer", "scope": "repo"}
        )

        client = ProviderClient(config)
        token = client.exchange_code("auth_code_123", "state_token")

        assert token == "gho_abc"
        mock_post.assert_called_once()
        call_args = mock_post.call_args
        assert call_args[0][0] == config.token_url
        assert call_args[1]["headers"]["Accept"] == "application/json"
        assert call_args[1]["headers"]["Content-Type"] == "application/x-www-form-urlencoded"
        assert call_args[1]["headers"]["User-Agent"] == "appsinprogress-oauth"
        assert call_args[1]["data"] == {
            "client_id": "test_client_id",
            "client_secret": "test_client_secret",
            "code": "auth_code_123",
            "state": "state_token",
        }
        assert call_args[1]["timeout"] == 30.0

    @pytest.mark.parametrize("status_code", [400, 401, 404, 500, 502])
    @mock.patch("requests.post")
    def test_exchange_code_non_success_status(self, mock_post, status_code, config):
        """Non-success status raises UpstreamExchangeError."""
        mock_post.return_value = _response(status_code=status_code, json_data={})

        with pytest.raises(UpstreamExchangeError, match="Unable to load token from GitHub"):
            ProviderClient(config).exchange_code("code", "state")

    @pytest.mark.parametrize("status_code", [301, 302, 304, 307])
    @mock.patch("requests.post")
    def test_exchange_code_redirect_status(self, mock_post, status_code, config):
        """Redirect statuses are not success, even with a token-shaped body."""
        mock_post.return_value = _response(
            status_code=status_code, json_data={"access_token": "gho_unexpected"}
        )

        with pytest.raises(UpstreamExchangeError):
            ProviderClient(config).exchange_code("code", "state")

    @mock.patch("requests.post")
    def test_exchange_code_is_not_retried(self, mock_post, config):
        """A failed exchange is attempted exactly once."""
        mock_post.return_value = _response(status_code=503, json_data={})

        with pytest.raises(UpstreamExchangeError):
            ProviderClient(config).exchange_code("code", "state")

        assert mock_post.call_count == 1

    @mock.patch("requests.post")
    def test_exchange_code_timeout_is_not_retried(self, mock_post, config):
        """A timed-out exchange fails once and is not attempted again."""
        mock_post.side_effect = requests.Timeout("read timed out")

        with pytest.raises(UpstreamExchangeError):
            ProviderClient(config).exchange_code("code", "state")

        assert mock_post.call_count == 1

    @mock.patch("requests.post")
    def test_exchange_code_network_error(self, mock_post, config):
        """Transport errors raise UpstreamExchangeError."""
        mock_post.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(UpstreamExchangeError) as exc_info:
            ProviderClient(config).exchange_code("code", "state")

        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)
        assert mock_post.call_count == 1

    @mock.patch("requests.post")
    def test_exchange_code_invalid_json(self, mock_post, config):
        """Unparseable body raises UpstreamExchangeError."""
        mock_post.return_value = _response(json_error=ValueError("not json"))

        with pytest.raises(UpstreamExchangeError):
            ProviderClient(config).exchange_code("code", "state")

    @pytest.mark.parametrize(
        "body",
        [
            {"error": "bad_verification_code", "error_description": "expired"},
            {"access_token": ""},
            {"access_token": 12345},
            ["access_token"],
        ],
    )
    @mock.patch("requests.post")
    def test_exchange_code_missing_access_token(self, mock_post, body, config):
        """Success status without a usable access token raises UpstreamExchangeError."""
        mock_post.return_value = _response(json_data=body)

        with pytest.raises(UpstreamExchangeError):
            ProviderClient(config).exchange_code("code", "state")

    @mock.patch("requests.post")
    def test_failure_message_uses_provider_name(self, mock_post):
        """Error message names the configured provider."""
        config = OAuthGatewayConfig(
            client_id="id", client_secret="secret", state_password="pw", provider_name="Example"
        )
        mock_post.return_value = _response(status_code=500, json_data={})

        with pytest.raises(UpstreamExchangeError) as exc_info:
            ProviderClient(config).exchange_code("code", "state")

        assert exc_info.value.message == "Unable to load token from Example"
