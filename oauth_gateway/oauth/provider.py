"""
Identity provider client for the OAuth gateway.

This module performs the single outbound call of the flow: exchanging an
authorization code for an access token at the provider's token endpoint.
The exchange is never retried; an authorization code is single-use and
must not be replayed.
"""

import logging

import requests

from .config import OAuthGatewayConfig
from .exceptions import UpstreamExchangeError

logger = logging.getLogger(__name__)


class ProviderClient:
    """
    Client for the provider's code-for-token endpoint.

    Any failure (transport error, non-success status, unreadable body or
    a body without an access token) is reported as UpstreamExchangeError.
    The caller cannot tell which side failed, so neither can the client.

    ``exchange_timeout`` only bounds how long the socket waits for the
    provider. A timed-out exchange fails like any other and is not retried.
    """

    def __init__(self, config: OAuthGatewayConfig):
        """
        Initialize provider client.

        Args:
            config: Gateway configuration with client credentials
        """
        self.config = config

    @property
    def failure_message(self) -> str:
        return f"Unable to load token from {self.config.provider_name}"

    def exchange_code(self, code: str, state: str) -> str:
        """
        Exchange authorization code for an access token.

        Args:
            code: Authorization code received on the callback
            state: State token received alongside the code

        Returns:
            Access token string

        Raises:
            UpstreamExchangeError: If the exchange fails for any reason
        """
        logger.info(f"Exchanging authorization code at {self.config.token_url}")

        try:
            response = requests.post(
                self.config.token_url,
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/x-www-form-urlencoded",
                    "User-Agent": self.config.user_agent,
                },
                data={
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                    "code": code,
                    "state": state,
                },
                timeout=self.config.exchange_timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Network error during token exchange: {e}")
            raise UpstreamExchangeError(self.failure_message) from e

        # requests treats 3xx as ok; only 2xx carries a token
        if not 200 <= response.status_code < 300:
            logger.error(f"Token exchange failed with status {response.status_code}")
            raise UpstreamExchangeError(self.failure_message)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Invalid response from token endpoint: {e}")
            raise UpstreamExchangeError(self.failure_message) from e

        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not isinstance(access_token, str) or not access_token:
            # GitHub reports a bad code as 200 with an "error" field
            error = data.get("error", "missing access_token") if isinstance(data, dict) else None
            logger.error(f"Token endpoint returned no access token: {error}")
            raise UpstreamExchangeError(self.failure_message)

        logger.info("Successfully obtained access token")
        return access_token
