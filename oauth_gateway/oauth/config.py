"""
OAuth configuration for the stateless gateway.

This module provides the immutable configuration object handed to the
flow at construction. Configuration can be loaded from environment
variables or provided programmatically; it is never mutated at runtime.
"""

import os
from dataclasses import dataclass
from typing import Optional

from .exceptions import ConfigurationError
from .state_codec import DEFAULT_ITERATIONS, DEFAULT_STATE_SALT, MIN_ITERATIONS


@dataclass(frozen=True)
class OAuthGatewayConfig:
    """
    Configuration for the OAuth gateway.

    The key used for state tokens is derived from ``state_password`` with a
    fixed ``state_salt``, so the same passphrase always yields the same key
    and nothing besides the passphrase has to be stored. Passphrase entropy
    alone carries the security of every issued token.

    Attributes:
        client_id: OAuth App client ID registered with the provider
        client_secret: OAuth App client secret
        state_password: Passphrase the state encryption key is derived from
        authorize_url: Provider authorization endpoint
        token_url: Provider code-for-token endpoint
        provider_name: Display name used in client-facing error messages
        callback_url: Absolute callback URL; computed per request when None
        callback_path: Path of the callback route on this service
        session_param: Query parameter carrying the session token back to the app
        user_agent: User-Agent sent to the token endpoint
        state_salt: Fixed PBKDF2 salt for state key derivation
        state_iterations: PBKDF2 iteration count
        exchange_timeout: Socket timeout for the token exchange (None disables)
    """

    # Required - from the provider's developer settings
    client_id: str
    client_secret: str
    state_password: str

    # Provider endpoints
    authorize_url: str = "https://github.com/login/oauth/authorize"
    token_url: str = "https://github.com/login/oauth/access_token"
    provider_name: str = "GitHub"

    # Callback configuration
    callback_url: Optional[str] = None
    callback_path: str = "/authorized"

    # Wire names shared with client applications
    session_param: str = "appsinprogress-oauth"
    user_agent: str = "appsinprogress-oauth"

    # State key derivation
    state_salt: str = DEFAULT_STATE_SALT
    state_iterations: int = DEFAULT_ITERATIONS

    exchange_timeout: Optional[float] = 30.0

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.client_id:
            raise ConfigurationError("client_id cannot be empty")

        if not self.client_secret:
            raise ConfigurationError("client_secret cannot be empty")

        if not self.state_password:
            raise ConfigurationError("state_password cannot be empty")

        if not self.state_salt:
            raise ConfigurationError("state_salt cannot be empty")

        if self.state_iterations < MIN_ITERATIONS:
            raise ConfigurationError(
                f"state_iterations must be at least {MIN_ITERATIONS}, "
                f"got {self.state_iterations}"
            )

        if not self.session_param:
            raise ConfigurationError("session_param cannot be empty")

        if not self.callback_path.startswith("/"):
            raise ConfigurationError(
                f"callback_path must start with '/', got {self.callback_path!r}"
            )

        if self.exchange_timeout is not None and self.exchange_timeout <= 0:
            raise ConfigurationError("exchange_timeout must be positive")

    @classmethod
    def from_env(cls) -> "OAuthGatewayConfig":
        """
        Load configuration from environment variables.

        Required environment variables:
            OAUTH_CLIENT_ID: OAuth App client ID
            OAUTH_CLIENT_SECRET: OAuth App client secret
            OAUTH_STATE_PASSWORD: Passphrase for state token encryption

        Optional environment variables:
            OAUTH_AUTHORIZE_URL: Provider authorization endpoint
            OAUTH_TOKEN_URL: Provider token endpoint
            OAUTH_PROVIDER_NAME: Provider display name (default: GitHub)
            OAUTH_CALLBACK_URL: Fixed absolute callback URL
            OAUTH_CALLBACK_PATH: Callback route path (default: /authorized)
            OAUTH_SESSION_PARAM: Query parameter for the returned session token
            OAUTH_STATE_SALT: PBKDF2 salt for state key derivation
            OAUTH_USER_AGENT: User-Agent sent to the token endpoint
            OAUTH_STATE_ITERATIONS: PBKDF2 iteration count
            OAUTH_EXCHANGE_TIMEOUT: Token exchange timeout in seconds

        Returns:
            OAuthGatewayConfig instance

        Raises:
            ConfigurationError: If required environment variables are missing
                or a value cannot be parsed
        """
        client_id = os.environ.get("OAUTH_CLIENT_ID")
        client_secret = os.environ.get("OAUTH_CLIENT_SECRET")
        state_password = os.environ.get("OAUTH_STATE_PASSWORD")

        if not client_id or not client_secret or not state_password:
            raise ConfigurationError(
                "Missing OAuth gateway credentials. Set environment variables:\n"
                "  OAUTH_CLIENT_ID=your_client_id\n"
                "  OAUTH_CLIENT_SECRET=your_client_secret\n"
                "  OAUTH_STATE_PASSWORD=a_long_random_passphrase"
            )

        overrides = {}
        for field_name, env_name in (
            ("authorize_url", "OAUTH_AUTHORIZE_URL"),
            ("token_url", "OAUTH_TOKEN_URL"),
            ("provider_name", "OAUTH_PROVIDER_NAME"),
            ("callback_url", "OAUTH_CALLBACK_URL"),
            ("callback_path", "OAUTH_CALLBACK_PATH"),
            ("session_param", "OAUTH_SESSION_PARAM"),
            ("state_salt", "OAUTH_STATE_SALT"),
            ("user_agent", "OAUTH_USER_AGENT"),
        ):
            value = os.environ.get(env_name)
            if value:
                overrides[field_name] = value

        try:
            if os.environ.get("OAUTH_STATE_ITERATIONS"):
                overrides["state_iterations"] = int(os.environ["OAUTH_STATE_ITERATIONS"])
            if os.environ.get("OAUTH_EXCHANGE_TIMEOUT"):
                overrides["exchange_timeout"] = float(os.environ["OAUTH_EXCHANGE_TIMEOUT"])
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric OAuth setting: {e}") from e

        return cls(
            client_id=client_id,
            client_secret=client_secret,
            state_password=state_password,
            **overrides,
        )
