"""
OAuth 2.0 core for the stateless gateway.

This package implements the authorization code flow without any
server-side session store. All transient state is carried by the client
inside encrypted, self-expiring tokens.

Public API:
    OAuthGatewayConfig: Immutable gateway configuration
    StateCodec: Authenticated encryption of expiring state payloads
    encode_state / decode_state: One-shot codec functions
    ProviderClient: Code-for-token exchange
    OAuthFlow: Three-phase flow orchestrator

Exceptions:
    OAuthGatewayError: Base exception
    ConfigurationError: Configuration error
    MissingParameterError: Required parameter missing (400)
    StateInvalidError: State token rejected (400)
    StateExpiredError: State token past its expiry (400)
    UpstreamExchangeError: Provider exchange failed (500)
    RateLimitExceededError: Request denied by the rate limiter (429)
"""

from .config import OAuthGatewayConfig
from .exceptions import (
    ConfigurationError,
    MissingParameterError,
    OAuthGatewayError,
    RateLimitExceededError,
    StateExpiredError,
    StateInvalidError,
    UpstreamExchangeError,
)
from .flow import OAuthFlow
from .provider import ProviderClient
from .state_codec import (
    DEFAULT_STATE_TTL,
    SESSION_TTL,
    StateCodec,
    decode_state,
    derive_key,
    encode_state,
)

__all__ = [
    # Configuration
    "OAuthGatewayConfig",
    # State codec
    "StateCodec",
    "encode_state",
    "decode_state",
    "derive_key",
    "DEFAULT_STATE_TTL",
    "SESSION_TTL",
    # Provider
    "ProviderClient",
    # Flow
    "OAuthFlow",
    # Exceptions
    "OAuthGatewayError",
    "ConfigurationError",
    "MissingParameterError",
    "StateInvalidError",
    "StateExpiredError",
    "UpstreamExchangeError",
    "RateLimitExceededError",
]
