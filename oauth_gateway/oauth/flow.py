"""
OAuth flow orchestrator.

This module implements the three phases of the stateless authorization
code flow. Nothing is stored on the server between phases; the return
URL and later the access token travel through the client inside
encrypted, self-expiring state tokens.

    Idle --initiate--> AwaitingCallback --callback--> Authorized
    Authorized --token query--> Authorized

Any failure is terminal for the request; the client restarts at Idle.
"""

import logging
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .config import OAuthGatewayConfig
from .exceptions import MissingParameterError, StateExpiredError, StateInvalidError
from .provider import ProviderClient
from .state_codec import DEFAULT_STATE_TTL, SESSION_TTL, StateCodec

logger = logging.getLogger(__name__)


def set_query_param(url: str, name: str, value: str) -> str:
    """
    Return ``url`` with query parameter ``name`` set to ``value``.

    An existing parameter of the same name is replaced; other parameters
    and the fragment are kept.
    """
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != name]
    query.append((name, value))
    return urlunsplit(parts._replace(query=urlencode(query)))


class OAuthFlow:
    """
    High-level coordinator for the three-phase OAuth flow.

    This is the interface the HTTP layer calls. Each method maps to one
    route and raises typed, status-carrying errors from ``exceptions``.

    Example:
        flow = OAuthFlow(OAuthGatewayConfig.from_env())
        url = flow.build_authorization_url(
            "https://app.example/cb", "https://gw.example/authorized"
        )
    """

    def __init__(
        self,
        config: OAuthGatewayConfig,
        codec: Optional[StateCodec] = None,
        provider: Optional[ProviderClient] = None,
    ):
        """
        Initialize OAuth flow.

        Args:
            config: Immutable gateway configuration
            codec: State codec (derived from config if not provided)
            provider: Token endpoint client (created from config if not provided)
        """
        self.config = config
        self.codec = codec or StateCodec.from_config(config)
        self.provider = provider or ProviderClient(config)

    def callback_url_for(self, origin: str) -> str:
        """
        Resolve the callback URL the provider redirects back to.

        Args:
            origin: Scheme and host of the incoming request

        Returns:
            The configured callback URL, or ``origin`` + callback path
        """
        if self.config.callback_url:
            return self.config.callback_url
        return origin.rstrip("/") + self.config.callback_path

    def build_authorization_url(self, redirect_uri: Optional[str], callback_url: str) -> str:
        """
        Initiate phase: build the provider authorization URL.

        Args:
            redirect_uri: Where the client app wants to land afterwards
            callback_url: This service's callback URL

        Returns:
            Provider authorize URL carrying a 5-minute state token

        Raises:
            MissingParameterError: If redirect_uri is missing
        """
        if not redirect_uri:
            raise MissingParameterError('"redirect_uri" is required')

        state = self.codec.encode_for(redirect_uri, DEFAULT_STATE_TTL)
        url = self.config.authorize_url
        for name, value in (
            ("client_id", self.config.client_id),
            ("redirect_uri", callback_url),
            ("state", state),
        ):
            url = set_query_param(url, name, value)

        logger.info("Redirecting to provider for authorization")
        return url

    def complete_authorization(self, code: Optional[str], state: Optional[str]) -> str:
        """
        Callback phase: exchange the code and hand a session to the app.

        Args:
            code: Authorization code from the provider
            state: State token issued by build_authorization_url

        Returns:
            The original redirect_uri with the session token appended

        Raises:
            MissingParameterError: If code or state is missing
            StateInvalidError: If state is expired, tampered or malformed
            UpstreamExchangeError: If the provider exchange fails
        """
        if not code or not state:
            raise MissingParameterError("Missing required parameters")

        return_url = self._decode(state, "callback state")
        access_token = self.provider.exchange_code(code, state)

        session = self.codec.encode_for(access_token, SESSION_TTL)
        logger.info("Authorization complete, redirecting back to application")
        return set_query_param(return_url, self.config.session_param, session)

    def read_session(self, session: Optional[str]) -> str:
        """
        Token query phase: recover the access token from a session token.

        Args:
            session: Session token issued by complete_authorization

        Returns:
            The provider access token

        Raises:
            MissingParameterError: If session is missing
            StateInvalidError: If session is expired, tampered or malformed
        """
        if not session:
            raise MissingParameterError("Session is required")

        return self._decode(session, "session")

    def _decode(self, token: str, kind: str) -> str:
        try:
            return self.codec.decode(token)
        except StateExpiredError:
            logger.info(f"Rejected expired {kind} token")
            raise
        except StateInvalidError as e:
            logger.warning(f"Rejected invalid {kind} token: {e.reason}")
            raise
