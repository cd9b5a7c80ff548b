"""
Exception classes for the OAuth gateway.

Every error raised by the flow carries the HTTP status it maps to and a
message that is safe to return to the client. The server converts these
into JSON responses at a single boundary.
"""


class OAuthGatewayError(Exception):
    """Base exception for all OAuth gateway errors."""

    status_code: int = 500

    def __init__(self, message: str = "Internal Server Error"):
        super().__init__(message)
        self.message = message


class ConfigurationError(OAuthGatewayError):
    """Gateway configuration error (missing or invalid configuration)."""

    pass


class MissingParameterError(OAuthGatewayError):
    """A required request parameter was not supplied."""

    status_code = 400


class StateInvalidError(OAuthGatewayError):
    """
    State token could not be accepted.

    Covers malformed encoding, failed authentication (tampering or wrong
    passphrase), a malformed payload and expiry. The client always sees
    the same message.
    """

    status_code = 400
    public_message = "State is invalid"

    def __init__(self, reason: str = "State is invalid"):
        super().__init__(self.public_message)
        self.reason = reason


class StateExpiredError(StateInvalidError):
    """State token decrypted correctly but its embedded expiry has passed."""

    def __init__(self, reason: str = "State is expired"):
        super().__init__(reason)


class UpstreamExchangeError(OAuthGatewayError):
    """Failed to exchange the authorization code at the provider."""

    status_code = 500


class RateLimitExceededError(OAuthGatewayError):
    """The rate-limiting gate denied the request."""

    status_code = 429

    def __init__(self, message: str = "Too many requests"):
        super().__init__(message)
