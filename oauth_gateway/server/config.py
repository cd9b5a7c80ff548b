"""Configuration management for the FastAPI server.

This module handles server-level settings loaded from environment
variables. OAuth credentials live in ``OAuthGatewayConfig``; the values
here only shape the HTTP substrate and the rate-limiting gate.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration settings.

    Attributes:
        app_name: Application name
        version: Application version
        debug: Debug mode flag
        host: Server host address
        port: Server port number
        rate_limit_requests: Requests allowed per client per window
        rate_limit_window_seconds: Length of the rate-limit window
        client_ip_header: Header carrying the caller's address from the edge proxy
    """

    app_name: str = "Stateless OAuth Gateway"
    version: str = "1.0.0"
    debug: bool = False

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 8000

    # Rate limiting
    rate_limit_requests: int = 60
    rate_limit_window_seconds: float = 60.0
    client_ip_header: str = "cf-connecting-ip"

    class Config:
        """Pydantic configuration."""
        env_prefix = "OAUTH_GATEWAY_"
        case_sensitive = False


# Global settings instance
settings = Settings()
