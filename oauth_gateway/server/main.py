"""FastAPI application entry point.

This module builds the gateway application: it wires the OAuth flow,
the rate-limiting middleware, the routes and the error boundary that
turns typed gateway errors into ``{"message": ...}`` JSON responses.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from oauth_gateway.oauth.config import OAuthGatewayConfig
from oauth_gateway.oauth.exceptions import OAuthGatewayError
from oauth_gateway.oauth.flow import OAuthFlow
from oauth_gateway.server import __version__
from oauth_gateway.server.config import Settings, settings as default_settings
from oauth_gateway.server.models import HealthResponse
from oauth_gateway.server.rate_limit import (
    FixedWindowRateLimiter,
    RateLimiter,
    RateLimitMiddleware,
)
from oauth_gateway.server.routes import CALLBACK_ROUTE_OPTIONS, authorized, router

# Configure logging
logging.basicConfig(
    level=logging.INFO if not default_settings.debug else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def gateway_exception_handler(request: Request, exc: OAuthGatewayError) -> JSONResponse:
    """Render a typed gateway error with its own status and message.

    Args:
        request: The request that caused the error
        exc: The gateway error that was raised

    Returns:
        JSON error response
    """
    if exc.status_code >= 500:
        logger.error(f"{request.url.path}: {exc.message}")
    else:
        logger.debug(f"{request.url.path}: {exc.status_code} {exc.message}")

    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for unhandled errors.

    Details are logged server-side and never returned to the client.
    """
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "Internal Server Error"},
    )


def create_app(
    config: Optional[OAuthGatewayConfig] = None,
    settings: Optional[Settings] = None,
    rate_limiter: Optional[RateLimiter] = None,
    flow: Optional[OAuthFlow] = None,
) -> FastAPI:
    """Create the gateway application.

    Args:
        config: OAuth configuration (loads from environment if not provided)
        settings: Server settings (module defaults if not provided)
        rate_limiter: Rate-limiting gate (fixed window from settings if not provided)
        flow: Pre-built flow (created from config if not provided)

    Returns:
        Configured FastAPI application

    Raises:
        ConfigurationError: If OAuth configuration is missing or invalid
    """
    settings = settings or default_settings
    if flow is None:
        flow = OAuthFlow(config or OAuthGatewayConfig.from_env())
    if rate_limiter is None:
        rate_limiter = FixedWindowRateLimiter(
            settings.rate_limit_requests, settings.rate_limit_window_seconds
        )

    app = FastAPI(
        title=settings.app_name,
        description="Stateless OAuth 2.0 authorization code gateway",
        version=__version__,
        debug=settings.debug,
    )
    app.state.flow = flow

    app.add_middleware(
        RateLimitMiddleware,
        limiter=rate_limiter,
        client_ip_header=settings.client_ip_header,
    )

    app.add_exception_handler(OAuthGatewayError, gateway_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(router)
    app.add_api_route(flow.config.callback_path, authorized, **CALLBACK_ROUTE_OPTIONS)

    @app.get(
        "/health",
        response_model=HealthResponse,
        status_code=status.HTTP_200_OK,
        tags=["health"],
        summary="Health check endpoint",
    )
    async def health_check() -> HealthResponse:
        """Health check endpoint."""
        return HealthResponse(status="healthy", timestamp=datetime.now(timezone.utc))

    logger.info(f"Created {settings.app_name} v{__version__}")
    logger.info(f"Provider: {flow.config.provider_name} ({flow.config.authorize_url})")
    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "oauth_gateway.server.main:create_app",
        factory=True,
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
        log_level="debug" if default_settings.debug else "info",
    )
