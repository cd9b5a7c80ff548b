"""OAuth gateway endpoints.

This module exposes the three phases of the flow over HTTP. Handlers are
plain ``def`` functions so that the blocking token exchange runs in the
server's threadpool. Errors are raised as ``OAuthGatewayError`` subclasses
and rendered by the exception handlers in ``main``.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response, status
from fastapi.responses import RedirectResponse

from oauth_gateway.oauth.flow import OAuthFlow
from oauth_gateway.server.models import ErrorResponse, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])

TOKEN_CACHE_CONTROL = "private, max-age=600, s-maxage=600"

_error_responses = {
    status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
    status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorResponse},
}


def get_flow(request: Request) -> OAuthFlow:
    """Return the flow bound to the running application."""
    return request.app.state.flow


def _origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


@router.get(
    "/authorize",
    status_code=status.HTTP_302_FOUND,
    response_class=RedirectResponse,
    responses=_error_responses,
    summary="Start authorization",
    description="Redirects to the provider with an encrypted state carrying redirect_uri",
)
def authorize(
    request: Request,
    redirect_uri: Optional[str] = Query(default=None),
    flow: OAuthFlow = Depends(get_flow),
) -> RedirectResponse:
    """Initiate the authorization flow.

    Example:
        >>> GET /authorize?redirect_uri=https://app.example/cb
        >>> 302 Location: https://github.com/login/oauth/authorize?client_id=...&state=...
    """
    callback_url = flow.callback_url_for(_origin(request))
    url = flow.build_authorization_url(redirect_uri, callback_url)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


# Registered by create_app at the configured callback path
CALLBACK_ROUTE_OPTIONS = {
    "methods": ["GET"],
    "status_code": status.HTTP_302_FOUND,
    "response_class": RedirectResponse,
    "responses": {
        **_error_responses,
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
    "tags": ["oauth"],
    "summary": "Provider callback",
    "description": "Exchanges the code and redirects back to the application with a session",
}


def authorized(
    code: Optional[str] = Query(default=None),
    state: Optional[str] = Query(default=None),
    flow: OAuthFlow = Depends(get_flow),
) -> RedirectResponse:
    """Handle the provider callback.

    Example:
        >>> GET /authorized?code=abc&state=...
        >>> 302 Location: https://app.example/cb?appsinprogress-oauth=...
    """
    url = flow.complete_authorization(code, state)
    return RedirectResponse(url, status_code=status.HTTP_302_FOUND)


@router.get(
    "/token",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    responses=_error_responses,
    summary="Read access token",
    description="Returns the access token carried by a session token",
)
def token(
    response: Response,
    session: Optional[str] = Query(default=None),
    flow: OAuthFlow = Depends(get_flow),
) -> TokenResponse:
    """Recover the access token from a session.

    Example:
        >>> GET /token?session=...
        >>> {"token": "gho_..."}
    """
    access_token = flow.read_session(session)
    response.headers["Cache-Control"] = TOKEN_CACHE_CONTROL
    return TokenResponse(token=access_token)
