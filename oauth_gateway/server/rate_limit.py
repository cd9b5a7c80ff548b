"""Request rate limiting for the gateway.

The gate is an injected capability: anything implementing
``RateLimiter.allow(key)`` can be plugged into ``RateLimitMiddleware``.
The middleware runs once per request, before any route handler, and is
keyed by the caller's network address.
"""

import logging
import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from oauth_gateway.oauth.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimiter(ABC):
    """Allow/deny decision for a per-request key."""

    @abstractmethod
    def allow(self, key: str) -> bool:
        """Return True if a request for ``key`` may proceed."""


class AllowAllRateLimiter(RateLimiter):
    """Rate limiter that never denies."""

    def allow(self, key: str) -> bool:
        return True


class FixedWindowRateLimiter(RateLimiter):
    """
    In-memory fixed-window counter per key.

    Counters are shared by every worker thread of the process, so they are
    guarded by a lock. Windows that have ended are pruned on access.

    Attributes:
        limit: Requests allowed per key in one window
        window_seconds: Window length in seconds
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (window start, count)
        self._windows: Dict[str, Tuple[float, int]] = {}

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            self._prune(now)
            start, count = self._windows.get(key, (now, 0))
            if count >= self.limit:
                return False
            self._windows[key] = (start, count + 1)
            return True

    def _prune(self, now: float) -> None:
        expired = [
            key
            for key, (start, _) in self._windows.items()
            if now - start >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]


def client_key(request: Request, header: str) -> str:
    """Key a request by the edge-supplied address header, then the peer address."""
    forwarded = request.headers.get(header) if header else None
    if forwarded:
        return forwarded.strip()
    return request.client.host if request.client else ""


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Per-IP rate limiting middleware.

    Denied requests receive ``429 {"message": ...}`` and never reach a
    route handler.
    """

    def __init__(self, app, limiter: RateLimiter, client_ip_header: str = "cf-connecting-ip"):
        super().__init__(app)
        self.limiter = limiter
        self.client_ip_header = client_ip_header

    async def dispatch(self, request: Request, call_next):
        key = client_key(request, self.client_ip_header)

        if not self.limiter.allow(key):
            logger.warning(f"Rate limit exceeded for {key or 'unknown client'}")
            error = RateLimitExceededError()
            return JSONResponse(
                status_code=error.status_code,
                content={"message": error.message},
            )

        return await call_next(request)
