"""
Per-IP rate limiting with slowapi.

One fixed-window limit applies to every endpoint (default 100 requests per
15 minutes per client IP). Counters live in slowapi's in-memory storage, so
they are per process and reset on restart.

The limit is enforced by the `enforce_rate_limit` dependency attached to
every router in zesty/main.py. It hits the limiter's fixed-window strategy
directly, so it does not depend on SlowAPIMiddleware resolving the matched
route.
"""

import logging
import math
import time

from fastapi import Request
from fastapi.responses import JSONResponse
from limits import RateLimitItem, parse
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

RATE_LIMIT_SCOPE = "zesty"


class RateLimitExceededError(Exception):
    """Raised by enforce_rate_limit when a client used up its window."""

    def __init__(self, client: str, limit: str, retry_after: int):
        super().__init__(f"{client} exceeded {limit}")
        self.client = client
        self.limit = limit
        self.retry_after = retry_after


class RateLimitGuard:
    """
    A slowapi Limiter plus the single limit it enforces.

    Args:
        rate_limit: limits notation, e.g. "100/15minutes"
    """

    def __init__(self, rate_limit: str):
        self.rate_limit = rate_limit
        self.item: RateLimitItem = parse(rate_limit)
        self.limiter = Limiter(
            key_func=get_remote_address,
            default_limits=[rate_limit],
            strategy="fixed-window",
        )

    def retry_after_seconds(self, client: str) -> int:
        """Seconds until the client's current window resets (at least 1)."""
        reset_time, _ = self.limiter.limiter.get_window_stats(self.item, RATE_LIMIT_SCOPE, client)
        return max(1, math.ceil(reset_time - time.time()))

    def hit(self, client: str) -> None:
        """
        Count one request for `client`.

        Raises:
            RateLimitExceededError: when the window is already full
        """
        if not self.limiter.enabled:
            return
        if not self.limiter.limiter.hit(self.item, RATE_LIMIT_SCOPE, client):
            raise RateLimitExceededError(client, self.rate_limit, self.retry_after_seconds(client))


async def enforce_rate_limit(request: Request) -> None:
    """Router dependency applying the app's RateLimitGuard to the caller's IP."""
    guard: RateLimitGuard = request.app.state.rate_limit_guard
    guard.hit(get_remote_address(request))


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceededError) -> JSONResponse:
    """429 response with a Retry-After header."""
    logger.warning(f"Rate limit exceeded for {exc.client}: {exc.limit}")

    return JSONResponse(
        status_code=429,
        content={
            "error": "rate_limit_exceeded",
            "details": f"Too many requests. Please wait {exc.retry_after} seconds before retrying.",
            "retry_after_seconds": exc.retry_after,
        },
        headers={"Retry-After": str(exc.retry_after)}
    )
