"""
Rate limiting middleware for the webhook endpoints.

In-memory sliding window per client IP, owned by the middleware instance.
Meta sends from a small pool of addresses, so the limit is generous; it is
there to blunt floods against a public URL, not to shape normal traffic.
"""

import logging
import time
from collections import defaultdict
from collections.abc import Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)


class SlidingWindowLimiter:
    def __init__(self, max_requests: int, window_seconds: int, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._hits: dict[str, list[float]] = defaultdict(list)

    def is_limited(self, key: str) -> bool:
        """Record a hit for key; True if it is over the limit (the rejected hit is not recorded)."""
        now = self._clock()
        cutoff = now - self.window_seconds
        hits = [ts for ts in self._hits[key] if ts > cutoff]
        if len(hits) >= self.max_requests:
            self._hits[key] = hits
            return True
        hits.append(now)
        self._hits[key] = hits
        return False

    def reset(self) -> None:
        self._hits.clear()


def get_client_ip(request: Request) -> str:
    """Caller address as seen by the edge proxy, falling back to the socket peer."""
    for header in ("X-Forwarded-For", "X-Real-IP"):
        value = request.headers.get(header)
        if value:
            # leftmost hop is the original client
            return value.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """429s callers that exceed the window on any of the given path prefixes."""

    def __init__(self, app, rate_limited_paths: list[str], settings: Settings | None = None):
        super().__init__(app)
        self.rate_limited_paths = rate_limited_paths
        self.settings = settings or default_settings
        self.limiter = SlidingWindowLimiter(
            self.settings.rate_limit_requests,
            self.settings.rate_limit_window_seconds,
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if not self.settings.rate_limit_enabled or not path.startswith(tuple(self.rate_limited_paths)):
            return await call_next(request)

        client_ip = get_client_ip(request)
        if not self.limiter.is_limited(client_ip):
            return await call_next(request)

        window = self.limiter.window_seconds
        logger.warning(f"429 for {client_ip} on {path}: over {self.limiter.max_requests} calls in {window}s")
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"error": "Rate limit exceeded", "retry_after": window},
            headers={"Retry-After": str(window)},
        )
