"""
DevCamper Backend: Rate Limiting Middleware
=============================================

What:  Per-IP sliding window rate limiter (100 requests per 10 minutes by
       default, see settings.rate_limit_*).
How:   Each IP keeps a list of request timestamps; entries older than the
       window are dropped on every request, and a full window answers 429
       with a Retry-After header.

    Time complexity:  O(k) per request, k = requests of that IP in the window
    Space complexity: O(n × k), n = active IPs

In-memory and per process: with several workers each enforces its own
window. A shared store (Redis INCR + TTL) is needed for a global limit.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from devcamper.config import settings
from devcamper.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Excluded paths: /health and the API docs are never limited.

    Exceptions raised inside BaseHTTPMiddleware bypass the app's exception
    handlers, so the 429 body is built here in the same
    `{"success": false, "error": ...}` shape the handlers use.
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        max_requests: Optional[int] = None,
        window_seconds: Optional[int] = None,
        **kwargs,
    ):
        super().__init__(app, **kwargs)
        self.max_requests = max_requests or settings.rate_limit_requests
        self.window_seconds = window_seconds or settings.rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = (
            getattr(request.client, "host", "unknown")
            if request.client
            else "unknown"
        )

        now = time.time()
        window_start = now - self.window_seconds

        self._requests[client_ip] = [
            ts for ts in self._requests[client_ip] if ts > window_start
        ]

        if len(self._requests[client_ip]) >= self.max_requests:
            oldest = self._requests[client_ip][0]
            retry_after = int(oldest + self.window_seconds - now) + 1
            error = RateLimitExceededError(retry_after=retry_after)

            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(self._requests[client_ip]),
                self.window_seconds,
            )
            return JSONResponse(
                status_code=error.status_code,
                content={"success": False, "error": error.message},
                headers={"Retry-After": str(retry_after)},
            )

        self._requests[client_ip].append(now)

        # Every ~1000 tracked requests, forget IPs with nothing in the window
        if sum(len(v) for v in self._requests.values()) % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or max(timestamps) < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
