"""
SnipBin Backend — Rate Limiting Middleware
===========================================

What:  Per-IP sliding window rate limiter.
How:   Keeps request timestamps per client IP in memory. Timestamps older
       than the window are dropped on each request; once the remaining count
       reaches the limit the request is answered with 429 and a Retry-After
       header by the application's ErrorMapper on the JSON surface.

Configuration:
    `ratelimiter` setting, "<requests>x<seconds>" (default "200x5").

Limitation:
    State is per process. Multiple workers each enforce the limit on their
    own share of the traffic.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, List

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from snipbin.api.error_handlers import ErrorMapper, Surface
from snipbin.config import Settings
from snipbin.exceptions import RateLimitExceededError

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Excluded paths:
        /health, /docs, /openapi.json, /redoc
    """

    EXCLUDED_PATHS = {"/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(self, app, settings: Settings, **kwargs):
        super().__init__(app, **kwargs)
        self.max_requests, self.window = settings.rate_limit
        self._requests: Dict[str, List[float]] = defaultdict(list)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.EXCLUDED_PATHS:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        recent = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = recent

        if len(recent) >= self.max_requests:
            retry_after = int(recent[0] + self.window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s: %d requests in %ds window",
                client_ip,
                len(recent),
                self.window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            mapper: ErrorMapper = request.app.state.error_mapper
            return mapper.emit(
                Surface.JSON,
                request,
                exc.status_code,
                exc.message,
                headers={"Retry-After": str(retry_after)},
            )

        recent.append(now)

        # Every 1000th tracked request, forget IPs with no traffic in the window
        if sum(len(v) for v in self._requests.values()) % 1000 == 0:
            self._cleanup_inactive_ips(window_start)

        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] < window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]

        if inactive_ips:
            logger.debug("Cleaned up %d inactive IP entries", len(inactive_ips))
