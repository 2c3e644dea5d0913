"""Per-client rate limiting middleware for Starlette using throttled-py."""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from throttled import RateLimiterType, Throttled, rate_limiter, store

from visitor_analytics.adapters.web.request_metadata import metadata_from_request
from visitor_analytics.domain.models import RequestMetadata

logger = logging.getLogger(__name__)

ClientKey = Callable[[RequestMetadata], str]


def peer_address_key(metadata: RequestMetadata) -> str:
    """Key requests by the socket peer address.

    Forwarding headers are not consulted because any client can forge them.
    """
    if metadata.peer_address:
        return metadata.peer_address
    logger.warning("Could not determine client address, using 'unknown'")
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Enforces a token bucket of ``requests_per_minute`` per client key."""

    def __init__(
        self,
        app: Callable,
        requests_per_minute: int = 100,
        client_key: ClientKey | None = None,
    ) -> None:
        """Initialize rate limiting middleware.

        Args:
            app: The ASGI application to wrap.
            requests_per_minute: Maximum number of requests allowed per client per minute.
            client_key: Maps request metadata to the bucket key; defaults to the peer address.
        """
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.client_key = client_key or peer_address_key
        self.quota = rate_limiter.per_min(requests_per_minute, burst=requests_per_minute)
        self.rate_limiter_store = store.MemoryStore()
        logger.info(f"Rate limiting enabled: {requests_per_minute} requests per minute per client")

    def _extract_retry_after(self, result: Any) -> float:
        retry_after: float = 60.0
        state = getattr(result, "state", None)
        if state is not None and hasattr(state, "retry_after"):
            retry_after = float(state.retry_after)
        return retry_after

    def _create_rate_limit_response(self, key: str, retry_after: float) -> Response:
        logger.warning(f"Rate limit exceeded for {key}, retry after {retry_after} seconds")
        return JSONResponse(
            {"success": False, "message": "Too many requests, please try again later."},
            status_code=429,
            headers={"Retry-After": str(max(1, int(retry_after)))},
        )

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        """Process request and enforce rate limiting."""
        key = self.client_key(metadata_from_request(request))

        throttle = Throttled(
            key=key,
            using=RateLimiterType.TOKEN_BUCKET.value,
            quota=self.quota,
            store=self.rate_limiter_store,
        )

        result = throttle.limit()
        if result.limited:
            return self._create_rate_limit_response(key, self._extract_retry_after(result))

        response: Response = await call_next(request)
        return response
