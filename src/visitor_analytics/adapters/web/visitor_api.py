"""JSON API for visit tracking and the admin dashboard."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, Response
from starlette.routing import Route

from visitor_analytics.adapters.web.rate_limit_middleware import ClientKey, RateLimitMiddleware
from visitor_analytics.adapters.web.request_metadata import metadata_from_request
from visitor_analytics.domain.models import TimelineFilter

if TYPE_CHECKING:
    from starlette.requests import Request

    from visitor_analytics.adapters.config import AppConfig
    from visitor_analytics.domain.ports import (
        AnalyticsProvider,
        IpDiagnosticsProvider,
        VisitorRepository,
        VisitorTracker,
    )

logger = logging.getLogger(__name__)


async def read_json_body(request: Request) -> dict[str, Any]:
    """Return the JSON object body, treating a missing or malformed body as ``{}``."""
    raw = await request.body()
    if not raw:
        return {}
    try:
        body = json.loads(raw)
    except ValueError:
        logger.info("Ignoring malformed JSON request body")
        return {}
    return body if isinstance(body, dict) else {}


def parse_limit(value: str | None) -> int | None:
    """Parse the ``limit`` query parameter; anything non-numeric means "default"."""
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class VisitorApi:
    """Request handlers bound to the tracking and analytics ports."""

    def __init__(
        self,
        config: AppConfig,
        tracker: VisitorTracker,
        analytics: AnalyticsProvider,
        diagnostics: IpDiagnosticsProvider,
        repository: VisitorRepository,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.config = config
        self.tracker = tracker
        self.analytics = analytics
        self.diagnostics = diagnostics
        self.repository = repository
        self.clock = clock

    async def track_visitor(self, request: Request) -> Response:
        """Record the visit behind this request.

        Store outages are absorbed by the tracker, so the page always gets
        a 200 with the detected IP.
        """
        body = await read_json_body(request)
        result = await self.tracker.track(metadata_from_request(request), body.get("sessionId"))
        return JSONResponse(result.model_dump(by_alias=True))

    async def debug_ip(self, request: Request) -> Response:
        if not self.config.enable_debug_endpoint:
            return JSONResponse({"success": False, "message": "Not found"}, status_code=404)
        return JSONResponse(await self.diagnostics.diagnose(metadata_from_request(request)))

    async def admin_login(self, request: Request) -> Response:
        body = await read_json_body(request)
        if body.get("password") == self.config.admin_password:
            logger.info("Admin login succeeded")
            return JSONResponse({"success": True, "token": self.config.admin_token})

        logger.warning("Rejected admin login attempt")
        return JSONResponse({"success": False, "message": "Invalid password"}, status_code=401)

    async def admin_analytics(self, _request: Request) -> Response:
        summary = await self.analytics.summary()
        return JSONResponse(summary.model_dump(by_alias=True, exclude_none=True))

    async def admin_recent_visitors(self, request: Request) -> Response:
        limit = parse_limit(request.query_params.get("limit"))
        visitors = await self.analytics.recent_visitors(limit)
        return JSONResponse([v.model_dump(mode="json", by_alias=True) for v in visitors])

    async def admin_location_stats(self, _request: Request) -> Response:
        stats = await self.analytics.location_stats()
        return JSONResponse(
            [{"_id": stat.country, "count": stat.count, "cities": stat.cities} for stat in stats]
        )

    async def admin_timeline(self, request: Request) -> Response:
        timeline_filter = TimelineFilter.parse(request.query_params.get("filter"))
        buckets = await self.analytics.timeline(timeline_filter)
        return JSONResponse(
            [
                {
                    "_id": bucket.model_dump(exclude={"count"}, exclude_none=True),
                    "count": bucket.count,
                }
                for bucket in buckets
            ]
        )

    async def health(self, _request: Request) -> Response:
        """Liveness check. Reports the store state without connecting to it."""
        return JSONResponse(
            {
                "status": "OK",
                "timestamp": self.clock().isoformat(),
                "database": "connected" if self.repository.is_connected else "disconnected",
                "trustProxy": self.config.trust_proxy,
            }
        )

    def routes(self) -> list[Route]:
        return [
            Route("/api/track-visitor", self.track_visitor, methods=["POST"]),
            Route("/api/debug/ip", self.debug_ip, methods=["GET"]),
            Route("/api/admin/login", self.admin_login, methods=["POST"]),
            Route("/api/admin/analytics", self.admin_analytics, methods=["GET"]),
            Route("/api/admin/recent-visitors", self.admin_recent_visitors, methods=["GET"]),
            Route("/api/admin/location-stats", self.admin_location_stats, methods=["GET"]),
            Route("/api/admin/timeline", self.admin_timeline, methods=["GET"]),
            Route("/api/health", self.health, methods=["GET"]),
        ]


def create_app(
    config: AppConfig,
    tracker: VisitorTracker,
    analytics: AnalyticsProvider,
    diagnostics: IpDiagnosticsProvider,
    repository: VisitorRepository,
    client_key: ClientKey | None = None,
) -> Starlette:
    """Assemble the Starlette application.

    Args:
        config: Application configuration.
        tracker: Records visits.
        analytics: Serves the admin aggregates.
        diagnostics: Serves the IP detection dump.
        repository: Queried for connection state only.
        client_key: Rate limit bucket key; defaults to the socket peer address.
    """
    api = VisitorApi(config, tracker, analytics, diagnostics, repository)
    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=config.cors_allow_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
        ),
        Middleware(
            RateLimitMiddleware,
            requests_per_minute=config.rate_limit_per_minute,
            client_key=client_key,
        ),
    ]
    routes = api.routes()
    logger.info(f"Registered {len(routes)} API routes")
    return Starlette(routes=routes, middleware=middleware)
