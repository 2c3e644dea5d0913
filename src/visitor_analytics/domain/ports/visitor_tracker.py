"""Visitor tracking port used by the web adapter."""

from typing import Any, Protocol

from visitor_analytics.domain.models import (
    AnalyticsSummary,
    CountryStat,
    RequestMetadata,
    TimelineBucket,
    TimelineFilter,
    TrackingResult,
    VisitorRecord,
)


class VisitorTracker(Protocol):
    """Port for recording page visits."""

    async def track(self, metadata: RequestMetadata, session_id: object) -> TrackingResult:
        """Classify and persist a visit, returning the summary for the page."""
        ...


class AnalyticsProvider(Protocol):
    """Port for read-only aggregate queries over recorded visits."""

    async def summary(self) -> AnalyticsSummary:
        """Return headline counters."""
        ...

    async def recent_visitors(self, limit: int | None = None) -> list[VisitorRecord]:
        """Return the most recent visits, newest first."""
        ...

    async def location_stats(self) -> list[CountryStat]:
        """Return the top countries by visit count."""
        ...

    async def timeline(self, timeline_filter: TimelineFilter) -> list[TimelineBucket]:
        """Return visit histogram buckets for the selected window."""
        ...


class IpDiagnosticsProvider(Protocol):
    """Port for the IP detection diagnostic dump."""

    async def diagnose(self, metadata: RequestMetadata) -> dict[str, Any]:
        """Return every intermediate result of IP detection for a request."""
        ...
