"""Aggregate queries over recorded visits for the admin dashboard."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, tzinfo
from typing import TYPE_CHECKING

from visitor_analytics.application.fail_open import fail_open
from visitor_analytics.domain.errors import StoreUnavailableError
from visitor_analytics.domain.models import (
    UNKNOWN,
    AnalyticsSummary,
    CountryStat,
    TimelineBucket,
    TimelineFilter,
    VisitorRecord,
)

if TYPE_CHECKING:
    from visitor_analytics.domain.ports import VisitorRepository

logger = logging.getLogger(__name__)

TOP_COUNTRIES_LIMIT = 10
MAX_RECENT_LIMIT = 1000


def _summary_fallback(error: Exception) -> AnalyticsSummary:
    if isinstance(error, StoreUnavailableError):
        return AnalyticsSummary(error=str(error))
    return AnalyticsSummary(error="Failed to fetch analytics")


class AnalyticsAggregator:
    """Read-only analytics queries. Each query degrades to an empty result."""

    def __init__(
        self,
        repository: VisitorRepository,
        timezone: tzinfo | None = None,
        default_recent_limit: int = 50,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        """Initialize the aggregator.

        Args:
            repository: Visitor record store.
            timezone: Zone defining "today"; None means the server's local zone.
            default_recent_limit: Number of recent visitors when no limit is given.
            clock: Source of the current time.
        """
        self.repository = repository
        self.timezone = timezone
        self.default_recent_limit = default_recent_limit
        self.clock = clock

    def start_of_today(self) -> datetime:
        """Return midnight of the current calendar day in the configured zone."""
        now = self.clock()
        local_now = now.astimezone(self.timezone) if self.timezone else now.astimezone()
        return local_now.replace(hour=0, minute=0, second=0, microsecond=0)

    def clamp_limit(self, limit: int | None) -> int:
        """Map missing or non-positive limits to the default and cap large ones."""
        if limit is None or limit <= 0:
            return self.default_recent_limit
        return min(limit, MAX_RECENT_LIMIT)

    @fail_open(_summary_fallback)
    async def summary(self) -> AnalyticsSummary:
        """Return total, today, distinct-country and VPN counters."""
        total_visitors = await self.repository.count()
        today_visitors = await self.repository.count(since=self.start_of_today())
        countries = await self.repository.distinct_countries()
        vpn_users = await self.repository.count_vpn()

        return AnalyticsSummary(
            total_visitors=total_visitors,
            today_visitors=today_visitors,
            unique_countries=len([c for c in countries if c and c != UNKNOWN]),
            vpn_users=vpn_users,
        )

    @fail_open(lambda _error: [])
    async def recent_visitors(self, limit: int | None = None) -> list[VisitorRecord]:
        """Return the most recent visits, newest first."""
        return await self.repository.recent(self.clamp_limit(limit))

    @fail_open(lambda _error: [])
    async def location_stats(self) -> list[CountryStat]:
        """Return the top countries by visit count with their cities."""
        return await self.repository.country_breakdown(TOP_COUNTRIES_LIMIT)

    @fail_open(lambda _error: [])
    async def timeline(self, timeline_filter: TimelineFilter) -> list[TimelineBucket]:
        """Return the visit histogram for the selected window.

        Buckets are hourly for the 24 hour window and daily otherwise. Empty
        buckets are omitted.
        """
        since = self.clock() - timeline_filter.window
        return await self.repository.timeline(since, hourly=timeline_filter.hourly)
