"""Visitor repository port."""

from datetime import datetime
from typing import Protocol

from visitor_analytics.domain.models import CountryStat, TimelineBucket, VisitorRecord


class VisitorRepository(Protocol):
    """Port for the append-only visitor record store.

    Every method raises ``StoreUnavailableError`` when the store cannot be
    reached.
    """

    @property
    def is_connected(self) -> bool:
        """Whether a store connection is currently established."""
        ...

    async def add(self, record: VisitorRecord) -> None:
        """Append a visitor record."""
        ...

    async def count(self, since: datetime | None = None) -> int:
        """Count records, optionally only those at or after ``since``."""
        ...

    async def count_vpn(self) -> int:
        """Count records flagged as VPN/proxy traffic."""
        ...

    async def distinct_countries(self) -> list[str]:
        """Return every distinct ``location.country`` value."""
        ...

    async def recent(self, limit: int) -> list[VisitorRecord]:
        """Return the most recent records, newest first."""
        ...

    async def country_breakdown(self, limit: int) -> list[CountryStat]:
        """Return the top countries by record count with their distinct cities."""
        ...

    async def timeline(self, since: datetime, hourly: bool) -> list[TimelineBucket]:
        """Return non-empty hourly or daily buckets since ``since``, oldest first."""
        ...
