"""In-process visitor repository for local development and tests."""

from __future__ import annotations

from collections import Counter, defaultdict
from datetime import UTC, datetime

from visitor_analytics.domain.errors import StoreUnavailableError
from visitor_analytics.domain.models import CountryStat, TimelineBucket, VisitorRecord
from visitor_analytics.domain.timeline import bucket_timestamps


def _as_utc(timestamp: datetime) -> datetime:
    if timestamp.tzinfo is None:
        return timestamp.replace(tzinfo=UTC)
    return timestamp.astimezone(UTC)


class InMemoryVisitorRepository:
    """Keeps visitor records in a list. Contents are lost on restart.

    Setting ``available`` to False makes every operation raise
    ``StoreUnavailableError``, mimicking a store outage.
    """

    def __init__(self, records: list[VisitorRecord] | None = None) -> None:
        self._records: list[VisitorRecord] = list(records or [])
        self.available = True

    @property
    def is_connected(self) -> bool:
        return self.available

    def _records_or_raise(self) -> list[VisitorRecord]:
        if not self.available:
            raise StoreUnavailableError()
        return self._records

    async def add(self, record: VisitorRecord) -> None:
        self._records_or_raise().append(record)

    async def count(self, since: datetime | None = None) -> int:
        records = self._records_or_raise()
        if since is None:
            return len(records)
        since = _as_utc(since)
        return sum(1 for record in records if _as_utc(record.timestamp) >= since)

    async def count_vpn(self) -> int:
        return sum(1 for record in self._records_or_raise() if record.vpn_info.is_vpn)

    async def distinct_countries(self) -> list[str]:
        return sorted({record.location.country for record in self._records_or_raise()})

    async def recent(self, limit: int) -> list[VisitorRecord]:
        records = sorted(
            self._records_or_raise(), key=lambda record: _as_utc(record.timestamp), reverse=True
        )
        return records[:limit]

    async def country_breakdown(self, limit: int) -> list[CountryStat]:
        counts: Counter[str] = Counter()
        cities: dict[str, set[str]] = defaultdict(set)
        for record in self._records_or_raise():
            counts[record.location.country] += 1
            cities[record.location.country].add(record.location.city)
        return [
            CountryStat(country=country, count=count, cities=sorted(cities[country]))
            for country, count in counts.most_common(limit)
        ]

    async def timeline(self, since: datetime, hourly: bool) -> list[TimelineBucket]:
        since = _as_utc(since)
        return bucket_timestamps(
            (
                record.timestamp
                for record in self._records_or_raise()
                if _as_utc(record.timestamp) >= since
            ),
            hourly,
        )
