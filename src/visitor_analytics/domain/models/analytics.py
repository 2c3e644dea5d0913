"""Analytics result domain models."""

from datetime import UTC, datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class AnalyticsSummary(BaseModel):
    """Headline counters shown on the admin dashboard."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    total_visitors: int = 0
    today_visitors: int = 0
    unique_countries: int = 0
    vpn_users: int = 0
    error: str | None = None


class CountryStat(BaseModel):
    """Visit count and distinct cities for one country."""

    model_config = ConfigDict(frozen=True)

    country: str
    count: int
    cities: list[str]


class TimelineFilter(StrEnum):
    """Selectable timeline windows."""

    LAST_24H = "24h"
    LAST_7D = "7d"
    LAST_30D = "30d"

    @classmethod
    def parse(cls, value: str | None) -> "TimelineFilter":
        """Parse a query value, falling back to the 24 hour window."""
        try:
            return cls(value or cls.LAST_24H)
        except ValueError:
            return cls.LAST_24H

    @property
    def window(self) -> timedelta:
        return {
            TimelineFilter.LAST_24H: timedelta(hours=24),
            TimelineFilter.LAST_7D: timedelta(days=7),
            TimelineFilter.LAST_30D: timedelta(days=30),
        }[self]

    @property
    def hourly(self) -> bool:
        """Whether buckets are hours (True) or days (False)."""
        return self is TimelineFilter.LAST_24H


class TimelineBucket(BaseModel):
    """Number of visits in one hour or one day (UTC).

    ``hour`` is None for daily buckets.
    """

    model_config = ConfigDict(frozen=True)

    year: int
    month: int
    day: int
    hour: int | None = None
    count: int

    @property
    def start(self) -> datetime:
        return datetime(self.year, self.month, self.day, self.hour or 0, tzinfo=UTC)

    @property
    def label(self) -> str:
        """Short axis label: ``H:00`` for hourly buckets, ``D/M`` for daily ones."""
        if self.hour is not None:
            return f"{self.hour}:00"
        return f"{self.day}/{self.month}"
