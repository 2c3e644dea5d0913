"""Timeline bucketing helpers shared by storage adapters."""

from collections import Counter
from collections.abc import Iterable
from datetime import UTC, datetime

from visitor_analytics.domain.models.analytics import TimelineBucket


def bucket_key(timestamp: datetime, hourly: bool) -> tuple[int, int, int, int | None]:
    """Return the UTC (year, month, day, hour) key a timestamp falls into.

    Naive timestamps are taken to be UTC already.
    """
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    else:
        timestamp = timestamp.astimezone(UTC)
    return (
        timestamp.year,
        timestamp.month,
        timestamp.day,
        timestamp.hour if hourly else None,
    )


def bucket_timestamps(timestamps: Iterable[datetime], hourly: bool) -> list[TimelineBucket]:
    """Count timestamps per hour or day, oldest bucket first.

    Only buckets that received at least one timestamp are returned.
    """
    counts = Counter(bucket_key(timestamp, hourly) for timestamp in timestamps)
    return [
        TimelineBucket(year=year, month=month, day=day, hour=hour, count=count)
        for (year, month, day, hour), count in sorted(
            counts.items(), key=lambda item: (*item[0][:3], item[0][3] or 0)
        )
    ]
