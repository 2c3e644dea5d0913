"""Terminal admin dashboard for a running visitor analytics service."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import aiohttp

from visitor_analytics.adapters.config import AppConfig
from visitor_analytics.domain.models import UNKNOWN, TimelineFilter

logger = logging.getLogger(__name__)

BAR_WIDTH = 30
RECENT_LIMIT = 10
REFRESH_SECONDS = 30.0
REQUEST_TIMEOUT = 10.0

# Request timeouts and undecodable bodies are not ClientErrors
REQUEST_ERRORS = (aiohttp.ClientError, TimeoutError, ValueError)


class DashboardError(Exception):
    """Raised when the service rejects the login or cannot be reached."""


def country_flag(country_code: str | None) -> str:
    """Regional-indicator flag for an ISO 3166 alpha-2 code, a globe otherwise."""
    if not country_code or len(country_code) != 2 or not country_code.isalpha():
        return "🌍"
    return "".join(chr(0x1F1E6 + ord(c) - ord("A")) for c in country_code.upper())


def time_ago(timestamp: datetime, now: datetime) -> str:
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=UTC)
    seconds = max(0, int((now - timestamp).total_seconds()))
    if seconds < 60:
        return f"{seconds}s ago"
    if seconds < 3600:
        return f"{seconds // 60}m ago"
    if seconds < 86400:
        return f"{seconds // 3600}h ago"
    return f"{seconds // 86400}d ago"


def bar(count: int, max_count: int, width: int = BAR_WIDTH) -> str:
    """Horizontal bar scaled to ``max_count``; any non-zero count gets at least one block."""
    if max_count <= 0 or count <= 0:
        return ""
    return "█" * max(1, round(count / max_count * width))


def render_summary(analytics: dict[str, Any]) -> list[str]:
    lines = [
        f"Total visitors:   {analytics.get('totalVisitors', 0)}",
        f"Today:            {analytics.get('todayVisitors', 0)}",
        f"Countries:        {analytics.get('uniqueCountries', 0)}",
        f"VPN/proxy users:  {analytics.get('vpnUsers', 0)}",
    ]
    if analytics.get("error"):
        lines.append(f"(service reported: {analytics['error']})")
    return lines


def render_recent_visitors(visitors: list[dict[str, Any]], now: datetime) -> list[str]:
    if not visitors:
        return ["No visitors yet"]

    lines = []
    for visitor in visitors:
        location = visitor.get("location") or {}
        country = location.get("country", UNKNOWN)
        city = location.get("city", UNKNOWN)
        vpn_badge = " [VPN]" if (visitor.get("vpnInfo") or {}).get("isVPN") else ""
        try:
            ago = time_ago(datetime.fromisoformat(visitor["timestamp"]), now)
        except (KeyError, TypeError, ValueError):
            ago = "?"
        lines.append(
            f"{country_flag(country)} {city}, {country}{vpn_badge}  "
            f"{visitor.get('ipv4', 'unknown')}  {ago}"
        )
    return lines


def render_location_stats(stats: list[dict[str, Any]]) -> list[str]:
    """Country ranking; records without a resolved country are left out."""
    known = [stat for stat in stats if stat.get("_id") != UNKNOWN]
    if not known:
        return ["No location data"]

    max_count = max(stat.get("count", 0) for stat in known)
    return [
        f"{country_flag(stat['_id'])} {stat['_id']:<4} {stat.get('count', 0):>6} "
        f"{bar(stat.get('count', 0), max_count)}"
        for stat in known
    ]


def bucket_label(bucket_id: dict[str, Any], timeline_filter: TimelineFilter) -> str:
    if timeline_filter.hourly:
        return f"{bucket_id.get('hour', 0)}:00"
    return f"{bucket_id.get('day')}/{bucket_id.get('month')}"


def render_timeline(buckets: list[dict[str, Any]], timeline_filter: TimelineFilter) -> list[str]:
    if not buckets:
        return ["No data available"]

    max_count = max(bucket.get("count", 0) for bucket in buckets)
    return [
        f"{bucket_label(bucket.get('_id') or {}, timeline_filter):>6} "
        f"{bar(bucket.get('count', 0), max_count)} {bucket.get('count', 0)}"
        for bucket in buckets
    ]


def render_dashboard(
    data: dict[str, Any], timeline_filter: TimelineFilter, now: datetime
) -> str:
    """Render every dashboard section as plain text."""
    sections = [
        ("Overview", render_summary(data["analytics"])),
        ("Recent visitors", render_recent_visitors(data["recent"], now)),
        ("Top countries", render_location_stats(data["locations"])),
        (f"Timeline ({timeline_filter.value})", render_timeline(data["timeline"], timeline_filter)),
    ]
    out: list[str] = [f"Visitor analytics - {now.strftime('%Y-%m-%d %H:%M:%S')} UTC"]
    for title, lines in sections:
        out.append("")
        out.append(title)
        out.append("-" * len(title))
        out.extend(lines)
    return "\n".join(out)


class DashboardClient:
    """Talks to the admin API of a running service."""

    def __init__(
        self, session: aiohttp.ClientSession, base_url: str, timeout: float = REQUEST_TIMEOUT
    ):
        self._session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)

    async def login(self, password: str) -> str:
        """Log in and return the admin token."""
        async with self._session.post(
            f"{self.base_url}/api/admin/login", json={"password": password}, timeout=self.timeout
        ) as response:
            try:
                data = await response.json(content_type=None)
            except ValueError as e:
                raise DashboardError(f"Unexpected login response (HTTP {response.status})") from e
        if not isinstance(data, dict):
            data = {}
        if response.status != 200 or not data.get("success"):
            raise DashboardError(data.get("message") or f"Login failed (HTTP {response.status})")
        return str(data.get("token", ""))

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        async with self._session.get(
            f"{self.base_url}{path}", params=params, timeout=self.timeout
        ) as response:
            response.raise_for_status()
            return await response.json(content_type=None)

    async def fetch(self, timeline_filter: TimelineFilter, limit: int) -> dict[str, Any]:
        """Fetch every dashboard section concurrently."""
        analytics, recent, locations, timeline = await asyncio.gather(
            self._get("/api/admin/analytics"),
            self._get("/api/admin/recent-visitors", {"limit": str(limit)}),
            self._get("/api/admin/location-stats"),
            self._get("/api/admin/timeline", {"filter": timeline_filter.value}),
        )
        return {
            "analytics": analytics,
            "recent": recent,
            "locations": locations,
            "timeline": timeline,
        }


async def run_dashboard(
    args: argparse.Namespace,
    out: Callable[[str], None] = print,
    clock: Callable[[], datetime] = lambda: datetime.now(UTC),
) -> int:
    timeline_filter = TimelineFilter.parse(args.filter)
    async with aiohttp.ClientSession() as session:
        client = DashboardClient(session, args.url, timeout=args.timeout)
        try:
            await client.login(args.password)
        except DashboardError as e:
            out(f"Error: {e}")
            return 1
        except REQUEST_ERRORS as e:
            out(f"Error: could not reach {args.url}: {e!r}")
            return 1

        while True:
            try:
                data = await client.fetch(timeline_filter, args.limit)
            except REQUEST_ERRORS as e:
                logger.warning(f"Failed to load analytics: {e!r}")
                if not args.watch:
                    out(f"Error: failed to load analytics: {e!r}")
                    return 1
            else:
                if args.json:
                    out(json.dumps(data, indent=2))
                else:
                    out(render_dashboard(data, timeline_filter, clock()))

            if not args.watch:
                return 0
            await asyncio.sleep(args.watch)
            out("")


def main() -> None:
    """Console script entry point."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )
    config = AppConfig()

    parser = argparse.ArgumentParser(description="Visitor analytics admin dashboard")
    parser.add_argument(
        "--url",
        default=f"http://localhost:{config.port}",
        help="Base URL of the running service",
    )
    parser.add_argument(
        "--password",
        default=config.admin_password,
        help="Admin password (defaults to ADMIN_PASSWORD)",
    )
    parser.add_argument(
        "--filter",
        choices=[f.value for f in TimelineFilter],
        default=TimelineFilter.LAST_24H.value,
        help="Timeline window",
    )
    parser.add_argument(
        "--limit", type=int, default=RECENT_LIMIT, help="Number of recent visitors to show"
    )
    parser.add_argument(
        "--watch",
        type=float,
        nargs="?",
        const=REFRESH_SECONDS,
        default=None,
        help=f"Refresh every N seconds (default {REFRESH_SECONDS:g})",
    )
    parser.add_argument(
        "--timeout", type=float, default=REQUEST_TIMEOUT, help="Per-request timeout in seconds"
    )
    parser.add_argument("--json", action="store_true", help="Output raw JSON")
    args = parser.parse_args()

    try:
        sys.exit(asyncio.run(run_dashboard(args)))
    except KeyboardInterrupt:
        sys.exit(0)


if __name__ == "__main__":
    main()
