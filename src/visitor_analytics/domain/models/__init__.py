"""Domain models for visitor analytics."""

from visitor_analytics.domain.models.analytics import (
    AnalyticsSummary,
    CountryStat,
    TimelineBucket,
    TimelineFilter,
)
from visitor_analytics.domain.models.cleanup_summary import CleanupSummary
from visitor_analytics.domain.models.location import UNKNOWN, Coordinates, GeoLocation
from visitor_analytics.domain.models.request_metadata import RequestMetadata
from visitor_analytics.domain.models.visitor_record import (
    UNKNOWN_IP,
    BrowserInfo,
    TrackingResult,
    VisitorRecord,
)
from visitor_analytics.domain.models.vpn_info import VpnInfo, VpnType

__all__ = [
    "UNKNOWN",
    "UNKNOWN_IP",
    "AnalyticsSummary",
    "BrowserInfo",
    "CleanupSummary",
    "Coordinates",
    "CountryStat",
    "GeoLocation",
    "RequestMetadata",
    "TimelineBucket",
    "TimelineFilter",
    "TrackingResult",
    "VisitorRecord",
    "VpnInfo",
    "VpnType",
]
