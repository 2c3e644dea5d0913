"""Ports (interfaces) for the ports-and-adapters architecture."""

from visitor_analytics.domain.ports.exit_node_set import ExitNodeSet
from visitor_analytics.domain.ports.location_lookup import LocationLookup
from visitor_analytics.domain.ports.public_ip_echo import PublicIpEcho
from visitor_analytics.domain.ports.reputation_client import ReputationClient
from visitor_analytics.domain.ports.visitor_repository import VisitorRepository
from visitor_analytics.domain.ports.visitor_tracker import (
    AnalyticsProvider,
    IpDiagnosticsProvider,
    VisitorTracker,
)

__all__ = [
    "AnalyticsProvider",
    "ExitNodeSet",
    "IpDiagnosticsProvider",
    "LocationLookup",
    "PublicIpEcho",
    "ReputationClient",
    "VisitorRepository",
    "VisitorTracker",
]
