"""Application services (use cases) for visitor analytics."""

from visitor_analytics.application.services.analytics_aggregator import AnalyticsAggregator
from visitor_analytics.application.services.client_ip_resolver import (
    ClientIpResolver,
    IpNetwork,
    parse_trusted_networks,
    trusted_proxy_address,
)
from visitor_analytics.application.services.ip_diagnostics import IpDiagnosticsService
from visitor_analytics.application.services.visitor_recorder import VisitorRecorder
from visitor_analytics.application.services.vpn_classifier import VpnClassifier

__all__ = [
    "AnalyticsAggregator",
    "ClientIpResolver",
    "IpDiagnosticsService",
    "IpNetwork",
    "VisitorRecorder",
    "VpnClassifier",
    "parse_trusted_networks",
    "trusted_proxy_address",
]
