"""HTTP clients for third-party IP services."""

from visitor_analytics.adapters.http.getipintel_client import GetIpIntelClient
from visitor_analytics.adapters.http.ip_echo_client import PublicIpEchoClient
from visitor_analytics.adapters.http.tor_exit_node_list import TorExitNodeList

__all__ = ["GetIpIntelClient", "PublicIpEchoClient", "TorExitNodeList"]
