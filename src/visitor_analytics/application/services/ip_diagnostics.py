"""Diagnostic dump of IP detection for a single request."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from visitor_analytics.domain.ip_validation import is_valid_public_ip
from visitor_analytics.domain.models import RequestMetadata

if TYPE_CHECKING:
    from visitor_analytics.application.services.client_ip_resolver import ClientIpResolver
    from visitor_analytics.application.services.vpn_classifier import VpnClassifier
    from visitor_analytics.domain.ports import LocationLookup


class IpDiagnosticsService:
    """Runs every IP detection step and reports the intermediate results.

    The dump contains all request headers and must not be exposed publicly
    without access control.
    """

    def __init__(
        self,
        ip_resolver: ClientIpResolver,
        location_lookup: LocationLookup,
        vpn_classifier: VpnClassifier,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.ip_resolver = ip_resolver
        self.location_lookup = location_lookup
        self.vpn_classifier = vpn_classifier
        self.clock = clock

    async def diagnose(self, metadata: RequestMetadata) -> dict[str, Any]:
        detected_ip = self.ip_resolver.resolve_local(metadata)
        external_ip = None
        if self.ip_resolver.echo is not None:
            external_ip = await self.ip_resolver.echo.lookup(metadata)
        location = self.location_lookup.lookup(detected_ip)
        vpn_info = await self.vpn_classifier.classify(detected_ip, location)

        return {
            "detectedIP": detected_ip,
            "externalIP": external_ip,
            "transportIP": metadata.peer_address,
            "forwardedChain": metadata.forwarded_chain,
            "headers": dict(metadata.headers),
            "location": location.model_dump(mode="json", by_alias=True),
            "vpnInfo": vpn_info.model_dump(mode="json", by_alias=True),
            "isValidPublicIP": is_valid_public_ip(detected_ip),
            "timestamp": self.clock().isoformat(),
        }
