"""VPN/proxy classification of IP addresses."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from visitor_analytics.application.fail_open import fail_open
from visitor_analytics.domain.ip_validation import is_valid_public_ip
from visitor_analytics.domain.models import UNKNOWN, GeoLocation, VpnInfo, VpnType

if TYPE_CHECKING:
    from visitor_analytics.domain.ports import ExitNodeSet, LocationLookup, ReputationClient

logger = logging.getLogger(__name__)

TOR_CONFIDENCE = 0.95
ISP_CONFIDENCE = 0.7
REPUTATION_THRESHOLD = 0.5
REPUTATION_VPN_THRESHOLD = 0.8

# Substrings of ISP/organization names that indicate hosting or VPN networks.
ISP_INDICATORS: tuple[str, ...] = (
    "amazon",
    "google",
    "microsoft",
    "digitalocean",
    "vultr",
    "linode",
    "ovh",
    "hetzner",
    "vpn",
    "proxy",
    "hosting",
    "server",
    "datacenter",
    "cloud",
    "virtual",
    "dedicated",
)


@dataclass
class _Evidence:
    """Accumulates detection results; the strongest signal sets the type."""

    vpn_type: VpnType = VpnType.NONE
    confidence: float = 0.0
    methods: list[str] = field(default_factory=list)

    def add(self, method: str, vpn_type: VpnType, confidence: float) -> None:
        self.methods.append(method)
        if confidence > self.confidence or self.vpn_type is VpnType.NONE:
            self.vpn_type = vpn_type
        self.confidence = max(self.confidence, confidence)

    @property
    def is_vpn(self) -> bool:
        return bool(self.methods)


def match_isp_indicator(organization: str) -> str | None:
    """Return the first hosting/VPN indicator contained in ``organization``."""
    lowered = organization.lower()
    return next((indicator for indicator in ISP_INDICATORS if indicator in lowered), None)


class VpnClassifier:
    """Combines Tor membership, ISP heuristics and a reputation score.

    Confidence is the maximum over the methods that matched, so several
    weak signals never add up to a stronger one.
    """

    def __init__(
        self,
        exit_nodes: ExitNodeSet,
        location_lookup: LocationLookup,
        reputation_client: ReputationClient | None = None,
    ) -> None:
        """Initialize the classifier.

        Args:
            exit_nodes: Known Tor exit nodes, loaded once at startup.
            location_lookup: Offline geo lookup providing the ISP name.
            reputation_client: Optional third-party reputation scorer.
        """
        self.exit_nodes = exit_nodes
        self.location_lookup = location_lookup
        self.reputation_client = reputation_client

    @fail_open(VpnInfo.failed)
    async def classify(self, ip: str, location: GeoLocation | None = None) -> VpnInfo:
        """Classify ``ip``. Never raises; failures yield an ``unknown`` verdict.

        Args:
            ip: Address to classify.
            location: Already looked-up location, to avoid a second lookup.
        """
        evidence = _Evidence()
        is_tor_node = ip in self.exit_nodes

        if is_tor_node:
            evidence.add("tor_exit_node", VpnType.TOR, TOR_CONFIDENCE)

        if location is None:
            location = self.location_lookup.lookup(ip)

        indicator = match_isp_indicator(location.isp) if location.isp != UNKNOWN else None
        if indicator is not None:
            vpn_type = VpnType.VPN if "vpn" in indicator else VpnType.HOSTING_PROXY
            evidence.add("isp_analysis", vpn_type, ISP_CONFIDENCE)

        score = await self._reputation_score(ip)
        if score is not None and score > REPUTATION_THRESHOLD:
            vpn_type = VpnType.VPN if score > REPUTATION_VPN_THRESHOLD else VpnType.PROXY
            evidence.add("getipintel", vpn_type, score)

        verdict = VpnInfo(
            is_vpn=evidence.is_vpn,
            vpn_type=evidence.vpn_type,
            confidence=min(evidence.confidence, 1.0),
            detection_methods=evidence.methods,
            details={
                "torNode": is_tor_node,
                "organization": location.isp,
                "asn": location.asn,
            },
        )
        if verdict.is_vpn:
            logger.info(
                f"VPN/proxy detected for {ip}: type={verdict.vpn_type}, "
                f"confidence={verdict.confidence:.2f}, methods={verdict.detection_methods}"
            )
        return verdict

    async def _reputation_score(self, ip: str) -> float | None:
        if self.reputation_client is None or not is_valid_public_ip(ip):
            return None
        return await self.reputation_client.score(ip)
