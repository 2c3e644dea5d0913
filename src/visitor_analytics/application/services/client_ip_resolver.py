"""Client IP resolution from request transport and proxy headers."""

from __future__ import annotations

import ipaddress
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING

from visitor_analytics.domain.ip_validation import is_valid_public_ip, strip_ipv4_mapped_prefix
from visitor_analytics.domain.models import UNKNOWN_IP, RequestMetadata

if TYPE_CHECKING:
    from visitor_analytics.domain.ports import PublicIpEcho

logger = logging.getLogger(__name__)

IpNetwork = ipaddress.IPv4Network | ipaddress.IPv6Network
IpCandidateSource = Callable[[RequestMetadata], str | None]

# Checked in this order; the first header whose first token is public wins.
PROXY_HEADERS: tuple[str, ...] = (
    "cf-connecting-ip",  # Cloudflare
    "cf-pseudo-ipv4",  # Cloudflare IPv4 pseudo address
    "x-forwarded-for",
    "x-real-ip",  # nginx
    "x-client-ip",  # Apache
    "x-forwarded",
    "x-cluster-client-ip",
    "forwarded-for",
    "forwarded",  # RFC 7239
    "true-client-ip",  # Akamai, Cloudflare
    "x-original-forwarded-for",
    "x-appengine-remote-addr",  # Google App Engine
    "x-azure-clientip",
    "x-azure-socketip",
)

TRUST_PROXY_PRESETS: dict[str, tuple[str, ...]] = {
    "loopback": ("127.0.0.0/8", "::1/128"),
    "linklocal": ("169.254.0.0/16", "fe80::/10"),
    "uniquelocal": ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16", "fc00::/7"),
}


def parse_trusted_networks(entries: Iterable[str]) -> tuple[IpNetwork, ...]:
    """Expand trust-proxy entries (preset names or CIDRs) into networks.

    Raises:
        ValueError: If an entry is neither a preset name nor a valid network.
    """
    networks: list[IpNetwork] = []
    for entry in entries:
        name = entry.strip().lower()
        for cidr in TRUST_PROXY_PRESETS.get(name, (entry.strip(),)):
            networks.append(ipaddress.ip_network(cidr, strict=False))
    return tuple(networks)


def _parse_ip(value: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    try:
        parsed = ipaddress.ip_address(strip_ipv4_mapped_prefix(value.strip()))
    except ValueError:
        return None
    if isinstance(parsed, ipaddress.IPv6Address) and parsed.ipv4_mapped is not None:
        return parsed.ipv4_mapped
    return parsed


def _is_trusted(value: str, networks: Sequence[IpNetwork]) -> bool:
    parsed = _parse_ip(value)
    if parsed is None:
        return False
    return any(parsed.version == network.version and parsed in network for network in networks)


def trusted_proxy_address(trusted_networks: Sequence[IpNetwork]) -> IpCandidateSource:
    """Build the source for the transport address behind trusted proxies.

    Starting at the socket peer, hops are taken from the right end of
    ``X-Forwarded-For`` for as long as the current address is a trusted
    proxy. The address reached is accepted unless it is loopback or
    link-local.
    """

    def transport_address(metadata: RequestMetadata) -> str | None:
        if not metadata.peer_address:
            return None

        address = metadata.peer_address
        for hop in reversed(metadata.forwarded_chain):
            if not _is_trusted(address, trusted_networks):
                break
            address = hop

        parsed = _parse_ip(address)
        if parsed is None or parsed.is_loopback or parsed.is_link_local:
            return None
        return strip_ipv4_mapped_prefix(address.strip())

    return transport_address


def proxy_header_address(metadata: RequestMetadata) -> str | None:
    """Return the first public address found in the known proxy headers."""
    for header in PROXY_HEADERS:
        value = metadata.header(header)
        if not value:
            continue
        candidate = value.split(",")[0].strip()
        if is_valid_public_ip(candidate):
            logger.debug(f"Using header {header}: {candidate}")
            return strip_ipv4_mapped_prefix(candidate)
    return None


def socket_peer_address(metadata: RequestMetadata) -> str | None:
    """Return the raw socket peer address if it is public."""
    peer = metadata.peer_address
    if peer and is_valid_public_ip(peer):
        return strip_ipv4_mapped_prefix(peer.strip())
    return None


class ClientIpResolver:
    """Resolves the best-guess public IP of the client behind a request.

    Local sources are evaluated in order and the first one yielding a value
    wins. When that value is missing or not public, the external echo
    services are asked as a last resort.
    """

    def __init__(
        self,
        sources: Sequence[IpCandidateSource],
        echo: PublicIpEcho | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            sources: Ordered candidate sources, each ``(metadata) -> ip | None``.
            echo: Optional external "what is my IP" client.
        """
        self.sources = list(sources)
        self.echo = echo

    @classmethod
    def with_default_sources(
        cls,
        trusted_networks: Sequence[IpNetwork],
        echo: PublicIpEcho | None = None,
    ) -> ClientIpResolver:
        """Create a resolver with the standard transport/header/socket chain."""
        return cls(
            [
                trusted_proxy_address(trusted_networks),
                proxy_header_address,
                socket_peer_address,
            ],
            echo=echo,
        )

    def resolve_local(self, metadata: RequestMetadata) -> str:
        """Resolve from transport and headers only, without network calls."""
        for source in self.sources:
            candidate = source(metadata)
            if candidate:
                return candidate
        return UNKNOWN_IP

    async def resolve(self, metadata: RequestMetadata) -> str:
        """Resolve the client IP, falling back to external echo services."""
        ip = self.resolve_local(metadata)
        if is_valid_public_ip(ip):
            return ip

        if self.echo is not None:
            logger.info(f"Local IP detection gave '{ip}', trying external IP services")
            external_ip = await self.echo.lookup(metadata)
            if external_ip:
                return external_ip

        logger.warning("Could not determine a public client IP, using 'unknown'")
        return UNKNOWN_IP
