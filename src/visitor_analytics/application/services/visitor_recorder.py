"""Visitor recording use case."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from visitor_analytics.application.fail_open import fail_open
from visitor_analytics.domain.models import (
    UNKNOWN,
    BrowserInfo,
    RequestMetadata,
    TrackingResult,
    VisitorRecord,
)

if TYPE_CHECKING:
    from visitor_analytics.application.services.client_ip_resolver import ClientIpResolver
    from visitor_analytics.application.services.vpn_classifier import VpnClassifier
    from visitor_analytics.domain.ports import LocationLookup, VisitorRepository

logger = logging.getLogger(__name__)

MAX_SESSION_ID_LENGTH = 128


def generate_session_id() -> str:
    """Create an opaque session id for clients that did not send one."""
    return uuid.uuid4().hex


def normalize_session_id(value: object, factory: Callable[[], str] = generate_session_id) -> str:
    """Return a usable session id, generating one for missing or malformed input."""
    if not isinstance(value, str) or not value.strip():
        return factory()
    return value.strip()[:MAX_SESSION_ID_LENGTH]


def extract_ipv6(metadata: RequestMetadata) -> str | None:
    """Return the first IPv6-looking token of ``X-Forwarded-For``."""
    return next((token for token in metadata.forwarded_chain if ":" in token), None)


def extract_browser_info(metadata: RequestMetadata) -> BrowserInfo:
    """Build browser metadata from request headers."""
    accept_language = metadata.header("accept-language")
    languages = [part.strip() for part in (accept_language or "").split(",") if part.strip()]
    return BrowserInfo(
        user_agent=metadata.header("user-agent") or UNKNOWN,
        language=languages or [UNKNOWN],
        referer=metadata.header("referer") or "Direct",
        accept_encoding=metadata.header("accept-encoding") or UNKNOWN,
    )


class VisitorRecorder:
    """Assembles and persists a ``VisitorRecord`` for each tracked page load.

    Classification always runs; persistence is best effort. When the store
    is unavailable the visit is logged and lost, and the caller still gets
    a successful result.
    """

    def __init__(
        self,
        ip_resolver: ClientIpResolver,
        location_lookup: LocationLookup,
        vpn_classifier: VpnClassifier,
        repository: VisitorRepository,
        session_id_factory: Callable[[], str] = generate_session_id,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self.ip_resolver = ip_resolver
        self.location_lookup = location_lookup
        self.vpn_classifier = vpn_classifier
        self.repository = repository
        self.session_id_factory = session_id_factory
        self.clock = clock

    async def track(self, metadata: RequestMetadata, session_id: object) -> TrackingResult:
        """Track one visit and return the summary sent back to the page."""
        ip = await self.ip_resolver.resolve(metadata)
        location = self.location_lookup.lookup(ip)
        vpn_info = await self.vpn_classifier.classify(ip, location)

        record = VisitorRecord(
            ipv4=ip,
            ipv6=extract_ipv6(metadata),
            location=location,
            vpn_info=vpn_info,
            browser_info=extract_browser_info(metadata),
            timestamp=self.clock(),
            session_id=normalize_session_id(session_id, self.session_id_factory),
            raw_headers=dict(metadata.headers),
        )

        if await self._persist(record):
            logger.debug(f"Visitor record saved for session {record.session_id}")
        else:
            logger.warning(f"Visitor store unavailable, visit from {ip} not saved")

        logger.info(
            f"Visitor tracked: {ip} from {location.display_name} "
            f"({'VPN detected' if vpn_info.is_vpn else 'clean IP'})"
        )
        return TrackingResult(
            detected_ip=ip,
            location=location.display_name,
            vpn_detected=vpn_info.is_vpn,
        )

    @fail_open(lambda _error: False)
    async def _persist(self, record: VisitorRecord) -> bool:
        await self.repository.add(record)
        return True
