"""Client for external "what is my IP" echo services."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

import aiohttp

from visitor_analytics.adapters.http.api_request_logger import log_api_request
from visitor_analytics.domain.ip_validation import is_valid_public_ip

if TYPE_CHECKING:
    from aiohttp import ClientSession

    from visitor_analytics.domain.models import RequestMetadata

logger = logging.getLogger(__name__)

USER_AGENT = "Visitor-Analytics/1.0"


def extract_echoed_ip(body: str) -> str | None:
    """Pull the address out of an echo response.

    Services answer either with JSON carrying ``ip`` (ipify, ipapi, seeip)
    or ``origin`` (httpbin), or with the bare address as plain text.
    """
    text = body.strip()
    if not text:
        return None
    try:
        data: Any = json.loads(text)
    except ValueError:
        return text
    if isinstance(data, dict):
        value = data.get("ip") or data.get("origin")
        return str(value).strip() if value else None
    if isinstance(data, str):
        return data.strip() or None
    return None


class PublicIpEchoClient:
    """Asks echo services in sequence until one returns a public address."""

    def __init__(
        self,
        session: ClientSession | None,
        services: list[str],
        timeout: float = 3.0,
    ) -> None:
        """Initialize the client.

        Args:
            session: Shared aiohttp session; without one no lookups are made.
            services: Service URLs, tried in order.
            timeout: Total timeout per service in seconds.
        """
        self._session = session
        self.services = list(services)
        self.timeout = timeout

    def _build_headers(self, metadata: RequestMetadata) -> dict[str, str]:
        return {
            "User-Agent": USER_AGENT,
            "X-Forwarded-For": metadata.header("x-forwarded-for") or "",
            "X-Real-IP": metadata.header("x-real-ip") or "",
        }

    async def _query(
        self, session: ClientSession, url: str, headers: dict[str, str]
    ) -> str | None:
        log_api_request("ip-echo", url, headers=headers)
        async with session.get(
            url, headers=headers, timeout=aiohttp.ClientTimeout(total=self.timeout)
        ) as response:
            if response.status != 200:
                logger.info(f"IP service {url} returned status {response.status}")
                return None
            return extract_echoed_ip(await response.text())

    async def lookup(self, metadata: RequestMetadata) -> str | None:
        """Return the first validated public IP reported by a service, or None."""
        session = self._session
        if not session:
            return None

        headers = self._build_headers(metadata)
        for url in self.services:
            try:
                ip = await self._query(session, url, headers)
            except Exception as e:
                logger.info(f"IP service {url} failed: {e}")
                continue
            if ip and is_valid_public_ip(ip):
                logger.info(f"External service {url} detected IP: {ip}")
                return ip

        logger.warning("All external IP services failed")
        return None
