"""GetIPIntel reputation client.

API Documentation: https://getipintel.net/free-proxy-vpn-tor-detection-api/
The free tier is rate limited; rate-limit and error answers are treated as
"no score".
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import aiohttp

from visitor_analytics.adapters.http.api_request_logger import log_api_request

if TYPE_CHECKING:
    from aiohttp import ClientSession

logger = logging.getLogger(__name__)

GETIPINTEL_URL = "https://check.getipintel.net/check.php"


def parse_score(data: Any) -> float | None:
    """Extract the probability from a GetIPIntel JSON answer.

    ``result`` is a number (sometimes sent as a string) in [0, 1]; negative
    values are error codes.
    """
    if not isinstance(data, dict):
        return None
    try:
        score = float(data.get("result"))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if score < 0 or score > 1:
        return None
    return score


class GetIpIntelClient:
    """Scores IP addresses for proxy/VPN likelihood via GetIPIntel."""

    def __init__(
        self,
        session: ClientSession | None,
        contact_email: str,
        timeout: float = 5.0,
        url: str = GETIPINTEL_URL,
    ) -> None:
        self._session = session
        self.contact_email = contact_email
        self.timeout = timeout
        self.url = url

    async def score(self, ip: str) -> float | None:
        """Return the proxy/VPN probability of ``ip`` or None when unavailable."""
        if not self._session:
            return None

        params = {"ip": ip, "contact": self.contact_email, "format": "json", "flags": "m"}
        log_api_request("getipintel", self.url, params=params)
        try:
            async with self._session.get(
                self.url, params=params, timeout=aiohttp.ClientTimeout(total=self.timeout)
            ) as response:
                if response.status != 200:
                    # 429 when the free quota is exhausted
                    logger.info(f"GetIPIntel returned status {response.status}")
                    return None
                data = await response.json(content_type=None)
        except Exception as e:
            logger.info(f"GetIPIntel lookup failed: {e}")
            return None

        return parse_score(data)
