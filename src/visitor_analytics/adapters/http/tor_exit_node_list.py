"""Known Tor exit nodes, loaded from the Tor Project's bulk exit list."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aiohttp

from visitor_analytics.adapters.http.api_request_logger import log_api_request

if TYPE_CHECKING:
    from aiohttp import ClientSession

logger = logging.getLogger(__name__)


def parse_exit_list(text: str) -> set[str]:
    """Parse the bulk exit list: one address per line, ``#`` lines are comments."""
    return {
        line.strip()
        for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    }


class TorExitNodeList:
    """Read-only set of Tor exit node addresses.

    Populated once by ``refresh()`` before the server starts accepting
    requests and never mutated afterwards. A failed fetch leaves the set
    empty, which silently disables Tor detection until the next restart.
    """

    def __init__(self, nodes: set[str] | None = None) -> None:
        self._nodes: frozenset[str] = frozenset(nodes or ())

    def __contains__(self, ip: object) -> bool:
        return ip in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    async def refresh(self, session: ClientSession, url: str, timeout: float = 10.0) -> None:
        """Fetch the bulk exit list once. Failures are logged, never raised."""
        log_api_request("tor-exit-list", url)
        try:
            async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as response:
                if response.status != 200:
                    logger.warning(
                        f"Could not load Tor exit nodes: HTTP {response.status}, "
                        "Tor detection disabled"
                    )
                    return
                text = await response.text()
        except Exception as e:
            logger.warning(f"Could not load Tor exit nodes ({e}), Tor detection disabled")
            return

        self._nodes = frozenset(parse_exit_list(text))
        logger.info(f"Loaded {len(self._nodes)} Tor exit nodes")
