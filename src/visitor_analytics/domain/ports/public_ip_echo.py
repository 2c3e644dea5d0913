"""Public IP echo port."""

from typing import Protocol

from visitor_analytics.domain.models import RequestMetadata


class PublicIpEcho(Protocol):
    """Port for external "what is my IP" services."""

    async def lookup(self, metadata: RequestMetadata) -> str | None:
        """Return the first validated public IP reported by an echo service."""
        ...
