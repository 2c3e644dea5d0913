"""IP reputation port."""

from typing import Protocol


class ReputationClient(Protocol):
    """Port for third-party IP reputation scoring."""

    async def score(self, ip: str) -> float | None:
        """Return a proxy/VPN likelihood in [0, 1], or None when unavailable."""
        ...
