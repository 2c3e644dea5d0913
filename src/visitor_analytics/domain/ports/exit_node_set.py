"""Tor exit node set port."""

from typing import Protocol


class ExitNodeSet(Protocol):
    """Port for membership checks against known Tor exit nodes."""

    def __contains__(self, ip: object) -> bool:
        """Return True if ``ip`` is a known exit node."""
        ...
