"""Cleanup summary domain model."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class CleanupSummary:
    """Outcome of wiping every collection of the store."""

    collections_found: list[str] = field(default_factory=list)
    collections_dropped: int = 0
    documents_removed: int = 0
    remaining_collections: list[str] = field(default_factory=list)

    @property
    def verified(self) -> bool:
        """True when no collection survived the cleanup."""
        return not self.remaining_collections
