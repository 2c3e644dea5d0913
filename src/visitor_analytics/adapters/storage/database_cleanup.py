"""Destructive wipe of every collection in the visitor database."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from visitor_analytics.domain.models import CleanupSummary

if TYPE_CHECKING:
    from collections.abc import Callable

    from pymongo.asynchronous.database import AsyncDatabase

logger = logging.getLogger(__name__)


async def cleanup_database(
    database: AsyncDatabase,
    progress: Callable[[str], None] | None = None,
) -> CleanupSummary:
    """Drop every collection of ``database`` and verify none remain.

    Args:
        database: Connected database handle.
        progress: Optional callback receiving one line per step for the user.

    Returns:
        What was found, dropped and left over.
    """
    report = progress or (lambda _line: None)

    names = sorted(await database.list_collection_names())
    report(f"Found {len(names)} collections")

    dropped = 0
    documents = 0
    for name in names:
        count = await database[name].count_documents({})
        await database.drop_collection(name)
        dropped += 1
        documents += count
        logger.info(f"Dropped collection {name} ({count} documents)")
        report(f"  - {name}: dropped {count} documents")

    remaining = sorted(await database.list_collection_names())
    if remaining:
        logger.warning(f"Collections still present after cleanup: {', '.join(remaining)}")

    return CleanupSummary(
        collections_found=names,
        collections_dropped=dropped,
        documents_removed=documents,
        remaining_collections=remaining,
    )
