"""Operator command that wipes every collection of the visitor database."""

import argparse
import asyncio
import logging
import sys
from collections.abc import Callable

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import ConnectionFailure, OperationFailure, PyMongoError

from visitor_analytics.adapters.config import AppConfig
from visitor_analytics.adapters.storage import cleanup_database
from visitor_analytics.domain.models import CleanupSummary

logger = logging.getLogger(__name__)

RULE = "=" * 40

AUTH_HINTS = [
    "Check MONGODB_URI in your environment or .env file",
    "Verify your database credentials",
    "Ensure your IP address is allowed by the MongoDB server",
]
NETWORK_HINTS = [
    "Check your network connection",
    "Verify the MongoDB hostname and port",
    "Check that the MongoDB server is running and reachable",
]


def print_warning(out: Callable[[str], None] = print) -> None:
    """Explain what would be deleted and how to confirm."""
    out(RULE)
    out("WARNING: DATABASE CLEANUP")
    out(RULE)
    out("This will permanently delete ALL data in the visitor database!")
    out("")
    out("What will be deleted:")
    out("  - All visitor tracking data")
    out("  - All analytics history")
    out("  - All collections and documents")
    out("")
    out("THIS ACTION CANNOT BE UNDONE!")
    out("")
    out("To proceed, run:")
    out("  visitor-cleanup --confirm")
    out("")
    out("Operation cancelled for safety")


def troubleshooting_hints(error: Exception) -> list[str]:
    """Pick hints matching a connection error; unknown errors get none."""
    if isinstance(error, OperationFailure) and (
        error.code == 18 or "auth" in str(error).lower()
    ):
        return AUTH_HINTS
    if isinstance(error, ConnectionFailure):
        return NETWORK_HINTS
    return []


def print_summary(summary: CleanupSummary, out: Callable[[str], None] = print) -> None:
    out("")
    out(RULE)
    out("CLEANUP SUMMARY")
    out(RULE)
    out(f"Collections dropped: {summary.collections_dropped}")
    out(f"Total documents removed: {summary.documents_removed}")
    out("")
    out("Verifying cleanup...")
    if summary.verified:
        out("Verification passed: all collections removed")
    else:
        out(f"Warning: {len(summary.remaining_collections)} collection(s) still exist:")
        for name in summary.remaining_collections:
            out(f"  - {name}")


async def run_cleanup(database: AsyncDatabase, out: Callable[[str], None] = print) -> int:
    """Drop everything in ``database`` and report; returns the process exit code."""
    summary = await cleanup_database(database, progress=out)
    if not summary.collections_found:
        out("No collections found in database")
        return 0
    print_summary(summary, out)
    return 0


async def cleanup(config: AppConfig, out: Callable[[str], None] = print) -> int:
    """Connect to the configured MongoDB and wipe it."""
    out(RULE)
    out("Starting visitor database cleanup")
    out(RULE)
    out(f"Connecting to MongoDB database '{config.mongodb_database}'...")

    client: AsyncMongoClient = AsyncMongoClient(
        config.mongodb_uri,
        serverSelectionTimeoutMS=config.mongodb_server_selection_timeout_ms,
    )
    try:
        await client.admin.command("ping")
        out("Connected to MongoDB")
        return await run_cleanup(client[config.mongodb_database], out)
    except PyMongoError as e:
        logger.error(f"Database cleanup failed: {e}")
        out(f"Database cleanup failed: {e}")
        hints = troubleshooting_hints(e)
        if hints:
            out("")
            out("TROUBLESHOOTING:")
            for hint in hints:
                out(f"  - {hint}")
        return 1
    finally:
        await client.close()
        out("MongoDB connection closed")


def main() -> None:
    """Console script entry point."""
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    parser = argparse.ArgumentParser(
        description="Delete ALL collections of the visitor analytics database",
        epilog="Without --confirm nothing is deleted.",
    )
    parser.add_argument(
        "--confirm", action="store_true", help="Actually drop every collection"
    )
    args = parser.parse_args()

    if not args.confirm:
        print_warning()
        sys.exit(0)

    sys.exit(asyncio.run(cleanup(AppConfig())))


if __name__ == "__main__":
    main()
