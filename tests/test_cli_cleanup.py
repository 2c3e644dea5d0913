"""Tests for the database cleanup command."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from visitor_analytics.adapters.storage import cleanup_database
from visitor_analytics.cli_cleanup import (
    AUTH_HINTS,
    NETWORK_HINTS,
    main,
    run_cleanup,
    troubleshooting_hints,
)


def _database(collections: dict[str, int], remaining: list[str] | None = None) -> MagicMock:
    """Fake database whose collections hold the given document counts."""
    database = MagicMock()
    database.list_collection_names = AsyncMock(
        side_effect=[list(collections), remaining or []]
    )
    handles = {}
    for name, count in collections.items():
        handle = MagicMock()
        handle.count_documents = AsyncMock(return_value=count)
        handles[name] = handle
    database.__getitem__.side_effect = handles.__getitem__
    database.drop_collection = AsyncMock()
    return database


@pytest.mark.asyncio
async def test_empty_store_drops_nothing_and_exits_zero() -> None:
    """Given a database without collections, when cleaning, then zero are dropped and exit is 0."""
    lines: list[str] = []
    database = _database({})

    exit_code = await run_cleanup(database, lines.append)

    assert exit_code == 0
    assert "No collections found in database" in lines
    database.drop_collection.assert_not_awaited()


@pytest.mark.asyncio
async def test_cleanup_drops_every_collection_and_sums_documents() -> None:
    """Given two collections, when cleaning, then both are dropped and documents summed."""
    database = _database({"visitors": 5, "sessions": 2})

    summary = await cleanup_database(database)

    assert summary.collections_dropped == 2
    assert summary.documents_removed == 7
    assert summary.verified is True
    assert database.drop_collection.await_count == 2


@pytest.mark.asyncio
async def test_cleanup_reports_leftover_collections() -> None:
    """Given a collection that survives, when cleaning, then verification fails in the report."""
    lines: list[str] = []
    database = _database({"visitors": 1}, remaining=["visitors"])

    exit_code = await run_cleanup(database, lines.append)

    assert exit_code == 0
    assert any("1 collection(s) still exist" in line for line in lines)


def test_troubleshooting_hints_match_error_kind() -> None:
    """Given auth and network failures, when picking hints, then the matching list is returned."""
    assert troubleshooting_hints(OperationFailure("Authentication failed.", code=18)) == AUTH_HINTS
    assert troubleshooting_hints(ServerSelectionTimeoutError("no servers")) == NETWORK_HINTS
    assert troubleshooting_hints(RuntimeError("other")) == []


def test_without_confirm_nothing_is_deleted(capsys: pytest.CaptureFixture[str]) -> None:
    """Given no --confirm flag, when running, then a warning is printed and exit is 0."""
    with (
        patch("sys.argv", ["visitor-cleanup"]),
        patch("visitor_analytics.cli_cleanup.cleanup") as cleanup,
        pytest.raises(SystemExit) as exc_info,
    ):
        main()

    assert exc_info.value.code == 0
    cleanup.assert_not_called()
    output = capsys.readouterr().out
    assert "WARNING: DATABASE CLEANUP" in output
    assert "visitor-cleanup --confirm" in output
