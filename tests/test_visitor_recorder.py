"""Tests for the visitor recording use case."""

from datetime import UTC, datetime
from unittest.mock import MagicMock

import pytest

from visitor_analytics.adapters.http import TorExitNodeList
from visitor_analytics.adapters.storage import InMemoryVisitorRepository
from visitor_analytics.application.services import (
    ClientIpResolver,
    VisitorRecorder,
    VpnClassifier,
    parse_trusted_networks,
)
from visitor_analytics.application.services.visitor_recorder import (
    extract_browser_info,
    extract_ipv6,
    normalize_session_id,
)
from visitor_analytics.domain.models import GeoLocation, RequestMetadata

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


def _recorder(repository: InMemoryVisitorRepository) -> VisitorRecorder:
    lookup = MagicMock()
    lookup.lookup.return_value = GeoLocation(country="US", city="Mountain View", isp="Google LLC")
    resolver = ClientIpResolver.with_default_sources(parse_trusted_networks(["loopback"]))
    return VisitorRecorder(
        resolver,
        lookup,
        VpnClassifier(TorExitNodeList(), lookup),
        repository,
        session_id_factory=lambda: "generated",
        clock=lambda: NOW,
    )


@pytest.mark.asyncio
async def test_track_persists_record_and_returns_summary() -> None:
    """Given a request from a public IP, when tracking, then the record is stored."""
    repository = InMemoryVisitorRepository()
    metadata = RequestMetadata(
        headers={"x-forwarded-for": "8.8.8.8", "user-agent": "TestBrowser/1.0"},
        peer_address="127.0.0.1",
    )

    result = await _recorder(repository).track(metadata, "session-1")

    assert result.success is True
    assert result.detected_ip == "8.8.8.8"
    assert result.location == "Mountain View, US"
    assert result.vpn_detected is True

    [record] = await repository.recent(10)
    assert record.ipv4 == "8.8.8.8"
    assert record.session_id == "session-1"
    assert record.timestamp == NOW
    assert record.browser_info.user_agent == "TestBrowser/1.0"
    assert record.raw_headers["user-agent"] == "TestBrowser/1.0"
    assert record.detection_method == "enhanced"


@pytest.mark.asyncio
async def test_track_succeeds_when_store_is_unavailable() -> None:
    """Given an unavailable store, when tracking, then success is still reported."""
    repository = InMemoryVisitorRepository()
    repository.available = False

    result = await _recorder(repository).track(
        RequestMetadata(headers={"x-forwarded-for": "8.8.8.8"}), None
    )

    assert result.success is True
    assert result.detected_ip == "8.8.8.8"


@pytest.mark.asyncio
async def test_missing_session_id_is_generated() -> None:
    """Given no session id, when tracking, then a generated one is stored."""
    repository = InMemoryVisitorRepository()

    await _recorder(repository).track(RequestMetadata(peer_address="8.8.8.8"), 12345)

    [record] = await repository.recent(1)
    assert record.session_id == "generated"


def test_normalize_session_id() -> None:
    """Given odd session ids, when normalizing, then blanks are replaced and long ids cut."""
    assert normalize_session_id("  ", lambda: "new") == "new"
    assert normalize_session_id(None, lambda: "new") == "new"
    assert normalize_session_id(" abc ") == "abc"
    assert len(normalize_session_id("x" * 500)) == 128


def test_extract_ipv6_takes_first_token_with_colon() -> None:
    """Given a mixed XFF chain, when extracting IPv6, then the first IPv6 token is returned."""
    metadata = RequestMetadata(headers={"x-forwarded-for": "8.8.8.8, 2001:db8::1, ::1"})

    assert extract_ipv6(metadata) == "2001:db8::1"
    assert extract_ipv6(RequestMetadata()) is None


def test_extract_browser_info_defaults() -> None:
    """Given no browser headers, when extracting, then the defaults are used."""
    info = extract_browser_info(RequestMetadata())

    assert info.user_agent == "Unknown"
    assert info.language == ["Unknown"]
    assert info.referer == "Direct"
    assert info.accept_encoding == "Unknown"


def test_extract_browser_info_splits_languages() -> None:
    """Given Accept-Language, when extracting, then it is split on commas."""
    info = extract_browser_info(RequestMetadata(headers={"accept-language": "en-US, de;q=0.8"}))

    assert info.language == ["en-US", "de;q=0.8"]
