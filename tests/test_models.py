"""Tests for domain models."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from visitor_analytics.domain.models import (
    CleanupSummary,
    GeoLocation,
    RequestMetadata,
    TimelineBucket,
    TrackingResult,
    VisitorRecord,
    VpnInfo,
)
from visitor_analytics.domain.models.location import build_map_url


def test_vpn_info_serializes_with_wire_names() -> None:
    """Given a verdict, when dumping by alias, then wire field names are used."""
    info = VpnInfo(is_vpn=True, vpn_type="tor", confidence=0.95, detection_methods=["tor_exit_node"])

    assert info.model_dump(by_alias=True) == {
        "isVPN": True,
        "vpnType": "tor",
        "confidence": 0.95,
        "detectionMethods": ["tor_exit_node"],
        "details": {},
    }


def test_vpn_info_confidence_is_bounded() -> None:
    """Given confidence above 1, when constructing, then validation fails."""
    with pytest.raises(ValidationError):
        VpnInfo(confidence=1.5)


def test_vpn_info_failed() -> None:
    """Given an exception, when building the failure verdict, then it is unknown with the error."""
    info = VpnInfo.failed(RuntimeError("boom"))

    assert info.vpn_type == "unknown"
    assert info.detection_methods == ["error"]
    assert info.details == {"error": "boom"}


def test_models_are_immutable() -> None:
    """Given a location, when assigning a field, then it is rejected."""
    location = GeoLocation()

    with pytest.raises(ValidationError):
        location.country = "US"  # type: ignore[misc]


def test_build_map_url_requires_both_coordinates() -> None:
    """Given zero coordinates, when building a map URL, then None is returned."""
    assert build_map_url(0.0, 10.0) is None
    assert build_map_url(48.1, 11.5) == "https://www.google.com/maps?q=48.1,11.5"


def test_visitor_record_reads_camel_case_documents() -> None:
    """Given a stored camelCase document, when validating, then a record is built."""
    record = VisitorRecord.model_validate(
        {
            "ipv4": "8.8.8.8",
            "timestamp": datetime(2024, 1, 1, tzinfo=UTC),
            "sessionId": "abc",
            "vpnInfo": {"isVPN": True, "vpnType": "vpn", "confidence": 0.7},
            "browserInfo": {"userAgent": "UA", "acceptEncoding": "gzip"},
        }
    )

    assert record.session_id == "abc"
    assert record.vpn_info.is_vpn is True
    assert record.browser_info.accept_encoding == "gzip"
    assert record.browser_info.referer == "Direct"


def test_tracking_result_wire_names() -> None:
    """Given a result, when dumping by alias, then detectedIP and vpnDetected are used."""
    result = TrackingResult(detected_ip="8.8.8.8", location="Austin, US", vpn_detected=False)

    dumped = result.model_dump(by_alias=True)

    assert dumped["detectedIP"] == "8.8.8.8"
    assert dumped["vpnDetected"] is False


def test_timeline_bucket_start_and_label() -> None:
    """Given hourly and daily buckets, when reading start and label, then both match."""
    hourly = TimelineBucket(year=2024, month=5, day=2, hour=13, count=1)
    daily = TimelineBucket(year=2024, month=5, day=2, count=1)

    assert hourly.start == datetime(2024, 5, 2, 13, tzinfo=UTC)
    assert hourly.label == "13:00"
    assert daily.label == "2/5"


def test_request_metadata_header_lookup_is_case_insensitive() -> None:
    """Given lower-cased headers, when looking up mixed case, then the value is found."""
    metadata = RequestMetadata(headers={"x-forwarded-for": " 8.8.8.8 , ,10.0.0.1"})

    assert metadata.header("X-Forwarded-For") is not None
    assert metadata.forwarded_chain == ["8.8.8.8", "10.0.0.1"]


def test_cleanup_summary_verified() -> None:
    """Given leftover collections, when checking verification, then it fails."""
    assert CleanupSummary().verified is True
    assert CleanupSummary(remaining_collections=["visitors"]).verified is False
