"""Tests for the composition root helpers."""

import pytest

from visitor_analytics.adapters.config import AppConfig
from visitor_analytics.adapters.storage import InMemoryVisitorRepository, MongoVisitorRepository
from visitor_analytics.application.services import parse_trusted_networks
from visitor_analytics.domain.models import RequestMetadata
from visitor_analytics.main import build_repository, rate_limit_key


def test_memory_backend_has_no_connection(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given STORE_BACKEND=memory, when building the store, then no MongoDB connection is made."""
    monkeypatch.setenv("STORE_BACKEND", "memory")

    repository, connection = build_repository(AppConfig())

    assert isinstance(repository, InMemoryVisitorRepository)
    assert connection is None


def test_mongo_backend_connects_lazily(monkeypatch: pytest.MonkeyPatch) -> None:
    """Given STORE_BACKEND=mongo, when building the store, then the connection is not opened yet."""
    monkeypatch.setenv("STORE_BACKEND", "mongo")

    repository, connection = build_repository(AppConfig())

    assert isinstance(repository, MongoVisitorRepository)
    assert connection is not None
    assert connection.is_connected is False


def test_rate_limit_key_prefers_trusted_transport_address() -> None:
    """Given a trusted proxy hop, when keying, then the forwarded client IP is used."""
    key = rate_limit_key(parse_trusted_networks(["uniquelocal"]))

    metadata = RequestMetadata(headers={"x-forwarded-for": "8.8.8.8"}, peer_address="10.0.0.1")

    assert key(metadata) == "8.8.8.8"
    assert key(RequestMetadata(peer_address="127.0.0.1")) == "127.0.0.1"
    assert key(RequestMetadata()) == "unknown"


def test_rate_limit_key_ignores_client_supplied_proxy_headers() -> None:
    """Given a local proxy and rotating client headers, when keying, then one bucket is used."""
    key = rate_limit_key(parse_trusted_networks(["loopback"]))

    keys = {
        key(
            RequestMetadata(
                headers={
                    "x-real-ip": "10.0.0.9",
                    "cf-connecting-ip": f"8.8.8.{i}",
                    "true-client-ip": f"1.1.1.{i}",
                },
                peer_address="127.0.0.1",
            )
        )
        for i in range(5)
    }

    assert keys == {"127.0.0.1"}


def test_rate_limit_key_does_not_follow_untrusted_peer_chain() -> None:
    """Given an untrusted public peer, when keying, then forwarded hops are not followed."""
    key = rate_limit_key(parse_trusted_networks(["loopback"]))

    metadata = RequestMetadata(headers={"x-forwarded-for": "9.9.9.9"}, peer_address="8.8.4.4")

    assert key(metadata) == "8.8.4.4"
