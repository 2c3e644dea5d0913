"""Tests for third-party IP service clients."""

from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from visitor_analytics.adapters.http import GetIpIntelClient, PublicIpEchoClient, TorExitNodeList
from visitor_analytics.adapters.http.getipintel_client import parse_score
from visitor_analytics.adapters.http.ip_echo_client import extract_echoed_ip
from visitor_analytics.adapters.http.tor_exit_node_list import parse_exit_list
from visitor_analytics.domain.models import RequestMetadata


def _response(status: int = 200, text: str = "", json_data: object = None) -> MagicMock:
    response = MagicMock()
    response.status = status
    response.text = AsyncMock(return_value=text)
    response.json = AsyncMock(return_value=json_data)
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=response)
    context.__aexit__ = AsyncMock(return_value=False)
    return context


def _session(*responses: object) -> MagicMock:
    """Session whose successive GETs return the given responses or raise the given errors."""
    session = MagicMock()
    session.get = MagicMock(side_effect=list(responses))
    return session


class TestTorExitNodeList:
    """Tests for the Tor exit list."""

    def test_parse_exit_list_skips_comments_and_blanks(self) -> None:
        """Given list text with comments, when parsing, then only addresses remain."""
        text = "# header\n\n185.220.101.1\n 185.220.101.2 \n"

        assert parse_exit_list(text) == {"185.220.101.1", "185.220.101.2"}

    @pytest.mark.asyncio
    async def test_refresh_loads_nodes(self) -> None:
        """Given a successful fetch, when refreshing, then membership reflects the list."""
        nodes = TorExitNodeList()

        await nodes.refresh(_session(_response(text="1.2.3.4\n5.6.7.8\n")), "https://tor.example")

        assert "1.2.3.4" in nodes
        assert len(nodes) == 2

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_set_empty(self) -> None:
        """Given a network error, when refreshing, then the set stays empty and nothing raises."""
        nodes = TorExitNodeList()

        await nodes.refresh(_session(aiohttp.ClientError("boom")), "https://tor.example")

        assert len(nodes) == 0
        assert "1.2.3.4" not in nodes


class TestPublicIpEchoClient:
    """Tests for the external IP echo fallback."""

    @pytest.mark.parametrize(
        ("body", "expected"),
        [
            ('{"ip": "8.8.8.8"}', "8.8.8.8"),
            ('{"origin": "1.1.1.1"}', "1.1.1.1"),
            ("9.9.9.9\n", "9.9.9.9"),
            ("", None),
            ("{}", None),
        ],
    )
    def test_extract_echoed_ip(self, body: str, expected: str | None) -> None:
        """Given the shapes services answer with, when extracting, then the address is found."""
        assert extract_echoed_ip(body) == expected

    @pytest.mark.asyncio
    async def test_first_public_answer_wins(self) -> None:
        """Given a failing, a private and a public service, when looking up, then public wins."""
        session = _session(
            aiohttp.ClientError("timeout"),
            _response(text='{"ip": "10.0.0.1"}'),
            _response(text='{"ip": "8.8.8.8"}'),
            _response(text='{"ip": "1.1.1.1"}'),
        )
        client = PublicIpEchoClient(session, ["https://a", "https://b", "https://c", "https://d"])

        ip = await client.lookup(RequestMetadata(headers={"x-forwarded-for": "10.0.0.1"}))

        assert ip == "8.8.8.8"
        assert session.get.call_count == 3

    @pytest.mark.asyncio
    async def test_forwards_client_headers(self) -> None:
        """Given XFF on the request, when querying, then it is passed to the service."""
        session = _session(_response(text="8.8.8.8"))
        client = PublicIpEchoClient(session, ["https://a"])

        await client.lookup(RequestMetadata(headers={"x-forwarded-for": "203.0.113.5"}))

        headers = session.get.call_args.kwargs["headers"]
        assert headers["X-Forwarded-For"] == "203.0.113.5"
        assert headers["User-Agent"] == "Visitor-Analytics/1.0"

    @pytest.mark.asyncio
    async def test_all_services_failing_returns_none(self) -> None:
        """Given only non-200 answers, when looking up, then None is returned."""
        client = PublicIpEchoClient(_session(_response(status=503)), ["https://a"])

        assert await client.lookup(RequestMetadata()) is None

    @pytest.mark.asyncio
    async def test_without_session_returns_none(self) -> None:
        """Given no session, when looking up, then None is returned without calls."""
        assert await PublicIpEchoClient(None, ["https://a"]).lookup(RequestMetadata()) is None


class TestGetIpIntelClient:
    """Tests for the reputation client."""

    @pytest.mark.parametrize(
        ("data", "expected"),
        [
            ({"status": "success", "result": "0.99"}, 0.99),
            ({"status": "success", "result": 0.25}, 0.25),
            ({"status": "error", "result": "-3"}, None),
            ({"result": "abc"}, None),
            ([], None),
        ],
    )
    def test_parse_score(self, data: object, expected: float | None) -> None:
        """Given API payloads, when parsing, then valid probabilities are returned."""
        assert parse_score(data) == expected

    @pytest.mark.asyncio
    async def test_score_sends_contact_and_flags(self) -> None:
        """Given a successful answer, when scoring, then the query carries the required params."""
        session = _session(_response(json_data={"status": "success", "result": "0.9"}))
        client = GetIpIntelClient(session, "ops@example.com")

        score = await client.score("8.8.8.8")

        assert score == pytest.approx(0.9)
        params = session.get.call_args.kwargs["params"]
        assert params == {"ip": "8.8.8.8", "contact": "ops@example.com", "format": "json", "flags": "m"}

    @pytest.mark.asyncio
    async def test_rate_limited_answer_returns_none(self) -> None:
        """Given HTTP 429, when scoring, then None is returned."""
        client = GetIpIntelClient(_session(_response(status=429)), "ops@example.com")

        assert await client.score("8.8.8.8") is None

    @pytest.mark.asyncio
    async def test_network_error_returns_none(self) -> None:
        """Given a network error, when scoring, then None is returned."""
        client = GetIpIntelClient(_session(aiohttp.ClientError("down")), "ops@example.com")

        assert await client.score("8.8.8.8") is None
