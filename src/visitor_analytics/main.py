"""Main entry point for the visitor analytics service."""

import asyncio
import logging
import sys
from collections.abc import Callable, Sequence

import aiohttp
import uvicorn

from visitor_analytics.adapters.config import AppConfig
from visitor_analytics.adapters.geoip import GeoIpLocationLookup
from visitor_analytics.adapters.http import GetIpIntelClient, PublicIpEchoClient, TorExitNodeList
from visitor_analytics.adapters.storage import (
    InMemoryVisitorRepository,
    MongoConnection,
    MongoVisitorRepository,
)
from visitor_analytics.adapters.web import create_app
from visitor_analytics.application.services import (
    AnalyticsAggregator,
    ClientIpResolver,
    IpDiagnosticsService,
    IpNetwork,
    VisitorRecorder,
    VpnClassifier,
    parse_trusted_networks,
    trusted_proxy_address,
)
from visitor_analytics.domain.models import UNKNOWN_IP, RequestMetadata
from visitor_analytics.domain.ports import VisitorRepository

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stderr,
)

logger = logging.getLogger(__name__)


def build_repository(config: AppConfig) -> tuple[VisitorRepository, MongoConnection | None]:
    """Create the configured visitor store and, for MongoDB, its connection."""
    if config.store_backend == "memory":
        logger.warning("Using in-memory visitor store, records are lost on restart")
        return InMemoryVisitorRepository(), None

    connection = MongoConnection(
        config.mongodb_uri,
        config.mongodb_database,
        server_selection_timeout_ms=config.mongodb_server_selection_timeout_ms,
    )
    return MongoVisitorRepository(connection), connection


def rate_limit_key(trusted_networks: Sequence[IpNetwork]) -> Callable[[RequestMetadata], str]:
    """Bucket requests by the address behind trusted proxies, else the socket peer.

    Client-supplied proxy headers are ignored so rotating them cannot open
    a fresh bucket.
    """
    transport_address = trusted_proxy_address(trusted_networks)

    def key(metadata: RequestMetadata) -> str:
        return transport_address(metadata) or metadata.peer_address or UNKNOWN_IP

    return key


async def main() -> None:
    """Main application entry point."""
    config = AppConfig()
    logging.getLogger().setLevel(config.log_level)

    repository, connection = build_repository(config)
    location_lookup = GeoIpLocationLookup.open(config.geoip_city_db_path, config.geoip_asn_db_path)

    # One session for every outbound call
    async with aiohttp.ClientSession() as session:
        exit_nodes = TorExitNodeList()
        await exit_nodes.refresh(
            session, config.tor_exit_list_url, timeout=config.tor_exit_list_timeout
        )

        reputation_client = None
        if config.reputation_enabled:
            reputation_client = GetIpIntelClient(
                session, config.reputation_contact_email, timeout=config.reputation_timeout
            )

        echo_client = PublicIpEchoClient(
            session, config.ip_echo_services, timeout=config.ip_echo_timeout
        )
        trusted_networks = parse_trusted_networks(config.trust_proxy)
        resolver = ClientIpResolver.with_default_sources(trusted_networks, echo=echo_client)
        classifier = VpnClassifier(exit_nodes, location_lookup, reputation_client)

        tracker = VisitorRecorder(resolver, location_lookup, classifier, repository)
        analytics = AnalyticsAggregator(
            repository,
            timezone=config.get_timezone(),
            default_recent_limit=config.recent_visitors_default_limit,
        )
        diagnostics = IpDiagnosticsService(resolver, location_lookup, classifier)

        if connection is not None and await connection.get_database() is None:
            logger.warning("MongoDB unavailable at startup, visits will not be stored until it is")

        app = create_app(
            config,
            tracker,
            analytics,
            diagnostics,
            repository,
            client_key=rate_limit_key(trusted_networks),
        )

        server = uvicorn.Server(
            uvicorn.Config(
                app,
                host=config.host,
                port=config.port,
                log_level=config.log_level.lower(),
            )
        )
        logger.info(f"Starting visitor analytics on {config.host}:{config.port}")
        try:
            await server.serve()
        finally:
            if connection is not None:
                await connection.close()
            location_lookup.close()
            logger.info("Shut down")


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
