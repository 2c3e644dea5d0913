"""12-factor configuration adapter using environment variables and an optional .env file."""

import ipaddress
import json
from datetime import tzinfo
from typing import Annotated, Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_IP_ECHO_SERVICES = [
    "https://api.ipify.org?format=json",
    "https://httpbin.org/ip",
    "https://api.my-ip.io/ip.json",
    "https://ipapi.co/json/",
    "https://ip.seeip.org/jsonip",
]

TRUST_PROXY_PRESET_NAMES = ("loopback", "linklocal", "uniquelocal")


class AppConfig(BaseSettings):
    """Application configuration following 12-factor principles."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server configuration
    host: str = Field(default="0.0.0.0", description="Host to bind the server to")
    port: int = Field(default=3001, description="Port to bind the server to")
    log_level: str = Field(default="INFO", description="Root log level")

    # Visitor store
    store_backend: str = Field(
        default="mongo",
        description="Visitor store: 'mongo' or 'memory' (in-process, lost on restart)",
    )
    mongodb_uri: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string",
    )
    mongodb_database: str = Field(
        default="visitor_analytics", description="MongoDB database holding the visitors"
    )
    mongodb_server_selection_timeout_ms: int = Field(
        default=5000, description="Timeout for MongoDB server selection in milliseconds"
    )

    # Offline geo database (MaxMind GeoLite2 .mmdb files)
    geoip_city_db_path: str = Field(
        default="/geoip/GeoLite2-City.mmdb", description="Path to the GeoLite2 City database"
    )
    geoip_asn_db_path: str | None = Field(
        default="/geoip/GeoLite2-ASN.mmdb",
        description="Path to the GeoLite2 ASN database (ISP and ASN fields)",
    )

    # VPN/proxy detection
    tor_exit_list_url: str = Field(
        default="https://check.torproject.org/cgi-bin/TorBulkExitList.py?ip=1.1.1.1",
        description="Bulk Tor exit node list, fetched once at startup",
    )
    tor_exit_list_timeout: float = Field(
        default=10.0, description="Timeout for fetching the Tor exit list in seconds"
    )
    reputation_enabled: bool = Field(
        default=True, description="Query GetIPIntel for an IP reputation score"
    )
    reputation_contact_email: str = Field(
        default="admin@example.com",
        description="Contact e-mail GetIPIntel requires with every query",
    )
    reputation_timeout: float = Field(
        default=5.0, description="Timeout for reputation lookups in seconds"
    )

    # Client IP detection
    trust_proxy: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(TRUST_PROXY_PRESET_NAMES),
        description=(
            "Comma-separated trusted proxy hops: preset names "
            "(loopback, linklocal, uniquelocal) or CIDRs"
        ),
    )
    ip_echo_services: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_IP_ECHO_SERVICES),
        description="External 'what is my IP' services tried in order, comma-separated",
    )
    ip_echo_timeout: float = Field(
        default=3.0, description="Timeout per external IP service in seconds"
    )

    # Admin
    admin_password: str = Field(default="changeme", description="Admin dashboard password")
    admin_token: str = Field(
        default="admin-authenticated", description="Token returned on successful admin login"
    )
    recent_visitors_default_limit: int = Field(
        default=50, description="Recent visitors returned when no limit is given"
    )
    enable_debug_endpoint: bool = Field(
        default=True,
        description="Expose /api/debug/ip (unauthenticated; disable in production)",
    )
    timezone: str | None = Field(
        default=None,
        description="IANA timezone defining 'today' for counters; unset means server local time",
    )

    # HTTP
    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["*"], description="Origins allowed by CORS, comma-separated"
    )
    rate_limit_per_minute: int = Field(
        default=100,
        description="Maximum number of requests allowed per IP address per minute",
    )

    @field_validator("trust_proxy", "ip_echo_services", "cors_allow_origins", mode="before")
    @classmethod
    def split_list(cls, v: Any) -> Any:
        """Accept lists as comma-separated strings or JSON arrays."""
        if not isinstance(v, str):
            return v
        if v.strip().startswith("["):
            return json.loads(v)
        return [item.strip() for item in v.split(",") if item.strip()]

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        """Validate store backend is either 'mongo' or 'memory'."""
        if v.lower() not in ("mongo", "memory"):
            raise ValueError("store_backend must be either 'mongo' or 'memory'")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a standard logging level name."""
        if v.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("log_level must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL")
        return v.upper()

    @field_validator("trust_proxy")
    @classmethod
    def validate_trust_proxy(cls, v: list[str]) -> list[str]:
        """Validate each trusted proxy entry is a preset name or a network."""
        for entry in v:
            if entry.strip().lower() in TRUST_PROXY_PRESET_NAMES:
                continue
            try:
                ipaddress.ip_network(entry.strip(), strict=False)
            except ValueError as e:
                raise ValueError(f"trust_proxy entry is not a preset or network: {entry}") from e
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str | None) -> str | None:
        """Validate timezone is a known IANA zone name."""
        if v:
            try:
                ZoneInfo(v)
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError(f"timezone must be an IANA timezone name: {v}") from e
        return v or None

    def get_timezone(self) -> tzinfo | None:
        """Return the configured zone, or None for the server's local zone."""
        return ZoneInfo(self.timezone) if self.timezone else None
