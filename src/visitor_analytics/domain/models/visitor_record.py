"""Visitor record domain models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from visitor_analytics.domain.models.location import UNKNOWN, GeoLocation
from visitor_analytics.domain.models.vpn_info import VpnInfo

UNKNOWN_IP = "unknown"


class BrowserInfo(BaseModel):
    """Browser metadata taken from request headers."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    user_agent: str = UNKNOWN
    language: list[str] = Field(default_factory=lambda: [UNKNOWN])
    referer: str = "Direct"
    accept_encoding: str = UNKNOWN


class VisitorRecord(BaseModel):
    """One tracked page load. Written once, never updated."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    ipv4: str = UNKNOWN_IP
    ipv6: str | None = None
    location: GeoLocation = Field(default_factory=GeoLocation)
    vpn_info: VpnInfo = Field(default_factory=VpnInfo)
    browser_info: BrowserInfo = Field(default_factory=BrowserInfo)
    timestamp: datetime
    session_id: str
    raw_headers: dict[str, str] = Field(default_factory=dict)
    detection_method: str = "enhanced"


class TrackingResult(BaseModel):
    """Summary returned to the page after a visit was tracked."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    success: bool = True
    message: str = "Visitor tracked successfully"
    detected_ip: str = Field(alias="detectedIP")
    location: str
    vpn_detected: bool = Field(alias="vpnDetected")
