"""VPN/proxy verdict domain model."""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class VpnType(StrEnum):
    """Kind of anonymizing network an IP address belongs to."""

    NONE = "none"
    TOR = "tor"
    VPN = "vpn"
    HOSTING_PROXY = "hosting/proxy"
    PROXY = "proxy"
    UNKNOWN = "unknown"


class VpnInfo(BaseModel):
    """Confidence-scored VPN/proxy verdict for a single IP address."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=True)

    is_vpn: bool = Field(default=False, alias="isVPN")
    vpn_type: VpnType = Field(default=VpnType.NONE, alias="vpnType")
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    detection_methods: list[str] = Field(default_factory=list, alias="detectionMethods")
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def failed(cls, error: Exception) -> "VpnInfo":
        """Verdict used when classification itself broke."""
        return cls(
            is_vpn=False,
            vpn_type=VpnType.UNKNOWN,
            confidence=0.0,
            detection_methods=["error"],
            details={"error": str(error)},
        )
