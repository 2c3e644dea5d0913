"""Visitor analytics for a landing page: IP resolution, geolocation, VPN detection."""

__version__ = "1.0.0"
