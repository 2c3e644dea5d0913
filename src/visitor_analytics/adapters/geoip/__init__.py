"""Offline geolocation adapter."""

from visitor_analytics.adapters.geoip.geoip_location_lookup import GeoIpLocationLookup

__all__ = ["GeoIpLocationLookup"]
