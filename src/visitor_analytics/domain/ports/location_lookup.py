"""Location lookup port."""

from typing import Protocol

from visitor_analytics.domain.models import GeoLocation


class LocationLookup(Protocol):
    """Port for offline IP geolocation."""

    def lookup(self, ip: str) -> GeoLocation:
        """Return the location of ``ip``; unknown fields default, never raises."""
        ...
