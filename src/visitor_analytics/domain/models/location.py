"""Geolocation domain model."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

UNKNOWN = "Unknown"


class Coordinates(BaseModel):
    """Latitude/longitude pair. Zero means unknown."""

    model_config = ConfigDict(frozen=True)

    lat: float = 0.0
    lng: float = 0.0


class GeoLocation(BaseModel):
    """Coarse location and network owner of an IP address."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    country: str = UNKNOWN
    region: str = UNKNOWN
    city: str = UNKNOWN
    timezone: str = UNKNOWN
    coordinates: Coordinates = Field(default_factory=Coordinates)
    isp: str = UNKNOWN
    asn: str = UNKNOWN
    map_url: str | None = None

    @property
    def display_name(self) -> str:
        """Return the ``"city, country"`` label used in tracking responses."""
        return f"{self.city}, {self.country}"


def build_map_url(lat: float, lng: float) -> str | None:
    """Return a map link for the coordinates, or None when either is zero."""
    if lat and lng:
        return f"https://www.google.com/maps?q={lat},{lng}"
    return None
