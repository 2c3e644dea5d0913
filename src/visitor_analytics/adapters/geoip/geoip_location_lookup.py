"""Offline IP geolocation using MaxMind GeoLite2 databases."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import geoip2.database
import geoip2.errors

from visitor_analytics.domain.models import UNKNOWN, Coordinates, GeoLocation
from visitor_analytics.domain.models.location import build_map_url

logger = logging.getLogger(__name__)


def _open_reader(path: str | None, kind: str) -> geoip2.database.Reader | None:
    """Open a GeoLite2 reader, or return None if the file is missing or unreadable."""
    if not path:
        return None
    if not Path(path).exists():
        logger.warning(f"GeoIP {kind} database not found at {path}, {kind} lookups disabled")
        return None
    try:
        reader = geoip2.database.Reader(path)
    except Exception as e:
        logger.error(f"Could not open GeoIP {kind} database {path}: {e}")
        return None
    logger.info(f"Loaded GeoIP {kind} database from {path}")
    return reader


class GeoIpLocationLookup:
    """Maps IP addresses to coarse location and ISP fields.

    The City database provides country, region, city, timezone and
    coordinates; the optional ASN database provides ISP and ASN. Any field
    that cannot be determined keeps its ``"Unknown"``/zero default.
    """

    def __init__(
        self,
        city_reader: geoip2.database.Reader | None = None,
        asn_reader: geoip2.database.Reader | None = None,
    ) -> None:
        self._city_reader = city_reader
        self._asn_reader = asn_reader

    @classmethod
    def open(cls, city_db_path: str | None, asn_db_path: str | None) -> GeoIpLocationLookup:
        """Open the configured databases once for the lifetime of the process."""
        return cls(
            city_reader=_open_reader(city_db_path, "city"),
            asn_reader=_open_reader(asn_db_path, "ASN"),
        )

    def close(self) -> None:
        for reader in (self._city_reader, self._asn_reader):
            if reader is not None:
                reader.close()
        self._city_reader = None
        self._asn_reader = None

    def _city_fields(self, ip: str) -> dict[str, Any]:
        if self._city_reader is None:
            return {}
        try:
            response = self._city_reader.city(ip)
        except (geoip2.errors.AddressNotFoundError, ValueError):
            return {}
        except Exception as e:
            logger.warning(f"GeoIP city lookup failed for {ip}: {e}")
            return {}

        lat = response.location.latitude or 0.0
        lng = response.location.longitude or 0.0
        return {
            "country": response.country.iso_code or UNKNOWN,
            "region": response.subdivisions.most_specific.iso_code or UNKNOWN,
            "city": response.city.name or UNKNOWN,
            "timezone": response.location.time_zone or UNKNOWN,
            "coordinates": Coordinates(lat=lat, lng=lng),
            "map_url": build_map_url(lat, lng),
        }

    def _asn_fields(self, ip: str) -> dict[str, Any]:
        if self._asn_reader is None:
            return {}
        try:
            response = self._asn_reader.asn(ip)
        except (geoip2.errors.AddressNotFoundError, ValueError):
            return {}
        except Exception as e:
            logger.warning(f"GeoIP ASN lookup failed for {ip}: {e}")
            return {}

        fields: dict[str, Any] = {}
        if response.autonomous_system_organization:
            fields["isp"] = response.autonomous_system_organization
        if response.autonomous_system_number:
            fields["asn"] = f"AS{response.autonomous_system_number}"
        return fields

    def lookup(self, ip: str) -> GeoLocation:
        """Return the location of ``ip``; misses yield an all-unknown record."""
        return GeoLocation(**self._city_fields(ip), **self._asn_fields(ip))
