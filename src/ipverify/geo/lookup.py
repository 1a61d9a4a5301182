"""Geolocation lookup - maps an IP address to a GeoPoint.

Lookups are read-only, so implementations may be shared across threads
without locking.
"""

import ipaddress
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Mapping, Tuple, Union

import maxminddb

from ipverify.common.exceptions import (
    ConfigurationError,
    LocationNotFoundError,
    MalformedAddressError,
)
from ipverify.core.types import GeoPoint


logger = logging.getLogger(__name__)


def parse_ip(ip_address: str) -> str:
    """Normalize an IP address string.

    Raises:
        MalformedAddressError: If the address does not parse
    """
    try:
        return str(ipaddress.ip_address(ip_address.strip()))
    except (ValueError, AttributeError) as e:
        raise MalformedAddressError(str(ip_address)) from e


class GeoLocationLookup(ABC):
    """Abstract IP geolocation service."""

    @abstractmethod
    def resolve(self, ip_address: str) -> GeoPoint:
        """Resolve an IP address.

        Raises:
            MalformedAddressError: If the address does not parse
            LocationNotFoundError: If no location is known for it
        """

    def close(self) -> None:
        """Release resources."""


class MaxMindLookup(GeoLocationLookup):
    """Lookup backed by a MaxMind GeoLite2/GeoIP2 City database."""

    def __init__(self, db_path: Union[str, Path]):
        """Open the MaxMind database.

        Raises:
            ConfigurationError: If the database is missing or unreadable
        """
        self.db_path = Path(db_path)
        try:
            self._reader = maxminddb.open_database(str(self.db_path))
        except (OSError, maxminddb.InvalidDatabaseError) as e:
            raise ConfigurationError(
                f"Unable to open MaxMind database: {e}",
                details={"path": str(self.db_path)},
            ) from e
        logger.info(f"MaxMind database loaded: {self.db_path}")

    def resolve(self, ip_address: str) -> GeoPoint:
        normalized = parse_ip(ip_address)
        try:
            record = self._reader.get(normalized)
        except ValueError as e:
            logger.error(f"Bad IP address not caught by validation: {ip_address}")
            raise MalformedAddressError(ip_address) from e

        location = (record or {}).get("location")
        if not location or "latitude" not in location or "longitude" not in location:
            raise LocationNotFoundError(ip_address)

        return GeoPoint(
            latitude=location["latitude"],
            longitude=location["longitude"],
            accuracy_radius=location.get("accuracy_radius", 0),
        )

    def close(self) -> None:
        try:
            self._reader.close()
        except Exception as e:
            logger.warning(f"MaxMind shutdown error: {e}")


class StaticLookup(GeoLocationLookup):
    """Dictionary-backed lookup for tests, demos and fixed deployments."""

    def __init__(
        self,
        locations: Mapping[str, Union[GeoPoint, Tuple[float, float, int]]],
    ):
        self._locations: Dict[str, GeoPoint] = {}
        for ip, loc in locations.items():
            point = loc if isinstance(loc, GeoPoint) else GeoPoint(*loc)
            self._locations[parse_ip(ip)] = point

    def resolve(self, ip_address: str) -> GeoPoint:
        point = self._locations.get(parse_ip(ip_address))
        if point is None:
            raise LocationNotFoundError(ip_address)
        return point
