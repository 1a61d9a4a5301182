"""Geolocation and travel speed."""

from ipverify.geo.distance import (
    ZERO_ELAPSED_SPEED,
    calculate_speed,
    haversine_distance,
    is_suspicious,
    round_half_away,
)
from ipverify.geo.lookup import (
    GeoLocationLookup,
    MaxMindLookup,
    StaticLookup,
    parse_ip,
)

__all__ = [
    "ZERO_ELAPSED_SPEED",
    "calculate_speed",
    "haversine_distance",
    "is_suspicious",
    "round_half_away",
    "GeoLocationLookup",
    "MaxMindLookup",
    "StaticLookup",
    "parse_ip",
]
