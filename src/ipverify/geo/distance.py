"""Great-circle distance and implied travel speed.

Pure functions over (latitude, longitude) pairs in degrees and Unix
timestamps in seconds. Distances are in miles, speeds in miles/hour.
"""

import math

from ipverify.common.constants import SpeedConstants


ZERO_ELAPSED_SPEED = SpeedConstants.ZERO_ELAPSED_SPEED


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in miles on a spherical earth."""
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2))
        * math.sin(delta_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return SpeedConstants.KM_TO_MILES * (SpeedConstants.EARTH_RADIUS_KM * c)


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def calculate_speed(
    lat1: float, lon1: float, time1: int,
    lat2: float, lon2: float, time2: int,
) -> int:
    """Implied speed between two (point, time) pairs, in miles/hour.

    Returns ZERO_ELAPSED_SPEED (-1) when both timestamps are equal.
    """
    if time1 == time2:
        return ZERO_ELAPSED_SPEED

    dist = haversine_distance(lat1, lon1, lat2, lon2)
    elapsed = abs(time2 - time1)

    # miles * (seconds/hour) / seconds
    return round_half_away((dist * SpeedConstants.SECONDS_PER_HOUR) / elapsed)


def is_suspicious(speed: int, max_speed: int = SpeedConstants.MAX_SPEED_MPH) -> bool:
    """True for undefined (zero elapsed time) or excessive speed."""
    return speed == ZERO_ELAPSED_SPEED or speed > max_speed
