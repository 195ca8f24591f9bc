import math
from typing import Any, Optional, Tuple

EARTH_RADIUS_METERS = 6371000.0


def calculate_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great circle distance between two points
    on the earth (specified in decimal degrees)
    using the Haversine formula.

    Args:
        lat1: Latitude of point 1
        lon1: Longitude of point 1
        lat2: Latitude of point 2
        lon2: Longitude of point 2

    Returns:
        Distance between the points in meters
    """
    # Convert decimal degrees to radians
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    # Haversine formula
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat/2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon/2)**2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def is_within_radius(lat1: float, lon1: float, lat2: float, lon2: float, radius: float) -> Tuple[bool, float]:
    """
    Check if a location (lat1, lon1) is within the specified radius of another location (lat2, lon2).

    A distance exactly equal to the radius counts as inside.

    Returns:
        Tuple of (is_within_radius, distance)
    """
    distance = calculate_distance(lat1, lon1, lat2, lon2)
    return distance <= radius, distance


def is_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def parse_location(value: Any) -> Optional[Tuple[float, float]]:
    """
    Extract a (latitude, longitude) pair from a client supplied location.

    Accepts a mapping or an object exposing ``latitude`` and ``longitude``.
    Returns None unless both are finite numbers inside the valid
    coordinate ranges.
    """
    if value is None:
        return None
    if isinstance(value, dict):
        lat, lon = value.get("latitude"), value.get("longitude")
    else:
        lat, lon = getattr(value, "latitude", None), getattr(value, "longitude", None)

    if not (is_number(lat) and is_number(lon)):
        return None
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return None
    return float(lat), float(lon)
