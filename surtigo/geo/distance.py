"""Distance calculation utilities using Haversine formula."""

import math

from ..models import GeoPoint

# Earth's radius in kilometers
EARTH_RADIUS_KM = 6371.0


def haversine(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Uses the Haversine formula to compute the distance between two GPS coordinates.

    Args:
        lat1: Latitude of first point (degrees)
        lon1: Longitude of first point (degrees)
        lat2: Latitude of second point (degrees)
        lon2: Longitude of second point (degrees)

    Returns:
        Distance in kilometers, unrounded
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    delta_lat = math.radians(lat2 - lat1)
    delta_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(delta_lat / 2) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(delta_lon / 2) ** 2
    )
    # Clamp: rounding can push a marginally above 1 for antipodal points
    a = min(1.0, a)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def distance_km(a: GeoPoint, b: GeoPoint) -> float:
    """
    Great-circle distance between two points, rounded to 2 decimals.

    Args:
        a: First point
        b: Second point

    Returns:
        Distance in kilometers
    """
    return round(haversine(a.latitude, a.longitude, b.latitude, b.longitude), 2)


def format_distance(km: float | None) -> str:
    """
    Format a distance for display.

    Examples:
        0.35 -> "350 m"
        12.34 -> "12.3 km"
        None -> ""
    """
    if km is None:
        return ""
    if km < 1:
        return f"{round(km * 1000)} m"
    return f"{km:.1f} km"
