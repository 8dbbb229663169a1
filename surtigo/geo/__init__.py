"""Geolocation: distances, location sensors and the locator."""

from .distance import distance_km, format_distance, haversine
from .locator import GeoLocator, LocationError, LocationResult
from .sensors import FixedPositionSensor, IPLocationSensor, SensorError

__all__ = [
    "haversine",
    "distance_km",
    "format_distance",
    "GeoLocator",
    "LocationError",
    "LocationResult",
    "FixedPositionSensor",
    "IPLocationSensor",
    "SensorError",
]
