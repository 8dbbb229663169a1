"""Current-position resolution and distances from the last known location."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum

from .. import config
from ..models import GeoPoint
from ..reactive import Signal
from .distance import distance_km
from .sensors import (
    PERMISSION_DENIED,
    POSITION_UNAVAILABLE,
    TIMEOUT,
    LocationSensor,
    SensorError,
)

_LOGGER = logging.getLogger(__name__)


class LocationError(Enum):
    """Why a location could not be resolved."""

    UNSUPPORTED = "unsupported"
    PERMISSION_DENIED = "permission_denied"
    POSITION_UNAVAILABLE = "position_unavailable"
    TIMEOUT = "timeout"
    UNKNOWN = "unknown"

    @property
    def message(self) -> str:
        """User-facing explanation."""
        return LOCATION_ERROR_MESSAGES[self]


LOCATION_ERROR_MESSAGES = {
    LocationError.UNSUPPORTED: "La geolocalización no está soportada en este dispositivo.",
    LocationError.PERMISSION_DENIED: "Permiso de ubicación denegado. Puedes buscarlo manualmente.",
    LocationError.POSITION_UNAVAILABLE: "No se pudo determinar tu ubicación.",
    LocationError.TIMEOUT: "Tiempo de espera agotado al obtener la ubicación.",
    LocationError.UNKNOWN: "Error desconocido de geolocalización.",
}

SENSOR_ERROR_CODES = {
    PERMISSION_DENIED: LocationError.PERMISSION_DENIED,
    POSITION_UNAVAILABLE: LocationError.POSITION_UNAVAILABLE,
    TIMEOUT: LocationError.TIMEOUT,
}


@dataclass(frozen=True)
class LocationResult:
    """Outcome of one location request: either a point or an error."""

    point: GeoPoint | None = None
    error: LocationError | None = None

    @property
    def ok(self) -> bool:
        return self.point is not None


class GeoLocator:
    """
    Resolve the user's position through a location sensor.

    The last successfully resolved point is kept in `location` for the
    lifetime of the locator and is only replaced by a later success.
    Failures are reported through `error`; there is no automatic retry.
    """

    def __init__(
        self,
        sensor: LocationSensor | None,
        high_accuracy: bool = config.LOCATION_HIGH_ACCURACY,
        timeout_ms: int = config.LOCATION_TIMEOUT_MS,
        max_age_ms: int = config.LOCATION_MAX_AGE_MS,
    ):
        """
        Initialize locator.

        Args:
            sensor: Position source, or None when the host has none
            high_accuracy: Request a precise fix
            timeout_ms: Give up after this long
            max_age_ms: Oldest cached fix the sensor may hand back
        """
        self.sensor = sensor
        self.high_accuracy = high_accuracy
        self.timeout_ms = timeout_ms
        self.max_age_ms = max_age_ms

        self.location: Signal[GeoPoint | None] = Signal(None)
        self.is_locating: Signal[bool] = Signal(False)
        self.error: Signal[LocationError | None] = Signal(None)

    @property
    def last_known_location(self) -> GeoPoint | None:
        return self.location.value

    @property
    def has_location(self) -> bool:
        return self.location.value is not None

    async def resolve_location(self) -> LocationResult:
        """
        Fetch the current position once.

        Returns:
            LocationResult with the point, or with a LocationError. Never raises.
        """
        if self.sensor is None:
            self.error.set(LocationError.UNSUPPORTED)
            return LocationResult(error=LocationError.UNSUPPORTED)

        self.is_locating.set(True)
        self.error.set(None)

        try:
            position = await asyncio.wait_for(
                asyncio.to_thread(
                    self.sensor.get_current_position,
                    self.high_accuracy,
                    self.timeout_ms,
                    self.max_age_ms,
                ),
                timeout=self.timeout_ms / 1000,
            )
        except SensorError as err:
            error = SENSOR_ERROR_CODES.get(err.code, LocationError.UNKNOWN)
            _LOGGER.warning("Location sensor failed: %s", err)
        except asyncio.TimeoutError:
            error = LocationError.TIMEOUT
            _LOGGER.warning("Location sensor timed out after %d ms", self.timeout_ms)
        except Exception:  # resolve_location never raises
            error = LocationError.UNKNOWN
            _LOGGER.exception("Unexpected location sensor failure")
        else:
            self.location.set(position.point)
            self.is_locating.set(False)
            _LOGGER.debug("Resolved location %s", position.point)
            return LocationResult(point=position.point)

        self.error.set(error)
        self.is_locating.set(False)
        return LocationResult(error=error)

    def distance_from_last_known(self, point: GeoPoint) -> float | None:
        """Distance in km from the last resolved location, or None if there is none."""
        last = self.last_known_location
        if last is None:
            return None
        return distance_km(last, point)

    @staticmethod
    def distance_km(a: GeoPoint, b: GeoPoint) -> float:
        return distance_km(a, b)
