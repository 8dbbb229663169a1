"""Location sensors: the host capabilities a current position comes from."""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import requests

from .. import config
from ..models import GeoPoint

_LOGGER = logging.getLogger(__name__)

# Sensor error codes, as reported by browser geolocation APIs
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3


class SensorError(Exception):
    """A sensor could not produce a position."""

    def __init__(self, code: int | None, message: str = ""):
        super().__init__(message or f"Location sensor error (code {code})")
        self.code = code


@dataclass(frozen=True)
class Position:
    """A position fix."""

    point: GeoPoint
    timestamp: float  # Epoch seconds when the fix was taken
    accuracy_m: float | None = None


class LocationSensor(Protocol):
    """Anything that can report the current position."""

    def get_current_position(
        self, high_accuracy: bool, timeout_ms: int, max_age_ms: int
    ) -> Position:
        """Return a fix or raise SensorError."""
        ...


class FixedPositionSensor:
    """Sensor that always reports the same, user-supplied position."""

    def __init__(self, point: GeoPoint, accuracy_m: float | None = None):
        self.point = point
        self.accuracy_m = accuracy_m

    def get_current_position(
        self, high_accuracy: bool, timeout_ms: int, max_age_ms: int
    ) -> Position:
        return Position(point=self.point, timestamp=time.time(), accuracy_m=self.accuracy_m)


class IPLocationSensor:
    """
    Approximate position from an IP geolocation service.

    Expects an ip-api.com style payload: {"status": "success", "lat": .., "lon": ..}.
    Accuracy is city level at best, so `high_accuracy` cannot be honoured.
    The last fix is reused while it is younger than `max_age_ms`.
    """

    def __init__(
        self,
        url: str = config.IP_LOCATION_URL,
        session: requests.Session | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.url = url
        self._session = session or requests.Session()
        self._clock = clock
        self._last: Position | None = None

    def get_current_position(
        self, high_accuracy: bool, timeout_ms: int, max_age_ms: int
    ) -> Position:
        now = self._clock()
        if self._last is not None and (now - self._last.timestamp) * 1000 <= max_age_ms:
            _LOGGER.debug("Reusing cached IP position from %.0fs ago", now - self._last.timestamp)
            return self._last

        try:
            resp = self._session.get(
                self.url,
                headers={"User-Agent": config.USER_AGENT},
                timeout=timeout_ms / 1000,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.Timeout as err:
            raise SensorError(TIMEOUT, "IP location lookup timed out") from err
        except (requests.RequestException, ValueError) as err:
            raise SensorError(POSITION_UNAVAILABLE, f"IP location lookup failed: {err}") from err

        if data.get("status", "success") != "success":
            msg = f"IP location lookup refused: {data.get('message', 'unknown reason')}"
            raise SensorError(POSITION_UNAVAILABLE, msg)

        try:
            point = GeoPoint(float(data["lat"]), float(data["lon"]))
        except (KeyError, TypeError, ValueError) as err:
            raise SensorError(POSITION_UNAVAILABLE, "IP location payload has no coordinates") from err

        self._last = Position(point=point, timestamp=now)
        return self._last
