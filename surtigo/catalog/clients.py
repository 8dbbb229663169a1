"""HTTP clients for the station API and Nominatim geocoding."""

import logging
from typing import Any, Protocol

import requests

from .. import config
from ..models import GeoPoint

_LOGGER = logging.getLogger(__name__)


class FetchError(Exception):
    """A remote request failed or returned something unusable."""


class StationFetcher(Protocol):
    """Source of raw station records around a point."""

    def fetch(
        self, lat: float, lon: float, radius_km: float, limit: int
    ) -> list[dict[str, Any]]:
        ...


class Geocoder(Protocol):
    """Resolves free text to its single best matching point."""

    def geocode(self, text: str) -> GeoPoint | None:
        ...


def _get_json(
    session: requests.Session,
    url: str,
    params: dict[str, Any],
    timeout: float,
) -> Any:
    """Perform a GET request and decode its JSON body."""
    _LOGGER.debug("Requesting %s with params=%s", url, params)
    try:
        resp = session.get(
            url,
            params=params,
            headers={"Accept": "application/json", "User-Agent": config.USER_AGENT},
            timeout=timeout,
        )
        resp.raise_for_status()
        return resp.json()
    except requests.HTTPError as err:
        status = err.response.status_code if err.response is not None else "?"
        msg = f"HTTP error {status} from {url}"
        raise FetchError(msg) from err
    except ValueError as err:
        msg = f"Invalid JSON from {url}"
        raise FetchError(msg) from err
    except requests.RequestException as err:
        msg = f"Connection error: {err}"
        raise FetchError(msg) from err


class StationApiClient:
    """Client for the station search endpoint (`/estaciones/radio`)."""

    def __init__(
        self,
        base_url: str = config.API_BASE_URL,
        session: requests.Session | None = None,
        timeout: float = config.HTTP_TIMEOUT_S,
    ):
        self.base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self.timeout = timeout

    def fetch(
        self, lat: float, lon: float, radius_km: float, limit: int
    ) -> list[dict[str, Any]]:
        """
        Fetch raw station records within a radius.

        Args:
            lat: Latitude of the search center (degrees)
            lon: Longitude of the search center (degrees)
            radius_km: Search radius in kilometers
            limit: Maximum number of records

        Returns:
            List of raw records, nearest first

        Raises:
            FetchError: request failed or payload is not a list
        """
        params = {
            "latitud": str(lat),
            "longitud": str(lon),
            "radio": str(radius_km),
            "limite": str(limit),
        }
        payload = _get_json(
            self._session, f"{self.base_url}/estaciones/radio", params, self.timeout
        )
        if not isinstance(payload, list):
            msg = f"Expected a list of stations, got {type(payload).__name__}"
            raise FetchError(msg)
        return payload


class NominatimGeocoder:
    """Free-text place search through OpenStreetMap Nominatim."""

    def __init__(
        self,
        url: str = config.NOMINATIM_URL,
        session: requests.Session | None = None,
        timeout: float = config.HTTP_TIMEOUT_S,
        country_qualifier: str = config.COUNTRY_QUALIFIER,
        country_codes: str = config.COUNTRY_CODES,
    ):
        self.url = url
        self._session = session or requests.Session()
        self.timeout = timeout
        self.country_qualifier = country_qualifier
        self.country_codes = country_codes

    def geocode(self, text: str) -> GeoPoint | None:
        """
        Resolve a place name.

        Returns:
            The best match, or None when nothing matched

        Raises:
            FetchError: request failed or the match has no coordinates
        """
        params = {
            "q": f"{text}, {self.country_qualifier}",
            "format": "json",
            "limit": "1",
            "countrycodes": self.country_codes,
        }
        results = _get_json(self._session, self.url, params, self.timeout)
        if not isinstance(results, list):
            msg = f"Expected a list of places, got {type(results).__name__}"
            raise FetchError(msg)
        if not results:
            return None

        best = results[0]
        try:
            return GeoPoint(float(best["lat"]), float(best["lon"]))
        except (KeyError, TypeError, ValueError) as err:
            msg = "Geocoding result has no coordinates"
            raise FetchError(msg) from err
