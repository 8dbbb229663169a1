"""Station catalog: loading, selection state and derived price views."""

import asyncio
import dataclasses
import logging
import math
from collections.abc import Callable, Sequence

from .. import config
from ..geo.locator import GeoLocator
from ..models import (
    DEFAULT_FUEL_KIND,
    CatalogStats,
    FuelKind,
    GeoPoint,
    SearchCenter,
    Station,
)
from ..reactive import Signal
from .clients import FetchError, Geocoder, StationFetcher
from .records import stations_from_records

_LOGGER = logging.getLogger(__name__)

LOAD_ERROR_MESSAGE = "No se pudieron cargar las estaciones. Inténtalo de nuevo."


def price_of(station: Station, kind: FuelKind) -> float | None:
    """Price of `kind` at `station`, or None when it is not sold or not reported."""
    return station.prices.get(kind)


def station_matches(station: Station, query: str) -> bool:
    """
    Check whether a station matches a free-text query.

    The query is trimmed and compared case-insensitively as a substring of
    the name, address, locality or region. An empty query matches everything.
    """
    needle = query.strip().lower()
    if not needle:
        return True
    fields = (station.name, station.address, station.locality, station.region)
    return any(needle in field.lower() for field in fields if field)


def filter_stations(stations: Sequence[Station], query: str) -> list[Station]:
    return [s for s in stations if station_matches(s, query)]


def sort_stations(stations: Sequence[Station], kind: FuelKind) -> list[Station]:
    """Stable sort by price of `kind`, stations without a price last."""

    def key(station: Station) -> float:
        price = price_of(station, kind)
        return math.inf if price is None else price

    return sorted(stations, key=key)


def present_prices(stations: Sequence[Station], kind: FuelKind) -> list[float]:
    """Strictly positive prices of `kind`, in station order."""
    prices = (price_of(s, kind) for s in stations)
    return [p for p in prices if p is not None and p > 0]


def average_price(stations: Sequence[Station], kind: FuelKind) -> float:
    """Mean present price rounded to 3 decimals, 0 when nobody sells `kind`."""
    prices = present_prices(stations, kind)
    if not prices:
        return 0
    return round(sum(prices) / len(prices), 3)


class StationCatalog:
    """
    Canonical station list plus the selection state that shapes its views.

    `filtered_stations`, `sorted_stations`, `average_price` and `stats` are
    recomputed from {stations, query, selected fuel kind} on every read.
    Subscribe to `watch_view` to hear when any of those inputs change.
    """

    def __init__(
        self,
        fetcher: StationFetcher,
        geocoder: Geocoder | None = None,
        locator: GeoLocator | None = None,
        default_radius_km: float = config.DEFAULT_RADIUS_KM,
        page_limit: int = config.DEFAULT_PAGE_LIMIT,
        tank_litres: float = config.TANK_LITRES,
    ):
        """
        Initialize catalog.

        Args:
            fetcher: Source of raw station records
            geocoder: Place-name resolver for search_by_place_name
            locator: Used to fill distances the fetcher did not provide
            default_radius_km: Radius used until load_around is called
            page_limit: Maximum number of stations per load
            tank_litres: Tank size for the saving estimate
        """
        self.fetcher = fetcher
        self.geocoder = geocoder
        self.locator = locator
        self.page_limit = page_limit
        self.tank_litres = tank_litres

        self.stations: Signal[list[Station]] = Signal([])
        self.is_loading: Signal[bool] = Signal(False)
        self.error: Signal[str | None] = Signal(None)
        self.selected_fuel_kind: Signal[FuelKind] = Signal(DEFAULT_FUEL_KIND)
        self.query: Signal[str] = Signal("")
        self.search_center: Signal[SearchCenter | None] = Signal(None)

        self._last_radius_km = clamp_radius(default_radius_km)
        self._requests = 0

    @property
    def radius_km(self) -> float:
        """Radius of the last load, or the default before any load."""
        return self._last_radius_km

    # -- State setters --

    def set_selected_fuel_kind(self, kind: FuelKind | str) -> None:
        self.selected_fuel_kind.set(FuelKind(kind))

    def set_query(self, text: str) -> None:
        self.query.set(text)

    # -- Loading --

    async def load_around(self, center: GeoPoint, radius_km: float) -> None:
        """
        Replace the station list with the stations around `center`.

        Failures empty the list and set a user-facing `error`; nothing is
        retried. Overlapping calls are not cancelled: whichever fetch
        resolves last is the one left in place.

        Args:
            center: Search center
            radius_km: Search radius, clamped to the supported range
        """
        radius_km = clamp_radius(radius_km)
        self._requests += 1
        request_id = self._requests

        self.is_loading.set(True)
        self.error.set(None)
        self.search_center.set(SearchCenter(center, radius_km))
        self._last_radius_km = radius_km

        try:
            records = await asyncio.to_thread(
                self.fetcher.fetch,
                center.latitude,
                center.longitude,
                radius_km,
                self.page_limit,
            )
            stations = self._annotate_distances(stations_from_records(records))
        except Exception as err:  # Every fetch failure ends up as the error message
            _LOGGER.error("Error loading stations around %s: %s", center, err)
            self.error.set(LOAD_ERROR_MESSAGE)
            stations = []
        else:
            _LOGGER.debug(
                "Loaded %d stations within %s km of %s", len(stations), radius_km, center
            )

        if request_id != self._requests:
            _LOGGER.debug("Applying result of superseded request #%d", request_id)
        self.stations.set(stations)
        self.is_loading.set(False)

    async def set_radius(self, radius_km: float) -> None:
        """Change the radius, reloading around the current center if there is one."""
        center = self.search_center.value
        if center is None:
            self._last_radius_km = clamp_radius(radius_km)
            return
        await self.load_around(center.point, radius_km)

    async def search_by_place_name(self, text: str) -> bool:
        """
        Geocode `text` and load the stations around the best match.

        A miss or a geocoding failure leaves the state untouched.

        Returns:
            True if a load was started
        """
        text = text.strip()
        if not text or self.geocoder is None:
            return False

        try:
            point = await asyncio.to_thread(self.geocoder.geocode, text)
        except FetchError as err:
            _LOGGER.warning("Geocoding %r failed: %s", text, err)
            return False

        if point is None:
            _LOGGER.warning("No place found for %r", text)
            return False

        self.query.set("")
        await self.load_around(point, self._last_radius_km)
        return True

    def _annotate_distances(self, stations: list[Station]) -> list[Station]:
        if self.locator is None or not self.locator.has_location:
            return stations
        return [
            dataclasses.replace(
                s, distance_km=self.locator.distance_from_last_known(s.point)
            )
            if s.distance_km is None
            else s
            for s in stations
        ]

    # -- Derived views --

    def price_of(self, station: Station, kind: FuelKind | None = None) -> float | None:
        """Price of `kind` (default: the selected kind) at `station`."""
        return price_of(station, kind or self.selected_fuel_kind.value)

    @property
    def filtered_stations(self) -> list[Station]:
        return filter_stations(self.stations.value, self.query.value)

    @property
    def sorted_stations(self) -> list[Station]:
        return sort_stations(self.filtered_stations, self.selected_fuel_kind.value)

    @property
    def average_price(self) -> float:
        return average_price(self.sorted_stations, self.selected_fuel_kind.value)

    @property
    def stats(self) -> CatalogStats:
        """Count, cheapest, average and full-tank saving for the sorted view."""
        kind = self.selected_fuel_kind.value
        stations = self.sorted_stations
        prices = present_prices(stations, kind)
        cheapest = min(prices) if prices else None
        average = average_price(stations, kind)

        saving = 0.0
        if cheapest and average > 0:
            saving = round((average - cheapest) * self.tank_litres, 2)

        return CatalogStats(
            station_count=len(stations),
            cheapest=cheapest,
            average=average,
            tank_saving=saving,
        )

    def find_station(self, station_id: str) -> Station | None:
        for station in self.stations.value:
            if station.station_id == station_id:
                return station
        return None

    def watch_view(self, listener: Callable[[], None]) -> Callable[[], None]:
        """
        Call `listener` whenever stations, query or selected fuel kind change.

        Returns:
            Callable that removes the listener from all three inputs
        """
        unsubscribers = [
            signal.subscribe(lambda _value: listener())
            for signal in (self.stations, self.query, self.selected_fuel_kind)
        ]

        def unsubscribe() -> None:
            for remove in unsubscribers:
                remove()

        return unsubscribe


def clamp_radius(radius_km: float) -> float:
    return max(config.RADIUS_MIN_KM, min(config.RADIUS_MAX_KM, radius_km))
