"""Map presenter: turns catalog state into map layers and map input into events."""

import logging
import math
from collections.abc import Callable

from .. import config
from ..catalog.catalog import StationCatalog
from ..models import GeoPoint, Station
from ..reactive import Event, Signal
from .gestures import LongPressGesture, Scheduler
from .icons import (
    highlight_marker,
    marker_style,
    search_center_marker,
    station_marker,
    user_location_features,
)
from .popups import station_popup
from .surface import MapFeature, MapSurface
from .theme import Theme, basemap_url
from .viewport import Bounds

_LOGGER = logging.getLogger(__name__)

MARKERS_LAYER = "markers"
HIGHLIGHT_LAYER = "highlight"
SEARCH_CENTER_LAYER = "search_center"


def has_valid_coordinates(station: Station) -> bool:
    lat, lon = station.latitude, station.longitude
    return (
        math.isfinite(lat)
        and math.isfinite(lon)
        and -90 <= lat <= 90
        and -180 <= lon <= 180
    )


def search_center_visible(
    center: GeoPoint | None,
    user_location: GeoPoint | None,
    epsilon: float = config.SEARCH_CENTER_EPSILON_DEG,
) -> bool:
    """A search-center pin is only worth drawing away from the user's own dot."""
    if center is None:
        return False
    if user_location is None:
        return True
    return (
        abs(center.latitude - user_location.latitude) > epsilon
        or abs(center.longitude - user_location.longitude) > epsilon
    )


class MapPresenter:
    """
    Keep a MapSurface in sync with four independent inputs.

    - station view (catalog stations, query, fuel kind) and search center:
      rebuild markers and refit the viewport
    - user location: rebuild markers, refit, redraw the search-center pin
    - highlighted station: redraw the highlight ring, panning to it if hidden
    - theme: swap the basemap

    Every render step is idempotent and does nothing until a surface is
    attached. Station clicks and relocation gestures are emitted through
    `station_clicked` and `relocate_requested`; the presenter never
    changes catalog state itself.
    """

    def __init__(
        self,
        catalog: StationCatalog,
        location: Signal[GeoPoint | None],
        highlighted: Signal[Station | None],
        theme: Signal[Theme],
        scheduler: Scheduler | None = None,
        fit_padding: int = config.FIT_PADDING_PX,
        fit_max_zoom: int = config.FIT_MAX_ZOOM,
        single_point_zoom: int = config.SINGLE_POINT_ZOOM,
    ):
        self.catalog = catalog
        self.location = location
        self.highlighted = highlighted
        self.theme = theme
        self.fit_padding = fit_padding
        self.fit_max_zoom = fit_max_zoom
        self.single_point_zoom = single_point_zoom

        self.station_clicked: Event[Station] = Event()
        self.relocate_requested: Event[GeoPoint] = Event()

        self.surface: MapSurface | None = None
        self._stations_by_id: dict[str, Station] = {}
        self._long_press = LongPressGesture(self._relocate, scheduler=scheduler)

        self._unsubscribers: list[Callable[[], None]] = [
            catalog.watch_view(self.refresh_stations),
            catalog.search_center.subscribe(self._on_search_center),
            location.subscribe(self._on_location),
            highlighted.subscribe(lambda _station: self.render_highlight()),
            theme.subscribe(lambda _theme: self.render_basemap()),
        ]

    # -- Lifecycle --

    def attach(self, surface: MapSurface) -> None:
        """Start drawing on `surface` and bring it up to date."""
        self.surface = surface
        self.render_basemap()
        self.refresh_stations()
        self.render_search_center()
        self.render_highlight()

    def close(self) -> None:
        """Drop every subscription and pending timer; the presenter is inert afterwards."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._long_press.cancel()
        if self.surface is not None:
            self.surface.close()
        self.surface = None

    def _on_search_center(self, _center) -> None:
        self.refresh_stations()
        self.render_search_center()

    def _on_location(self, _location) -> None:
        self.refresh_stations()
        self.render_search_center()

    # -- Render steps --

    def refresh_stations(self) -> None:
        self.render_markers()
        self.fit_view()

    def render_markers(self) -> None:
        """Rebuild the user-location dot and one marker per station of the sorted view."""
        if self.surface is None:
            return

        features: list[MapFeature] = []
        user_location = self.location.value
        if user_location is not None:
            features.extend(user_location_features(user_location))

        kind = self.catalog.selected_fuel_kind.value
        stations = self.catalog.sorted_stations
        average = self.catalog.average_price

        self._stations_by_id = {}
        for rank, station in enumerate(stations, start=1):
            if not has_valid_coordinates(station):
                continue
            price = self.catalog.price_of(station, kind)
            style = marker_style(rank, price, average)
            popup = station_popup(station, rank, style, kind, average)
            features.append(station_marker(station, rank, style, popup))
            self._stations_by_id[station.station_id] = station

        self.surface.set_layer(MARKERS_LAYER, features)
        _LOGGER.debug("Rendered %d station markers", len(self._stations_by_id))

    def fit_view(self) -> None:
        """
        Frame stations, user location and search center.

        Two or more points: fit their bounding box (padded, zoom capped).
        One point: center on it at the default zoom. None: leave the view alone.
        """
        if self.surface is None:
            return

        points = [s.point for s in self.catalog.sorted_stations if has_valid_coordinates(s)]
        if self.location.value is not None:
            points.append(self.location.value)
        center = self.catalog.search_center.value
        if center is not None:
            points.append(center.point)

        if len(points) > 1:
            self.surface.fit_bounds(
                Bounds.from_points(points), self.fit_padding, self.fit_max_zoom
            )
        elif len(points) == 1:
            self.surface.set_view(points[0], self.single_point_zoom)

    def render_highlight(self) -> None:
        if self.surface is None:
            return

        self.surface.clear_layer(HIGHLIGHT_LAYER)
        station = self.highlighted.value
        if station is None or not has_valid_coordinates(station):
            return

        self.surface.set_layer(HIGHLIGHT_LAYER, [highlight_marker(station.point)])
        if not self.surface.visible_bounds().contains(station.point):
            self.surface.pan_to(station.point)

    def render_search_center(self) -> None:
        if self.surface is None:
            return

        self.surface.clear_layer(SEARCH_CENTER_LAYER)
        center = self.catalog.search_center.value
        center_point = center.point if center is not None else None
        if search_center_visible(center_point, self.location.value):
            self.surface.set_layer(SEARCH_CENTER_LAYER, [search_center_marker(center_point)])

    def render_basemap(self) -> None:
        if self.surface is None:
            return
        self.surface.set_basemap(basemap_url(self.theme.value))

    # -- Map input --

    def marker_clicked(self, station_id: str) -> Station | None:
        """Emit `station_clicked` for a rendered station marker."""
        station = self._stations_by_id.get(station_id)
        if station is None:
            _LOGGER.debug("Click on unknown marker %s", station_id)
            return None
        self.station_clicked.emit(station)
        return station

    def double_click(self, point: GeoPoint) -> None:
        self._relocate(point)

    def context_menu(self, point: GeoPoint) -> None:
        self._relocate(point)

    def pointer_down(self, point: GeoPoint, contacts: int = 1) -> None:
        self._long_press.press(point, contacts)

    def pointer_move(self) -> None:
        self._long_press.move()

    def pointer_up(self) -> None:
        self._long_press.release()

    def pointer_cancel(self) -> None:
        self._long_press.cancel()

    def _relocate(self, point: GeoPoint) -> None:
        if self.surface is None:
            return
        self.relocate_requested.emit(point)
