"""Tests for map module."""

import asyncio
import dataclasses

import pytest

from surtigo import config
from surtigo.catalog.catalog import StationCatalog
from surtigo.map.folium_surface import FoliumMapSurface
from surtigo.map.gestures import LongPressGesture, PressState
from surtigo.map.icons import (
    DEFAULT_BRAND_COLORS,
    GENERIC_LOGO,
    MarkerStyle,
    brand_colors,
    brand_logo_url,
    marker_style,
    station_marker,
)
from surtigo.map.popups import navigation_links, other_prices, station_popup
from surtigo.map.presenter import (
    HIGHLIGHT_LAYER,
    MARKERS_LAYER,
    SEARCH_CENTER_LAYER,
    MapPresenter,
    search_center_visible,
)
from surtigo.map.surface import CircleFeature, MapSurface, MarkerFeature
from surtigo.map.templating import format_price
from surtigo.map.theme import Theme, ThemeMode, ThemeSettings, basemap_url
from surtigo.map.viewport import Bounds, Viewport, zoom_to_fit
from surtigo.models import FuelKind, GeoPoint, Station
from surtigo.reactive import Signal

MADRID = GeoPoint(40.4168, -3.7038)
BARCELONA = GeoPoint(41.3874, 2.1686)


class FakeTimer:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Collects timers; tests fire them explicitly."""

    def __init__(self):
        self.timers = []

    def call_later(self, delay, callback):
        timer = FakeTimer()
        self.timers.append((delay, callback, timer))
        return timer

    def fire_all(self):
        for _delay, callback, timer in list(self.timers):
            if not timer.cancelled:
                callback()
        self.timers.clear()


class FakeFetcher:
    def __init__(self, records):
        self.records = records

    def fetch(self, lat, lon, radius_km, limit):
        return self.records


def make_record(station_id, lat, lon, price=None, brand="REPSOL"):
    return {
        "idEstacion": station_id,
        "nombreEstacion": f"Station {station_id}",
        "direccion": "Calle Mayor 1",
        "latitud": lat,
        "longitud": lon,
        "localidad": "MADRID",
        "marca": brand,
        "Gasolina95": price,
    }


RECORDS = [
    make_record("a", 40.45, -3.70, 1.45),
    make_record("b", 40.40, -3.65, 1.30),
    make_record("c", 40.38, -3.75, 1.60),
    make_record("d", 40.42, -3.72, 1.40),
    make_record("e", 40.50, -3.60, None),
]


@pytest.fixture
def catalog():
    return StationCatalog(FakeFetcher(RECORDS))


@pytest.fixture
def location():
    return Signal(None)


@pytest.fixture
def highlighted():
    return Signal(None)


@pytest.fixture
def theme():
    return Signal(Theme.DARK)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def presenter(catalog, location, highlighted, theme, scheduler):
    return MapPresenter(catalog, location, highlighted, theme, scheduler=scheduler)


@pytest.fixture
def surface():
    return MapSurface()


def load(catalog, center=MADRID, radius_km=20):
    asyncio.run(catalog.load_around(center, radius_km))


def station_ids(surface):
    return [f.station_id for f in surface.layer(MARKERS_LAYER) if isinstance(f, MarkerFeature)]


class TestViewport:
    """Tests for Web Mercator viewport math."""

    def test_bounds_from_points(self):
        bounds = Bounds.from_points([MADRID, BARCELONA])
        assert bounds == Bounds(MADRID.latitude, MADRID.longitude, BARCELONA.latitude, BARCELONA.longitude)
        assert Bounds.from_points([]) is None

    def test_viewport_contains_center(self):
        viewport = Viewport(center=MADRID, zoom=10, width=800, height=600)
        assert viewport.bounds().contains(MADRID)
        assert not viewport.bounds().contains(BARCELONA)

    def test_tiny_bounds_use_max_zoom(self):
        bounds = Bounds.from_points([MADRID, GeoPoint(40.4169, -3.7037)])
        assert zoom_to_fit(bounds, 800, 600, padding=40, max_zoom=14) == 14

    def test_wide_bounds_zoom_out(self):
        bounds = Bounds.from_points([MADRID, BARCELONA])
        zoom = zoom_to_fit(bounds, 800, 600, padding=40, max_zoom=14)
        assert zoom < 10


class TestMarkerStyle:
    """Tests for rank and price styling."""

    def test_top_ranks(self):
        for rank in (1, 2, 3):
            assert marker_style(rank, 1.5, 1.45) is MarkerStyle.TOP

    def test_cheap_below_average(self):
        assert marker_style(4, 1.40, 1.45) is MarkerStyle.CHEAP

    def test_neutral(self):
        assert marker_style(4, 1.50, 1.45) is MarkerStyle.NEUTRAL
        assert marker_style(4, 1.40, 0) is MarkerStyle.NEUTRAL

    def test_no_price_is_never_top(self):
        assert marker_style(1, None, 1.45) is MarkerStyle.NEUTRAL


class TestIcons:
    """Tests for brand iconography."""

    def test_logo_url(self):
        assert brand_logo_url("Repsol").endswith("/repsol.webp")
        assert brand_logo_url("LOW COST REPOST S.L.").endswith("/lowcost.webp")
        assert brand_logo_url("E.LECLERC").endswith("/e.leclerc.webp")
        assert brand_logo_url(None) == GENERIC_LOGO

    def test_brand_colors(self):
        assert brand_colors("Repsol Butano").bg == "#EE3524"
        assert brand_colors("Gasolinera Pepe") == DEFAULT_BRAND_COLORS
        assert brand_colors(None) == DEFAULT_BRAND_COLORS

    def test_top_marker_is_larger(self):
        station = Station("1", "Uno", "Calle", 40.4, -3.7, brand="BP")
        top = station_marker(station, 1, MarkerStyle.TOP)
        plain = station_marker(station, 7, MarkerStyle.NEUTRAL)

        assert top.icon_size[0] > plain.icon_size[0]
        assert top.station_id == "1"
        assert 'data-station-id="1"' in top.icon_html
        assert ">1<" in top.icon_html
        assert ">7<" not in plain.icon_html


class TestPopups:
    """Tests for station popup content."""

    @pytest.fixture
    def station(self):
        return Station(
            station_id="1",
            name="Repsol <Norte>",
            address="Calle Mayor 1",
            latitude=40.4,
            longitude=-3.7,
            region="MADRID",
            locality="Alcobendas",
            brand="REPSOL",
            opening_hours="L-D: 24H",
            distance_km=0.35,
            prices={FuelKind.REGULAR_95: 1.459, FuelKind.DIESEL: 1.389, FuelKind.LPG: None},
        )

    def test_content(self, station):
        html = station_popup(station, 1, MarkerStyle.TOP, FuelKind.REGULAR_95, 1.5)

        assert "Repsol &lt;Norte&gt;" in html
        assert "#1" in html
        assert "Alcobendas · MADRID" in html
        assert "Gasolina 95" in html
        assert "1.459 €/L" in html
        assert "350 m" in html
        assert "L-D: 24H" in html
        assert "google.com/maps" in html

    def test_missing_price(self, station):
        html = station_popup(station, 5, MarkerStyle.NEUTRAL, FuelKind.REGULAR_98, 1.5)
        assert "Sin datos" in html
        assert "#5" not in html

    def test_other_prices_exclude_selected_and_missing(self, station):
        assert other_prices(station, FuelKind.REGULAR_95) == [("Diésel", 1.389)]

    def test_navigation_links(self, station):
        labels = [label for label, _url in navigation_links(station)]
        assert labels == ["Google", "Waze", "Apple"]

    def test_regional_average(self, station):
        station = dataclasses.replace(station, regional_averages={FuelKind.DIESEL: 1.412})

        html = station_popup(station, 2, MarkerStyle.TOP, FuelKind.DIESEL, 1.5)
        assert "Media provincial 1.412 €/L" in html

        html = station_popup(station, 2, MarkerStyle.TOP, FuelKind.REGULAR_95, 1.5)
        assert "Media provincial" not in html

    def test_zero_price_has_no_data(self, station):
        station = dataclasses.replace(station, prices={FuelKind.REGULAR_95: 0.0})
        html = station_popup(station, 4, MarkerStyle.NEUTRAL, FuelKind.REGULAR_95, 1.5)
        assert "Sin datos" in html
        assert "0.000" not in html

    def test_format_price(self):
        assert format_price(1.4591) == "1.459 €/L"
        assert format_price(0) == "Sin datos"
        assert format_price(None) == "Sin datos"


class TestMapPresenter:
    """Tests for MapPresenter."""

    def test_no_render_before_attach(self, presenter, catalog, location):
        load(catalog)
        location.set(MADRID)
        assert presenter.surface is None

    def test_attach_renders_current_state(self, presenter, catalog, surface):
        load(catalog)
        presenter.attach(surface)

        assert station_ids(surface) == ["b", "d", "a", "c", "e"]
        assert surface.basemap_url == config.DARK_TILES

    def test_markers_follow_fuel_kind_and_query(self, presenter, catalog, surface):
        presenter.attach(surface)
        load(catalog)
        catalog.set_query("zzz")
        assert station_ids(surface) == []

        catalog.set_query("")
        catalog.set_selected_fuel_kind(FuelKind.DIESEL)
        assert station_ids(surface) == ["a", "b", "c", "d", "e"]

    def test_user_location_dot(self, presenter, location, surface):
        presenter.attach(surface)
        location.set(MADRID)
        circles = [f for f in surface.layer(MARKERS_LAYER) if isinstance(f, CircleFeature)]
        assert len(circles) == 2
        assert all(c.point == MADRID for c in circles)

    def test_fit_no_points_keeps_view(self, presenter, surface):
        before = surface.viewport
        presenter.attach(surface)
        assert surface.viewport == before

    def test_fit_single_point(self, presenter, location, surface):
        presenter.attach(surface)
        location.set(MADRID)
        assert surface.viewport.center == MADRID
        assert surface.viewport.zoom == config.SINGLE_POINT_ZOOM

    def test_fit_many_points(self, presenter, catalog, location, surface):
        presenter.attach(surface)
        location.set(MADRID)
        load(catalog)

        visible = surface.visible_bounds()
        for record in RECORDS:
            assert visible.contains(GeoPoint(record["latitud"], record["longitud"]))
        assert visible.contains(MADRID)
        assert surface.viewport.zoom <= config.FIT_MAX_ZOOM

    def test_search_center_visible(self):
        user = GeoPoint(40.0, -3.0)
        assert not search_center_visible(GeoPoint(40.0, -3.0), user)
        assert search_center_visible(GeoPoint(40.1, -3.0), user)
        assert search_center_visible(GeoPoint(40.0, -3.0), None)
        assert not search_center_visible(None, user)

    def test_search_center_pin(self, presenter, catalog, location, surface):
        presenter.attach(surface)
        location.set(GeoPoint(40.0, -3.0))

        load(catalog, GeoPoint(40.0, -3.0))
        assert surface.layer(SEARCH_CENTER_LAYER) == []

        load(catalog, GeoPoint(40.1, -3.0))
        assert len(surface.layer(SEARCH_CENTER_LAYER)) == 1

    def test_highlight_pans_when_hidden(self, presenter, highlighted, surface):
        presenter.attach(surface)
        surface.set_view(MADRID, 13)

        far = Station("x", "Lejos", "Calle", BARCELONA.latitude, BARCELONA.longitude)
        highlighted.set(far)

        assert len(surface.layer(HIGHLIGHT_LAYER)) == 1
        assert surface.viewport.center == BARCELONA
        assert surface.viewport.zoom == 13

    def test_highlight_visible_does_not_pan(self, presenter, highlighted, surface):
        presenter.attach(surface)
        surface.set_view(MADRID, 13)

        near = Station("y", "Cerca", "Calle", 40.4170, -3.7040)
        highlighted.set(near)

        assert surface.viewport.center == MADRID
        highlighted.set(None)
        assert surface.layer(HIGHLIGHT_LAYER) == []

    def test_basemap_swap_keeps_layers_and_view(self, presenter, catalog, theme, surface):
        presenter.attach(surface)
        load(catalog)
        layers = dict(surface.layers)
        viewport = surface.viewport

        theme.set(Theme.LIGHT)

        assert surface.basemap_url == config.LIGHT_TILES
        assert surface.layers == layers
        assert surface.viewport == viewport

    def test_marker_click(self, presenter, catalog, surface):
        clicked = []
        presenter.station_clicked.subscribe(clicked.append)
        presenter.attach(surface)
        load(catalog)

        assert presenter.marker_clicked("b").station_id == "b"
        assert presenter.marker_clicked("nope") is None
        assert [s.station_id for s in clicked] == ["b"]

    def test_double_click_and_context_menu_relocate(self, presenter, surface):
        requested = []
        presenter.relocate_requested.subscribe(requested.append)

        presenter.double_click(MADRID)
        assert requested == []

        presenter.attach(surface)
        presenter.double_click(MADRID)
        presenter.context_menu(BARCELONA)
        assert requested == [MADRID, BARCELONA]

    def test_long_press_relocates(self, presenter, scheduler, surface):
        requested = []
        presenter.relocate_requested.subscribe(requested.append)
        presenter.attach(surface)

        presenter.pointer_down(MADRID)
        assert scheduler.timers[0][0] == pytest.approx(config.LONG_PRESS_S)
        scheduler.fire_all()
        assert requested == [MADRID]

    def test_long_press_cancelled_by_move(self, presenter, scheduler, surface):
        requested = []
        presenter.relocate_requested.subscribe(requested.append)
        presenter.attach(surface)

        presenter.pointer_down(MADRID)
        presenter.pointer_move()
        scheduler.fire_all()
        assert requested == []

    def test_close_unsubscribes(self, presenter, catalog, location, highlighted, theme, surface):
        presenter.attach(surface)
        presenter.close()

        for signal in (catalog.stations, catalog.query, catalog.search_center, location, highlighted, theme):
            assert signal.listener_count == 0
        assert surface.closed
        assert presenter.surface is None

        load(catalog)
        assert surface.layers == {}

    def test_close_cancels_pending_long_press(self, presenter, scheduler, surface):
        requested = []
        presenter.relocate_requested.subscribe(requested.append)
        presenter.attach(surface)

        presenter.pointer_down(MADRID)
        presenter.close()

        _delay, _callback, timer = scheduler.timers[0]
        assert timer.cancelled
        scheduler.fire_all()
        assert requested == []


class TestLongPressGesture:
    """Tests for the long-press state machine."""

    @pytest.fixture
    def fired(self):
        return []

    @pytest.fixture
    def gesture(self, fired, scheduler):
        return LongPressGesture(fired.append, delay=0.7, scheduler=scheduler)

    def test_fires_once(self, gesture, fired, scheduler):
        gesture.press(MADRID)
        assert gesture.state is PressState.ARMED

        scheduler.fire_all()
        assert fired == [MADRID]
        assert gesture.state is PressState.IDLE

        scheduler.fire_all()
        assert fired == [MADRID]

    def test_release_cancels(self, gesture, fired, scheduler):
        gesture.press(MADRID)
        gesture.release()
        scheduler.fire_all()
        assert fired == []
        assert gesture.state is PressState.IDLE

    def test_multi_touch_does_not_arm(self, gesture, fired, scheduler):
        gesture.press(MADRID, contacts=2)
        assert gesture.state is PressState.IDLE
        assert scheduler.timers == []

    def test_new_press_replaces_pending_one(self, gesture, fired, scheduler):
        gesture.press(MADRID)
        gesture.press(BARCELONA)
        scheduler.fire_all()
        assert fired == [BARCELONA]


class TestThemeSettings:
    """Tests for theme modes."""

    def test_default_dark(self):
        settings = ThemeSettings()
        assert settings.mode.value is ThemeMode.DARK
        assert settings.resolved.value is Theme.DARK

    def test_cycle(self):
        settings = ThemeSettings(mode=ThemeMode.SYSTEM)
        assert settings.cycle() is ThemeMode.LIGHT
        assert settings.cycle() is ThemeMode.DARK
        assert settings.cycle() is ThemeMode.SYSTEM

    def test_system_follows_preference(self):
        prefers_dark = [False]
        settings = ThemeSettings(mode="system", prefers_dark=lambda: prefers_dark[0])
        assert settings.resolved.value is Theme.LIGHT

        prefers_dark[0] = True
        settings.system_changed()
        assert settings.resolved.value is Theme.DARK

    def test_basemaps(self):
        assert basemap_url(Theme.LIGHT) == config.LIGHT_TILES
        assert basemap_url(Theme.DARK) == config.DARK_TILES


class TestFoliumMapSurface:
    """Tests for HTML export."""

    def test_html_contains_markers_and_basemap(self, presenter, catalog):
        surface = FoliumMapSurface()
        presenter.attach(surface)
        load(catalog)

        html = surface.to_html()
        assert "dark_all" in html
        assert "data-station-id" in html
        assert "/search-center" not in html

    def test_interactions_script(self, presenter, catalog):
        surface = FoliumMapSurface(api_base="/api")
        presenter.attach(surface)
        load(catalog)

        html = surface.to_html()
        assert "dblclick" in html
        assert "/search-center" in html
        assert "/select" in html
        assert html.count("window.location.reload()") == 2

    def test_save(self, presenter, catalog, tmp_path):
        surface = FoliumMapSurface()
        presenter.attach(surface)
        load(catalog)

        path = surface.save(tmp_path / "map.html")
        assert path.exists()
        assert "cartocdn" in path.read_text(encoding="utf-8")
