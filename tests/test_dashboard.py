"""Tests for the dashboard session."""

import asyncio

import pytest

from surtigo import config
from surtigo.catalog.catalog import StationCatalog
from surtigo.dashboard import Dashboard
from surtigo.geo.locator import GeoLocator, LocationError
from surtigo.geo.sensors import FixedPositionSensor
from surtigo.map.presenter import HIGHLIGHT_LAYER, MARKERS_LAYER
from surtigo.map.surface import MapSurface, MarkerFeature
from surtigo.map.theme import ThemeMode
from surtigo.models import GeoPoint

MADRID = GeoPoint(40.4168, -3.7038)
GETAFE = GeoPoint(40.3057, -3.7329)


class FakeTimer:
    def __init__(self):
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    def __init__(self):
        self.timers = []

    def call_later(self, delay, callback):
        timer = FakeTimer()
        self.timers.append((callback, timer))
        return timer

    def fire_all(self):
        for callback, timer in list(self.timers):
            if not timer.cancelled:
                callback()
        self.timers.clear()


class FakeFetcher:
    def __init__(self):
        self.calls = []

    def fetch(self, lat, lon, radius_km, limit):
        self.calls.append((lat, lon, radius_km))
        return [
            {
                "idEstacion": "a",
                "nombreEstacion": "Uno",
                "latitud": lat + 0.01,
                "longitud": lon,
                "Gasolina95": 1.5,
            },
            {
                "idEstacion": "b",
                "nombreEstacion": "Dos",
                "latitud": lat - 0.02,
                "longitud": lon + 0.01,
                "Gasolina95": 1.4,
            },
        ]


@pytest.fixture
def fetcher():
    return FakeFetcher()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def surface():
    return MapSurface()


def make_dashboard(fetcher, scheduler, sensor=FixedPositionSensor(MADRID)):
    locator = GeoLocator(sensor)
    catalog = StationCatalog(fetcher, locator=locator)
    return Dashboard(locator, catalog, scheduler=scheduler)


class TestDashboard:
    """Tests for the locate, load and interact flow."""

    def test_start_loads_around_location(self, fetcher, scheduler, surface):
        dashboard = make_dashboard(fetcher, scheduler)
        dashboard.attach(surface)

        result = asyncio.run(dashboard.start())

        assert result.ok
        assert fetcher.calls == [(MADRID.latitude, MADRID.longitude, config.DEFAULT_RADIUS_KM)]
        ids = [f.station_id for f in surface.layer(MARKERS_LAYER) if isinstance(f, MarkerFeature)]
        assert ids == ["b", "a"]
        assert all(s.distance_km is not None for s in dashboard.catalog.stations.value)

    def test_start_without_location(self, fetcher, scheduler):
        dashboard = make_dashboard(fetcher, scheduler, sensor=None)

        result = asyncio.run(dashboard.start())

        assert result.error is LocationError.UNSUPPORTED
        assert fetcher.calls == []
        assert dashboard.catalog.stations.value == []

    def test_double_click_relocates(self, fetcher, scheduler, surface):
        dashboard = make_dashboard(fetcher, scheduler)
        dashboard.attach(surface)

        async def scenario():
            await dashboard.start()
            dashboard.presenter.double_click(GETAFE)
            await dashboard.drain()

        asyncio.run(scenario())

        assert dashboard.catalog.search_center.value.point == GETAFE
        assert fetcher.calls[-1] == (GETAFE.latitude, GETAFE.longitude, config.DEFAULT_RADIUS_KM)

    def test_long_press_relocates_with_current_radius(self, fetcher, scheduler, surface):
        dashboard = make_dashboard(fetcher, scheduler)
        dashboard.attach(surface)

        async def scenario():
            await dashboard.start()
            await dashboard.catalog.set_radius(35)
            dashboard.presenter.pointer_down(GETAFE)
            scheduler.fire_all()
            await dashboard.drain()

        asyncio.run(scenario())

        assert fetcher.calls[-1] == (GETAFE.latitude, GETAFE.longitude, 35)

    def test_relocate_keeps_user_location(self, fetcher, scheduler, surface):
        dashboard = make_dashboard(fetcher, scheduler)
        dashboard.attach(surface)

        async def scenario():
            await dashboard.start()
            await dashboard.relocate(GETAFE)

        asyncio.run(scenario())

        assert dashboard.locator.last_known_location == MADRID
        assert dashboard.catalog.search_center.value.point == GETAFE

    def test_marker_click_highlights(self, fetcher, scheduler, surface):
        dashboard = make_dashboard(fetcher, scheduler)
        dashboard.attach(surface)
        asyncio.run(dashboard.start())

        dashboard.presenter.marker_clicked("a")

        assert dashboard.highlighted.value.station_id == "a"
        assert len(surface.layer(HIGHLIGHT_LAYER)) == 1

    def test_theme_change_swaps_basemap(self, fetcher, scheduler, surface):
        dashboard = make_dashboard(fetcher, scheduler)
        dashboard.attach(surface)
        assert surface.basemap_url == config.DARK_TILES

        dashboard.theme.set_mode(ThemeMode.LIGHT)
        assert surface.basemap_url == config.LIGHT_TILES

    def test_close(self, fetcher, scheduler, surface):
        dashboard = make_dashboard(fetcher, scheduler)
        dashboard.attach(surface)
        asyncio.run(dashboard.close())

        assert surface.closed
        assert dashboard.catalog.stations.listener_count == 0
