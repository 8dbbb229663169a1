"""Wiring of locator, catalog and map into one interactive session."""

import asyncio
import logging

from .catalog.catalog import StationCatalog
from .geo.locator import GeoLocator, LocationResult
from .map.gestures import Scheduler
from .map.presenter import MapPresenter
from .map.surface import MapSurface
from .map.theme import ThemeSettings
from .models import GeoPoint, Station
from .reactive import Signal

_LOGGER = logging.getLogger(__name__)


class Dashboard:
    """
    One session of the station finder.

    Resolves the user's location, loads the stations around it and feeds
    map interactions back: a station click highlights the station, a
    relocation gesture reloads around the chosen point with the current radius.
    """

    def __init__(
        self,
        locator: GeoLocator,
        catalog: StationCatalog,
        theme: ThemeSettings | None = None,
        scheduler: Scheduler | None = None,
    ):
        self.locator = locator
        self.catalog = catalog
        self.theme = theme or ThemeSettings()
        self.highlighted: Signal[Station | None] = Signal(None)

        self.presenter = MapPresenter(
            catalog,
            location=locator.location,
            highlighted=self.highlighted,
            theme=self.theme.resolved,
            scheduler=scheduler,
        )
        self.presenter.station_clicked.subscribe(self.select_station)
        self.presenter.relocate_requested.subscribe(self._on_relocate_requested)

        self._tasks: set[asyncio.Task] = set()

    def attach(self, surface: MapSurface) -> None:
        self.presenter.attach(surface)

    async def start(self) -> LocationResult:
        """Locate the user and load the stations around them."""
        result = await self.locator.resolve_location()
        if result.ok:
            await self.catalog.load_around(result.point, self.catalog.radius_km)
        else:
            _LOGGER.info("No location available: %s", result.error.message)
        return result

    async def relocate(self, point: GeoPoint, radius_km: float | None = None) -> None:
        """Move the search center to `point`."""
        await self.catalog.load_around(point, radius_km or self.catalog.radius_km)

    def select_station(self, station: Station | None) -> None:
        self.highlighted.set(station)

    def _on_relocate_requested(self, point: GeoPoint) -> None:
        # Fire and forget; keep a reference so the task is not collected early
        task = asyncio.get_running_loop().create_task(self.relocate(point))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> None:
        """Wait for relocations started from map gestures."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        self.presenter.close()
        await self.drain()
