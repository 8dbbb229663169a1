"""Render target for the map presenter."""

import logging
from dataclasses import dataclass

from .. import config
from ..models import GeoPoint
from .viewport import Bounds, Viewport, bounds_center, zoom_to_fit

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkerFeature:
    """HTML marker anchored at a point."""

    point: GeoPoint
    icon_html: str
    icon_size: tuple[int, int]
    icon_anchor: tuple[int, int]
    popup_html: str | None = None
    popup_anchor: tuple[int, int] | None = None
    interactive: bool = True
    z_index_offset: int = 0
    station_id: str | None = None


@dataclass(frozen=True)
class CircleFeature:
    """Fixed pixel-size circle, e.g. the user location dot."""

    point: GeoPoint
    radius: int
    fill_color: str
    fill_opacity: float
    color: str
    weight: int
    opacity: float
    popup_html: str | None = None


MapFeature = MarkerFeature | CircleFeature


class MapSurface:
    """
    In-memory map: a viewport, named feature layers and a basemap.

    Hosts that draw on a real widget subclass this and render the state;
    the presenter only talks to this interface.
    """

    def __init__(
        self,
        center: GeoPoint | None = None,
        zoom: int = config.DEFAULT_MAP_ZOOM,
        width: int = config.MAP_WIDTH_PX,
        height: int = config.MAP_HEIGHT_PX,
        max_zoom: int = config.MAP_MAX_ZOOM,
    ):
        center = center or GeoPoint(*config.DEFAULT_MAP_CENTER)
        self.viewport = Viewport(center=center, zoom=zoom, width=width, height=height)
        self.max_zoom = max_zoom
        self.layers: dict[str, list[MapFeature]] = {}
        self.basemap_url: str | None = None
        self.closed = False

    # -- Viewport --

    def set_view(self, center: GeoPoint, zoom: int) -> None:
        self.viewport = self.viewport.moved_to(center, min(zoom, self.max_zoom))

    def fit_bounds(self, bounds: Bounds, padding: int, max_zoom: int) -> None:
        """Center on `bounds` at the highest zoom (up to `max_zoom`) that shows all of it."""
        zoom = zoom_to_fit(
            bounds,
            self.viewport.width,
            self.viewport.height,
            padding=padding,
            max_zoom=min(max_zoom, self.max_zoom),
        )
        self.viewport = self.viewport.moved_to(bounds_center(bounds), zoom)
        _LOGGER.debug("Fitted %s at zoom %d", bounds, zoom)

    def pan_to(self, point: GeoPoint) -> None:
        """Move the center without changing the zoom."""
        self.viewport = self.viewport.moved_to(point)

    def visible_bounds(self) -> Bounds:
        return self.viewport.bounds()

    # -- Layers --

    def set_layer(self, name: str, features: list[MapFeature]) -> None:
        self.layers[name] = list(features)

    def clear_layer(self, name: str) -> None:
        self.layers.pop(name, None)

    def layer(self, name: str) -> list[MapFeature]:
        return self.layers.get(name, [])

    def set_basemap(self, url: str) -> None:
        self.basemap_url = url

    def close(self) -> None:
        self.layers.clear()
        self.closed = True
