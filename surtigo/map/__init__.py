"""Map presentation of the station catalog."""

from .folium_surface import FoliumMapSurface
from .icons import MarkerStyle, marker_style
from .presenter import MapPresenter
from .surface import CircleFeature, MapSurface, MarkerFeature
from .theme import Theme, ThemeMode, ThemeSettings
from .viewport import Bounds, Viewport

__all__ = [
    "MapPresenter",
    "MapSurface",
    "FoliumMapSurface",
    "MarkerFeature",
    "CircleFeature",
    "MarkerStyle",
    "marker_style",
    "Theme",
    "ThemeMode",
    "ThemeSettings",
    "Bounds",
    "Viewport",
]
