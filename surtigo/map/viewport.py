"""Geographic bounds and Web Mercator viewport math."""

import dataclasses
import math
from collections.abc import Iterable
from dataclasses import dataclass

from ..models import GeoPoint

TILE_SIZE = 256
MAX_LATITUDE = 85.0511287798  # Web Mercator cut-off


@dataclass(frozen=True)
class Bounds:
    """Axis-aligned lat/lon box."""

    south: float
    west: float
    north: float
    east: float

    @classmethod
    def from_points(cls, points: Iterable[GeoPoint]) -> "Bounds | None":
        """Smallest box containing all points, None for no points."""
        points = list(points)
        if not points:
            return None
        lats = [p.latitude for p in points]
        lons = [p.longitude for p in points]
        return cls(south=min(lats), west=min(lons), north=max(lats), east=max(lons))

    def contains(self, point: GeoPoint) -> bool:
        return (
            self.south <= point.latitude <= self.north
            and self.west <= point.longitude <= self.east
        )


def project(point: GeoPoint, zoom: float) -> tuple[float, float]:
    """Project a point to world pixel coordinates at `zoom`."""
    scale = TILE_SIZE * 2**zoom
    lat = max(-MAX_LATITUDE, min(MAX_LATITUDE, point.latitude))
    sin_lat = math.sin(math.radians(lat))
    x = (point.longitude + 180) / 360 * scale
    y = (0.5 - math.log((1 + sin_lat) / (1 - sin_lat)) / (4 * math.pi)) * scale
    return x, y


def unproject(x: float, y: float, zoom: float) -> GeoPoint:
    """Inverse of `project`."""
    scale = TILE_SIZE * 2**zoom
    lon = x / scale * 360 - 180
    n = math.pi - 2 * math.pi * y / scale
    lat = math.degrees(math.atan(math.sinh(n)))
    return GeoPoint(lat, lon)


def zoom_to_fit(
    bounds: Bounds,
    width: int,
    height: int,
    padding: int = 0,
    max_zoom: int = 18,
    min_zoom: int = 0,
) -> int:
    """
    Highest integer zoom at which `bounds` fits inside the padded viewport.

    Args:
        bounds: Box that must stay visible
        width: Viewport width in pixels
        height: Viewport height in pixels
        padding: Pixels kept free on every side
        max_zoom: Upper limit, even for tiny boxes
        min_zoom: Lower limit, returned when nothing fits

    Returns:
        Zoom level
    """
    avail_w = max(1, width - 2 * padding)
    avail_h = max(1, height - 2 * padding)
    south_west = GeoPoint(bounds.south, bounds.west)
    north_east = GeoPoint(bounds.north, bounds.east)

    for zoom in range(max_zoom, min_zoom - 1, -1):
        x1, y1 = project(south_west, zoom)
        x2, y2 = project(north_east, zoom)
        if abs(x2 - x1) <= avail_w and abs(y1 - y2) <= avail_h:
            return zoom
    return min_zoom


def bounds_center(bounds: Bounds) -> GeoPoint:
    """Center of the box in projected space (matches what a map displays)."""
    x1, y1 = project(GeoPoint(bounds.south, bounds.west), 0)
    x2, y2 = project(GeoPoint(bounds.north, bounds.east), 0)
    return unproject((x1 + x2) / 2, (y1 + y2) / 2, 0)


@dataclass(frozen=True)
class Viewport:
    """What the map currently shows."""

    center: GeoPoint
    zoom: int
    width: int
    height: int

    def bounds(self) -> Bounds:
        """Geographic box currently visible."""
        cx, cy = project(self.center, self.zoom)
        half_w = self.width / 2
        half_h = self.height / 2
        north_west = unproject(cx - half_w, cy - half_h, self.zoom)
        south_east = unproject(cx + half_w, cy + half_h, self.zoom)
        return Bounds(
            south=south_east.latitude,
            west=north_west.longitude,
            north=north_west.latitude,
            east=south_east.longitude,
        )

    def moved_to(self, center: GeoPoint, zoom: int | None = None) -> "Viewport":
        return dataclasses.replace(
            self, center=center, zoom=self.zoom if zoom is None else zoom
        )
