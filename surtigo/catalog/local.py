"""Station records served from a local CSV export using a KD-Tree."""

import csv
import logging
import math
from pathlib import Path
from typing import Any

import numpy as np
from scipy.spatial import cKDTree

from ..geo.distance import EARTH_RADIUS_KM, haversine

_LOGGER = logging.getLogger(__name__)


def _to_unit_vectors(lat: np.ndarray, lon: np.ndarray) -> np.ndarray:
    """Convert degrees to points on the unit sphere."""
    lat_rad = np.radians(lat)
    lon_rad = np.radians(lon)
    return np.column_stack(
        (
            np.cos(lat_rad) * np.cos(lon_rad),
            np.cos(lat_rad) * np.sin(lon_rad),
            np.sin(lat_rad),
        )
    )


class LocalStationSource:
    """
    Answer radius searches from a CSV file of raw station records.

    The CSV uses the same column names as the station API payload
    (idEstacion, nombreEstacion, latitud, longitud, Gasolina95, ...).
    The KD-Tree is built on unit-sphere vectors so that the Euclidean
    chord length maps exactly onto great-circle distance.
    """

    def __init__(self, stations_file: str | Path | None = None):
        """
        Initialize source with station data.

        Args:
            stations_file: Path to CSV file with station records
        """
        self.records: list[dict[str, Any]] = []
        self.tree: cKDTree | None = None

        if stations_file:
            self.load_records(stations_file)

    def load_records(self, filepath: str | Path) -> None:
        """Load records from CSV, skipping rows without numeric coordinates."""
        filepath = Path(filepath)
        self.records = []

        with open(filepath, encoding="utf-8") as f:
            reader = csv.DictReader(f)
            for row in reader:
                try:
                    row["latitud"] = float(row["latitud"].replace(",", "."))
                    row["longitud"] = float(row["longitud"].replace(",", "."))
                except (AttributeError, KeyError, ValueError):
                    continue
                self.records.append(row)

        _LOGGER.debug("Loaded %d station records from %s", len(self.records), filepath)
        self._build_tree()

    def _build_tree(self) -> None:
        """Build KD-Tree from record coordinates."""
        if not self.records:
            self.tree = None
            return

        lat = np.array([float(r["latitud"]) for r in self.records])
        lon = np.array([float(r["longitud"]) for r in self.records])
        self.tree = cKDTree(_to_unit_vectors(lat, lon))

    def fetch(
        self, lat: float, lon: float, radius_km: float, limit: int
    ) -> list[dict[str, Any]]:
        """
        Find records within a radius, nearest first.

        Args:
            lat: Latitude of the search center (degrees)
            lon: Longitude of the search center (degrees)
            radius_km: Search radius in kilometers
            limit: Maximum number of records

        Returns:
            Copies of the matching records with a `distancia` field (km)
        """
        if self.tree is None:
            return []

        # Chord length on the unit sphere for the given arc
        chord = 2 * math.sin(min(radius_km / EARTH_RADIUS_KM, math.pi) / 2)
        center = _to_unit_vectors(np.array([lat]), np.array([lon]))[0]
        indices = self.tree.query_ball_point(center, r=chord)

        matches = []
        for idx in indices:
            record = self.records[int(idx)]
            distance = haversine(lat, lon, float(record["latitud"]), float(record["longitud"]))
            if distance <= radius_km:
                matches.append((distance, int(idx)))

        matches.sort()
        return [
            {**self.records[idx], "distancia": round(distance, 3)}
            for distance, idx in matches[:limit]
        ]
