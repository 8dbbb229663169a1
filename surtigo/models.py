"""Core data types: geographic points, fuel kinds and stations."""

from dataclasses import dataclass, field
from enum import Enum


class FuelKind(str, Enum):
    """Fuel categories tracked per station."""

    REGULAR_95 = "gasolina95"
    REGULAR_98 = "gasolina98"
    DIESEL = "diesel"
    DIESEL_PREMIUM = "dieselPremium"
    LPG = "glp"

    @property
    def label(self) -> str:
        """Display name, e.g. "Gasolina 95"."""
        return FUEL_LABELS[self]

    @property
    def short_label(self) -> str:
        """Compact name used in price tables, e.g. "G95"."""
        return FUEL_SHORT_LABELS[self]


FUEL_LABELS = {
    FuelKind.REGULAR_95: "Gasolina 95",
    FuelKind.REGULAR_98: "Gasolina 98",
    FuelKind.DIESEL: "Diésel",
    FuelKind.DIESEL_PREMIUM: "Diésel Premium",
    FuelKind.LPG: "GLP",
}

FUEL_SHORT_LABELS = {
    FuelKind.REGULAR_95: "G95",
    FuelKind.REGULAR_98: "G98",
    FuelKind.DIESEL: "Diésel",
    FuelKind.DIESEL_PREMIUM: "D.Prem",
    FuelKind.LPG: "GLP",
}

DEFAULT_FUEL_KIND = FuelKind.REGULAR_95


@dataclass(frozen=True)
class GeoPoint:
    """WGS84 position in degrees."""

    latitude: float
    longitude: float

    def as_tuple(self) -> tuple[float, float]:
        return (self.latitude, self.longitude)


@dataclass(frozen=True)
class SearchCenter:
    """Point and radius currently driving the loaded station set."""

    point: GeoPoint
    radius_km: float


@dataclass(frozen=True)
class Station:
    """
    Fuel station as loaded by one fetch.

    Optional text fields are None when the source did not provide them.
    `prices` only holds the fuel kinds the station sells; a kind that is
    missing from the mapping is not sold there.
    """

    station_id: str
    name: str
    address: str
    latitude: float
    longitude: float
    region: str | None = None
    locality: str | None = None
    brand: str | None = None
    opening_hours: str | None = None
    distance_km: float | None = None  # From the search reference
    prices: dict[FuelKind, float | None] = field(default_factory=dict)
    regional_averages: dict[FuelKind, float] = field(default_factory=dict)

    @property
    def point(self) -> GeoPoint:
        return GeoPoint(self.latitude, self.longitude)


@dataclass(frozen=True)
class CatalogStats:
    """Aggregates over the current sorted view."""

    station_count: int
    cheapest: float | None
    average: float
    tank_saving: float  # (average - cheapest) * tank size, 0 when unknown
