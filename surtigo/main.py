"""
Surtigo - command-line entry point.

Usage:
    python -m surtigo.main --lat 40.4167 --lon -3.7033
    python -m surtigo.main --place "Alcobendas" --fuel diesel --map stations.html
    python -m surtigo.main --ip --radius 10 --query repsol
    python -m surtigo.main --help
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from surtigo import config
from surtigo.catalog import (
    LocalStationSource,
    NominatimGeocoder,
    StationApiClient,
    StationCatalog,
)
from surtigo.dashboard import Dashboard
from surtigo.geo import FixedPositionSensor, GeoLocator, IPLocationSensor
from surtigo.map import FoliumMapSurface, ThemeSettings, marker_style
from surtigo.models import CatalogStats, FuelKind, GeoPoint, Station


def format_station_line(rank: int, station: Station, catalog: StationCatalog) -> str:
    """
    Format one station of the sorted view.

    Output: rank,name,locality,price,distance_km,style
    """
    price = catalog.price_of(station)
    style = marker_style(rank, price, catalog.average_price)
    price_str = f"{price:.3f}" if price is not None else "NO_DATA"
    distance_str = f"{station.distance_km:.2f}" if station.distance_km is not None else ""
    locality = station.locality or station.region or ""
    return f'{rank},"{station.name}","{locality}",{price_str},{distance_str},{style.value}'


def format_summary(stats: CatalogStats, kind: FuelKind) -> str:
    cheapest = f"{stats.cheapest:.3f}" if stats.cheapest is not None else "NO_DATA"
    return (
        f"# {stats.station_count} stations, {kind.label}: "
        f"average {stats.average:.3f}, cheapest {cheapest}, "
        f"saving on {config.TANK_LITRES} L {stats.tank_saving:.2f} EUR"
    )


def build_sensor(args: argparse.Namespace):
    if args.lat is not None and args.lon is not None:
        return FixedPositionSensor(GeoPoint(args.lat, args.lon))
    if args.ip:
        return IPLocationSensor()
    return None


async def run(args: argparse.Namespace) -> int:
    """Load, rank and print stations; returns the exit status."""
    if args.stations_file:
        fetcher = LocalStationSource(args.stations_file)
    else:
        fetcher = StationApiClient()

    locator = GeoLocator(build_sensor(args))
    catalog = StationCatalog(
        fetcher,
        geocoder=NominatimGeocoder(),
        locator=locator,
        default_radius_km=args.radius,
    )
    dashboard = Dashboard(locator, catalog, theme=ThemeSettings(mode=args.theme))

    surface = None
    if args.map:
        surface = FoliumMapSurface()
        dashboard.attach(surface)

    catalog.set_selected_fuel_kind(args.fuel)

    if args.place:
        if not await catalog.search_by_place_name(args.place):
            print(f"Error: Place not found: {args.place}", file=sys.stderr)
            return 1
    else:
        result = await dashboard.start()
        if not result.ok:
            print(f"Error: {result.error.message}", file=sys.stderr)
            return 1

    if catalog.error.value:
        print(f"Error: {catalog.error.value}", file=sys.stderr)
        return 1

    if args.query:
        catalog.set_query(args.query)

    for rank, station in enumerate(catalog.sorted_stations, start=1):
        print(format_station_line(rank, station, catalog))
    print(format_summary(catalog.stats, catalog.selected_fuel_kind.value))

    if surface is not None:
        path = surface.save(args.map)
        print(f"# Map written to {path}", file=sys.stderr)

    await dashboard.close()
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Surtigo - Find the cheapest fuel stations near a point"
    )
    parser.add_argument("--lat", type=float, help="Latitude of the search center")
    parser.add_argument("--lon", type=float, help="Longitude of the search center")
    parser.add_argument(
        "--place",
        help="Place name to search around (geocoded with Nominatim)",
    )
    parser.add_argument(
        "--ip",
        action="store_true",
        help="Locate through IP geolocation when no coordinates are given",
    )
    parser.add_argument(
        "--radius",
        type=float,
        default=config.DEFAULT_RADIUS_KM,
        help=f"Search radius in km (default: {config.DEFAULT_RADIUS_KM})",
    )
    parser.add_argument(
        "--fuel",
        choices=[k.value for k in FuelKind],
        default=FuelKind.REGULAR_95.value,
        help="Fuel kind to rank by (default: gasolina95)",
    )
    parser.add_argument("--query", default="", help="Only show stations matching this text")
    parser.add_argument(
        "--theme",
        choices=["light", "dark"],
        default="dark",
        help="Map basemap theme (default: dark)",
    )
    parser.add_argument("--map", type=Path, help="Write an HTML map to this file")
    parser.add_argument(
        "--stations-file",
        type=Path,
        default=Path(config.STATIONS_FILE) if config.STATIONS_FILE else None,
        help="Read stations from a CSV export instead of the remote API",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if (args.lat is None) != (args.lon is None):
        parser.error("--lat and --lon must be given together")

    if args.stations_file and not args.stations_file.exists():
        print(f"Error: Stations file not found: {args.stations_file}", file=sys.stderr)
        sys.exit(1)

    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
