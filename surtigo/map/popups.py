"""Station popup content."""

from ..catalog.catalog import price_of
from ..geo.distance import format_distance
from ..models import FuelKind, Station
from .icons import ACCENT, MarkerStyle, brand_colors, is_cheap
from .templating import render


def navigation_links(station: Station) -> list[tuple[str, str]]:
    """Directions deep links for Google Maps, Waze and Apple Maps."""
    lat, lon = station.latitude, station.longitude
    return [
        ("Google", f"https://www.google.com/maps/dir/?api=1&destination={lat},{lon}"),
        ("Waze", f"https://waze.com/ul?ll={lat},{lon}&navigate=yes"),
        ("Apple", f"https://maps.apple.com/?daddr={lat},{lon}"),
    ]


def other_prices(station: Station, selected: FuelKind) -> list[tuple[str, float]]:
    """(short label, price) for every known price except the selected kind."""
    rows = []
    for kind in FuelKind:
        if kind is selected:
            continue
        price = price_of(station, kind)
        if price is not None:
            rows.append((kind.short_label, price))
    return rows


def station_popup(
    station: Station,
    rank: int,
    style: MarkerStyle,
    kind: FuelKind,
    average: float,
) -> str:
    """
    Build the popup HTML for a station marker.

    Shows the rank badge (top stations only), name, locality and region,
    brand, the selected fuel's price and its regional average, distance,
    opening hours, the other known prices and navigation links.
    """
    price = price_of(station, kind)
    place = " · ".join(p for p in (station.locality, station.region) if p)

    return render(
        "popup.html",
        station=station,
        rank=rank,
        is_top=style is MarkerStyle.TOP,
        is_cheap=is_cheap(price, average),
        accent=ACCENT,
        place=place,
        brand_colors=brand_colors(station.brand),
        fuel_label=kind.label,
        price=price,
        regional_average=station.regional_averages.get(kind),
        distance=format_distance(station.distance_km),
        other_prices=other_prices(station, kind),
        links=navigation_links(station),
    )
