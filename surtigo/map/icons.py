"""Marker iconography: rank/price styling and brand logos and colours."""

import re
from enum import Enum
from typing import NamedTuple
from urllib.parse import quote

from .. import config
from ..models import Station
from .surface import CircleFeature, MarkerFeature
from .templating import render

ACCENT = "#f97316"
CHEAP_GREEN = "#4ade80"
USER_BLUE = "#3b82f6"

LOGO_BASE_URL = "https://precioil.es/datos/imagenes/selector"

# Brands whose logo file name is not simply the lowercase brand
BRAND_SLUG_OVERRIDES = {
    "E.LECLERC": "e.leclerc",
    "ELECLERC": "e.leclerc",
    "GALP&GO": "galp",
    "LOW COST": "lowcost",
    "LOW COST REPOST": "lowcost",
    "STAR PETROLEUM": "star",
    "NOVEL OIL SYSTEM": "novel",
    "OIL+": "oil",
    "SIMON GRUP": "simon",
}


class BrandColors(NamedTuple):
    bg: str
    fg: str


BRAND_COLORS = {
    "REPSOL": BrandColors("#EE3524", "#fff"),
    "BP": BrandColors("#009A44", "#fff"),
    "CEPSA": BrandColors("#E31837", "#fff"),
    "SHELL": BrandColors("#DD1D21", "#fff"),
    "GALP": BrandColors("#FF5A00", "#fff"),
    "MOEVE": BrandColors("#1E3A8A", "#fff"),
    "BALLENOIL": BrandColors("#0891B2", "#fff"),
    "ALCAMPO": BrandColors("#DC2626", "#fff"),
    "CARREFOUR": BrandColors("#004E98", "#fff"),
    "PETROPRIX": BrandColors("#16A34A", "#fff"),
    "E.LECLERC": BrandColors("#0057A8", "#fff"),
    "PLENERGY": BrandColors("#059669", "#fff"),
    "PLENOIL": BrandColors("#0D9488", "#fff"),
    "Q8": BrandColors("#008751", "#fff"),
    "ENI": BrandColors("#FDE047", "#333"),
    "STAR": BrandColors("#B91C1C", "#fff"),
    "DISA": BrandColors("#1B3A5C", "#fff"),
    "AVIA": BrandColors("#1D4ED8", "#fff"),
    "CAMPSA": BrandColors("#DC2626", "#FDE047"),
    "EROSKI": BrandColors("#EA580C", "#fff"),
    "BONAREA": BrandColors("#65A30D", "#fff"),
    "MEROIL": BrandColors("#0284C7", "#fff"),
    "SCAT": BrandColors("#0F766E", "#fff"),
    "ZOILO": BrandColors("#6D28D9", "#fff"),
    "LOW COST": BrandColors("#F59E0B", "#333"),
}
DEFAULT_BRAND_COLORS = BrandColors("#6B7280", "#fff")

_GENERIC_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 40 40">'
    '<circle cx="20" cy="20" r="20" fill="#6B7280"/>'
    '<rect x="10" y="10" width="13" height="16" rx="2" fill="#fff"/>'
    '<rect x="12" y="12" width="9" height="5" rx="1" fill="#6B7280"/>'
    '<path d="M23 15l4 3v7h-2v-5h-2" fill="none" stroke="#fff" stroke-width="1.5"'
    ' stroke-linecap="round" stroke-linejoin="round"/>'
    '<rect x="13" y="27" width="7" height="3" rx="1" fill="#fff"/>'
    "</svg>"
)
GENERIC_LOGO = "data:image/svg+xml," + quote(_GENERIC_SVG)


class MarkerStyle(str, Enum):
    """Visual emphasis of a station marker."""

    TOP = "top"
    CHEAP = "cheap"
    NEUTRAL = "neutral"


def marker_style(
    rank: int,
    price: float | None,
    average: float,
    top_count: int = config.TOP_RANK_COUNT,
) -> MarkerStyle:
    """
    Classify a station of the sorted view.

    Args:
        rank: 1-based position in the sorted view
        price: Price of the selected fuel kind, None if not sold
        average: Average price of the view (0 when unknown)
        top_count: How many leading ranks count as top

    Returns:
        TOP for the leading priced ranks, CHEAP below the average, else NEUTRAL
    """
    if price is None:
        return MarkerStyle.NEUTRAL
    if rank <= top_count:
        return MarkerStyle.TOP
    if average > 0 and price < average:
        return MarkerStyle.CHEAP
    return MarkerStyle.NEUTRAL


def is_cheap(price: float | None, average: float) -> bool:
    return price is not None and average > 0 and price < average


def brand_logo_url(brand: str | None) -> str:
    """Logo image for a brand, the generic pump for unknown brands."""
    if not brand:
        return GENERIC_LOGO
    name = brand.upper().strip()

    if name in BRAND_SLUG_OVERRIDES:
        return f"{LOGO_BASE_URL}/{BRAND_SLUG_OVERRIDES[name]}.webp"

    # "LOW COST REPOST S.L." still maps to "lowcost"
    for key, slug in BRAND_SLUG_OVERRIDES.items():
        if key in name:
            return f"{LOGO_BASE_URL}/{slug}.webp"

    slug = re.sub(r"[^a-z0-9]", "", name.lower())
    return f"{LOGO_BASE_URL}/{slug}.webp"


def brand_colors(brand: str | None) -> BrandColors:
    name = (brand or "").upper().strip()
    for key, colors in BRAND_COLORS.items():
        if key in name:
            return colors
    return DEFAULT_BRAND_COLORS


def station_marker(
    station: Station,
    rank: int,
    style: MarkerStyle,
    popup_html: str | None = None,
) -> MarkerFeature:
    """Brand-logo marker sized and bordered according to `style`."""
    is_top = style is MarkerStyle.TOP
    size = 38 if is_top else 30

    if is_top:
        border = ACCENT
        shadow = "0 0 0 3px rgba(249,115,22,0.3), 0 2px 8px rgba(0,0,0,0.4)"
    elif style is MarkerStyle.CHEAP:
        border = CHEAP_GREEN
        shadow = "0 0 0 2px rgba(34,197,94,0.2), 0 2px 6px rgba(0,0,0,0.3)"
    else:
        border = "rgba(255,255,255,0.3)"
        shadow = "0 2px 6px rgba(0,0,0,0.3)"

    html = render(
        "marker.html",
        station=station,
        size=size,
        border=border,
        shadow=shadow,
        logo=brand_logo_url(station.brand),
        fallback=GENERIC_LOGO,
        is_top=is_top,
        rank=rank,
        accent=ACCENT,
    )
    box = size + 12
    return MarkerFeature(
        point=station.point,
        icon_html=html,
        icon_size=(box, box),
        icon_anchor=(box // 2, box // 2),
        popup_html=popup_html,
        popup_anchor=(0, -(size // 2 + 4)),
        station_id=station.station_id,
    )


def user_location_features(point) -> list[CircleFeature]:
    """Compact blue dot with a faint halo."""
    return [
        CircleFeature(
            point=point,
            radius=5,
            fill_color=USER_BLUE,
            fill_opacity=1,
            color="#ffffff",
            weight=2,
            opacity=0.95,
            popup_html=render("user_location.html"),
        ),
        CircleFeature(
            point=point,
            radius=11,
            fill_color=USER_BLUE,
            fill_opacity=0.12,
            color=USER_BLUE,
            weight=1,
            opacity=0.25,
        ),
    ]


def search_center_marker(point) -> MarkerFeature:
    size = 28
    return MarkerFeature(
        point=point,
        icon_html=render("search_center.html", size=size, accent=ACCENT),
        icon_size=(size, size),
        icon_anchor=(size // 2, size // 2),
        interactive=False,
    )


def highlight_marker(point) -> MarkerFeature:
    """Pulsing ring drawn under the highlighted station."""
    size = 48
    return MarkerFeature(
        point=point,
        icon_html=render("highlight.html", size=size),
        icon_size=(size, size),
        icon_anchor=(size // 2, size // 2),
        interactive=False,
        z_index_offset=-1,
    )
