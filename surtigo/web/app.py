"""
FastAPI web interface for Surtigo.

Serves the station map as a Leaflet page plus a small JSON API that
drives the same session the map reflects.
"""

import logging
from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from surtigo import __version__, config
from surtigo.catalog import (
    LocalStationSource,
    NominatimGeocoder,
    StationApiClient,
    StationCatalog,
    price_of,
)
from surtigo.dashboard import Dashboard
from surtigo.geo import GeoLocator, IPLocationSensor
from surtigo.map import FoliumMapSurface, ThemeMode, marker_style
from surtigo.models import FuelKind, GeoPoint, Station

_LOGGER = logging.getLogger(__name__)

API_PREFIX = "/api"
STATIONS_FILE = Path(config.STATIONS_FILE) if config.STATIONS_FILE else None

app = FastAPI(
    title="Surtigo",
    description="Cheapest fuel stations around you, on a map",
    version=__version__,
)

# Global instances (built on startup, or injected by tests)
dashboard: Dashboard | None = None
surface: FoliumMapSurface | None = None


def build_dashboard(stations_file: Path | None = None) -> Dashboard:
    """Create a session backed by the remote API or a local CSV export."""
    if stations_file is not None:
        fetcher = LocalStationSource(stations_file)
    else:
        fetcher = StationApiClient()
    locator = GeoLocator(IPLocationSensor())
    catalog = StationCatalog(fetcher, geocoder=NominatimGeocoder(), locator=locator)
    return Dashboard(locator, catalog)


@app.on_event("startup")
async def startup_event():
    """Initialize the session on startup."""
    global dashboard, surface

    if dashboard is None:
        dashboard = build_dashboard(STATIONS_FILE)
    if surface is None:
        surface = FoliumMapSurface(api_base=API_PREFIX)
        dashboard.attach(surface)
    _LOGGER.info("Surtigo ready")


def get_dashboard() -> Dashboard:
    if dashboard is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return dashboard


class PointRequest(BaseModel):
    """New search center."""

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius_km: float | None = Field(default=None, gt=0)


class PlaceRequest(BaseModel):
    query: str


class QueryRequest(BaseModel):
    query: str = ""


class FuelKindRequest(BaseModel):
    fuel_kind: FuelKind


class RadiusRequest(BaseModel):
    radius_km: float = Field(gt=0, multiple_of=config.RADIUS_STEP_KM)


class ThemeRequest(BaseModel):
    mode: ThemeMode


class SearchCenterDisplay(BaseModel):
    latitude: float
    longitude: float
    radius_km: float


class StatsDisplay(BaseModel):
    station_count: int
    cheapest: float | None
    average: float
    tank_saving: float


class StationDisplay(BaseModel):
    """Station as listed by the API."""

    id: str
    rank: int
    style: str
    name: str
    address: str
    latitude: float
    longitude: float
    locality: str | None = None
    region: str | None = None
    brand: str | None = None
    opening_hours: str | None = None
    distance_km: float | None = None
    price: float | None = None  # Selected fuel kind
    prices: dict[str, float | None] = {}
    regional_averages: dict[str, float] = {}


class StationsResponse(BaseModel):
    fuel_kind: FuelKind
    query: str
    is_loading: bool
    error: str | None = None
    search_center: SearchCenterDisplay | None = None
    stats: StatsDisplay
    stations: list[StationDisplay]


class LocateResponse(BaseModel):
    ok: bool
    latitude: float | None = None
    longitude: float | None = None
    error: str | None = None


def station_display(station: Station, rank: int, kind: FuelKind, average: float) -> StationDisplay:
    price = price_of(station, kind)
    return StationDisplay(
        id=station.station_id,
        rank=rank,
        style=marker_style(rank, price, average).value,
        name=station.name,
        address=station.address,
        latitude=station.latitude,
        longitude=station.longitude,
        locality=station.locality,
        region=station.region,
        brand=station.brand,
        opening_hours=station.opening_hours,
        distance_km=station.distance_km,
        price=price,
        prices={k.value: v for k, v in station.prices.items()},
        regional_averages={k.value: v for k, v in station.regional_averages.items()},
    )


def stations_response(session: Dashboard) -> StationsResponse:
    catalog = session.catalog
    kind = catalog.selected_fuel_kind.value
    stats = catalog.stats
    center = catalog.search_center.value

    return StationsResponse(
        fuel_kind=kind,
        query=catalog.query.value,
        is_loading=catalog.is_loading.value,
        error=catalog.error.value,
        search_center=SearchCenterDisplay(
            latitude=center.point.latitude,
            longitude=center.point.longitude,
            radius_km=center.radius_km,
        )
        if center
        else None,
        stats=StatsDisplay(
            station_count=stats.station_count,
            cheapest=stats.cheapest,
            average=stats.average,
            tank_saving=stats.tank_saving,
        ),
        stations=[
            station_display(s, rank, kind, stats.average)
            for rank, s in enumerate(catalog.sorted_stations, start=1)
        ],
    )


@app.get("/", response_class=HTMLResponse)
async def index():
    """Render the map page."""
    get_dashboard()
    if surface is None:
        raise HTTPException(status_code=503, detail="Map not ready")
    return HTMLResponse(surface.to_html())


@app.get(f"{API_PREFIX}/stations", response_model=StationsResponse)
async def api_stations() -> StationsResponse:
    """Sorted view of the loaded stations with ranks, styles and stats."""
    return stations_response(get_dashboard())


@app.post(f"{API_PREFIX}/locate", response_model=LocateResponse)
async def api_locate() -> LocateResponse:
    """Resolve the current location and load the stations around it."""
    result = await get_dashboard().start()
    if not result.ok:
        return LocateResponse(ok=False, error=result.error.message)
    return LocateResponse(
        ok=True, latitude=result.point.latitude, longitude=result.point.longitude
    )


@app.post(f"{API_PREFIX}/search-center", response_model=StationsResponse)
async def api_search_center(request: PointRequest) -> StationsResponse:
    """Move the search center (map double-click or long press)."""
    session = get_dashboard()
    await session.relocate(GeoPoint(request.latitude, request.longitude), request.radius_km)
    return stations_response(session)


@app.post(f"{API_PREFIX}/search", response_model=StationsResponse)
async def api_search(request: PlaceRequest) -> StationsResponse:
    """Geocode a place name and load the stations around it."""
    session = get_dashboard()
    await session.catalog.search_by_place_name(request.query)
    return stations_response(session)


@app.put(f"{API_PREFIX}/fuel-kind", response_model=StationsResponse)
async def api_fuel_kind(request: FuelKindRequest) -> StationsResponse:
    session = get_dashboard()
    session.catalog.set_selected_fuel_kind(request.fuel_kind)
    return stations_response(session)


@app.put(f"{API_PREFIX}/query", response_model=StationsResponse)
async def api_query(request: QueryRequest) -> StationsResponse:
    session = get_dashboard()
    session.catalog.set_query(request.query)
    return stations_response(session)


@app.put(f"{API_PREFIX}/radius", response_model=StationsResponse)
async def api_radius(request: RadiusRequest) -> StationsResponse:
    session = get_dashboard()
    await session.catalog.set_radius(request.radius_km)
    return stations_response(session)


@app.put(f"{API_PREFIX}/theme")
async def api_theme(request: ThemeRequest):
    theme = get_dashboard().theme
    theme.set_mode(request.mode)
    return {"mode": theme.mode.value.value, "resolved": theme.resolved.value.value}


@app.post(f"{API_PREFIX}/stations/{{station_id}}/select", response_model=StationDisplay)
async def api_select_station(station_id: str) -> StationDisplay:
    """Highlight a station on the map."""
    session = get_dashboard()
    catalog = session.catalog
    kind = catalog.selected_fuel_kind.value
    for rank, station in enumerate(catalog.sorted_stations, start=1):
        if station.station_id == station_id:
            session.select_station(station)
            return station_display(station, rank, kind, catalog.average_price)
    raise HTTPException(status_code=404, detail=f"Unknown station: {station_id}")


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {
        "status": "ok",
        "dashboard_loaded": dashboard is not None,
        "map_loaded": surface is not None,
        "has_location": dashboard is not None and dashboard.locator.has_location,
        "station_count": len(dashboard.catalog.stations.value) if dashboard else 0,
        "api_base_url": config.API_BASE_URL,
    }
