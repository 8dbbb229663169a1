"""Runtime configuration, overridable through environment variables."""

import os

# Remote services
API_BASE_URL = os.getenv("SURTIGO_API_URL", "https://api.surtigo.es/api")
NOMINATIM_URL = os.getenv(
    "SURTIGO_NOMINATIM_URL", "https://nominatim.openstreetmap.org/search"
)
IP_LOCATION_URL = os.getenv("SURTIGO_IP_LOCATION_URL", "http://ip-api.com/json")
USER_AGENT = os.getenv("SURTIGO_USER_AGENT", "Surtigo/0.1")
HTTP_TIMEOUT_S = float(os.getenv("SURTIGO_HTTP_TIMEOUT", "15"))

# Optional CSV export served instead of the remote API
STATIONS_FILE = os.getenv("SURTIGO_STATIONS_FILE") or None

# Geocoding
COUNTRY_QUALIFIER = "España"
COUNTRY_CODES = "es"

# Station search
DEFAULT_RADIUS_KM = int(os.getenv("SURTIGO_DEFAULT_RADIUS", "20"))
RADIUS_MIN_KM = 5
RADIUS_MAX_KM = 50
RADIUS_STEP_KM = 5
DEFAULT_PAGE_LIMIT = int(os.getenv("SURTIGO_PAGE_LIMIT", "50"))
TANK_LITRES = 50

# Geolocation
LOCATION_HIGH_ACCURACY = True
LOCATION_TIMEOUT_MS = 10_000
LOCATION_MAX_AGE_MS = 300_000  # 5 minutes

# Map
DEFAULT_MAP_CENTER = (40.4168, -3.7038)  # Madrid
DEFAULT_MAP_ZOOM = 6
MAP_MAX_ZOOM = 19
MAP_WIDTH_PX = 1024
MAP_HEIGHT_PX = 768
FIT_PADDING_PX = 40
FIT_MAX_ZOOM = 14
SINGLE_POINT_ZOOM = 13
LONG_PRESS_S = 0.7
SEARCH_CENTER_EPSILON_DEG = 0.001  # ~100 m
TOP_RANK_COUNT = 3

LIGHT_TILES = "https://{s}.basemaps.cartocdn.com/light_all/{z}/{x}/{y}{r}.png"
DARK_TILES = "https://{s}.basemaps.cartocdn.com/dark_all/{z}/{x}/{y}{r}.png"
TILE_SUBDOMAINS = "abcd"
TILE_ATTRIBUTION = "&copy; OpenStreetMap contributors &copy; CARTO"
