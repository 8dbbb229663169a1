"""Station catalog and its data sources."""

from .catalog import (
    LOAD_ERROR_MESSAGE,
    StationCatalog,
    average_price,
    filter_stations,
    price_of,
    sort_stations,
)
from .clients import FetchError, NominatimGeocoder, StationApiClient
from .local import LocalStationSource
from .records import station_from_record, stations_from_records

__all__ = [
    "StationCatalog",
    "LOAD_ERROR_MESSAGE",
    "price_of",
    "filter_stations",
    "sort_stations",
    "average_price",
    "FetchError",
    "StationApiClient",
    "NominatimGeocoder",
    "LocalStationSource",
    "station_from_record",
    "stations_from_records",
]
