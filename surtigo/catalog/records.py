"""Mapping of raw station API records into Station objects."""

import logging
import math
from collections.abc import Iterable
from typing import Any

from ..models import FuelKind, Station

_LOGGER = logging.getLogger(__name__)

UNKNOWN_STATION_NAME = "Estación desconocida"

# Raw payload field holding each fuel kind's price
PRICE_FIELDS = {
    FuelKind.REGULAR_95: "Gasolina95",
    FuelKind.REGULAR_98: "Gasolina98",
    FuelKind.DIESEL: "Diesel",
    FuelKind.DIESEL_PREMIUM: "DieselPremium",
    FuelKind.LPG: "GLP",
}

# Regional averages are only published for these kinds
AVERAGE_FIELDS = {
    FuelKind.REGULAR_95: "Gasolina95_media",
    FuelKind.DIESEL: "Diesel_media",
}


def parse_price(value: Any) -> float | None:
    """
    Parse a non-negative decimal such as a price or a distance.

    Accepts numbers and strings with either decimal separator ("1,459").
    Missing, unparseable and negative values give None.
    """
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price < 0:
        return None
    return price


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coordinate(value: Any) -> float:
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"Non-finite coordinate: {value}")
    return number


def station_from_record(record: dict[str, Any]) -> Station:
    """
    Build a Station from one raw API record.

    Raises:
        KeyError, TypeError, ValueError: coordinates are missing or not numeric
    """
    latitude = _coordinate(record["latitud"])
    longitude = _coordinate(record["longitud"])

    distance = parse_price(record.get("distancia"))
    if distance is not None:
        distance = round(distance, 3)

    prices = {
        kind: parse_price(record[field])
        for kind, field in PRICE_FIELDS.items()
        if field in record
    }
    averages = {}
    for kind, field in AVERAGE_FIELDS.items():
        average = parse_price(record.get(field))
        if average is not None:
            averages[kind] = average

    return Station(
        station_id=str(record.get("idEstacion", record.get("_id", ""))),
        name=_optional_text(record.get("nombreEstacion")) or UNKNOWN_STATION_NAME,
        address=_optional_text(record.get("direccion")) or "",
        latitude=latitude,
        longitude=longitude,
        region=_optional_text(record.get("provincia")),
        locality=_optional_text(record.get("localidad")),
        brand=_optional_text(record.get("marca")),
        opening_hours=_optional_text(record.get("horario")),
        distance_km=distance,
        prices=prices,
        regional_averages=averages,
    )


def stations_from_records(records: Iterable[dict[str, Any]]) -> list[Station]:
    """Map records, skipping those without usable coordinates."""
    stations = []
    skipped = 0
    for record in records:
        try:
            stations.append(station_from_record(record))
        except (KeyError, TypeError, ValueError):
            skipped += 1
            continue
    if skipped:
        _LOGGER.debug("Skipped %d station records without valid coordinates", skipped)
    return stations
