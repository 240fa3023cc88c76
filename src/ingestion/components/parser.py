"""
Conversion of raw OpenSky state vectors into AircraftState records.

A raw vector is a fixed-order list:

    [icao24, callsign, origin_country, time_position, last_contact,
     longitude, latitude, baro_altitude, on_ground, velocity,
     true_track, vertical_rate, sensors, geo_altitude, squawk, spi,
     position_source, category]

``category`` is missing from some responses.
"""

from typing import Any, Iterable, Sequence

from src.ingestion.models import AircraftState

STATE_VECTOR_FIELDS = (
    "icao24",
    "callsign",
    "origin_country",
    "time_position",
    "last_contact",
    "longitude",
    "latitude",
    "baro_altitude",
    "on_ground",
    "velocity",
    "true_track",
    "vertical_rate",
    "sensors",
    "geo_altitude",
    "squawk",
    "spi",
    "position_source",
    "category",
)

# Copied through only when non-null
_OPTIONAL_FIELDS = (
    "time_position",
    "baro_altitude",
    "velocity",
    "true_track",
    "vertical_rate",
    "geo_altitude",
    "squawk",
    "category",
)


def parse_state_vector(raw: Sequence[Any]) -> AircraftState | None:
    """
    Convert one raw state vector, or return None if it has no position.

    Pure function: no I/O, no logging.
    """
    values = dict(zip(STATE_VECTOR_FIELDS, raw))

    longitude = values.get("longitude")
    latitude = values.get("latitude")
    if longitude is None or latitude is None:
        return None

    fields: dict[str, Any] = {
        "icao24": values["icao24"],
        "origin_country": values.get("origin_country"),
        "last_contact": values.get("last_contact"),
        "longitude": longitude,
        "latitude": latitude,
        "on_ground": values.get("on_ground"),
        "spi": values.get("spi"),
        "position_source": values.get("position_source"),
    }

    callsign = (values.get("callsign") or "").strip()
    if callsign:
        fields["callsign"] = callsign

    for name in _OPTIONAL_FIELDS:
        if values.get(name) is not None:
            fields[name] = values[name]

    return AircraftState(**fields)


def parse_state_vectors(raws: Iterable[Sequence[Any]]) -> list[AircraftState]:
    """Parse raw vectors in order, dropping those without a position."""
    states = []
    for raw in raws:
        state = parse_state_vector(raw)
        if state is not None:
            states.append(state)
    return states


__all__ = ["STATE_VECTOR_FIELDS", "parse_state_vector", "parse_state_vectors"]
