"""
Data model for aircraft states, historical flights and route info.

Attributes are snake_case; every model also accepts and dumps the camelCase
keys used by the OpenSky API (``lastContact``, ``estDepartureAirport``...).
"""

from enum import IntEnum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def normalize_icao24(icao24: str) -> str:
    """
    Canonical form of a transponder address used for matching.

    Lowercases and left-pads with zeros to 6 characters, so
    ``normalize_icao24("A1") == "0000a1"``. Idempotent.
    """
    return icao24.lower().rjust(6, "0")


class PositionSource(IntEnum):
    """Source that produced a position report."""
    ADSB = 0
    ASTERIX = 1
    MLAT = 2
    FLARM = 3


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_document(self) -> dict:
        """camelCase dict without absent optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)


class RouteInfo(_CamelModel):
    """Estimated route endpoints and timing of an aircraft's current leg."""

    est_departure_airport: str | None = None
    est_arrival_airport: str | None = None
    first_seen: int | None = None
    last_seen: int | None = None

    @classmethod
    def from_state(cls, state: "AircraftState") -> "RouteInfo":
        # Empty airport strings count as absent
        return cls(
            est_departure_airport=state.est_departure_airport or None,
            est_arrival_airport=state.est_arrival_airport or None,
            first_seen=state.first_seen,
            last_seen=state.last_seen,
        )

    @classmethod
    def from_flight(cls, flight: "Flight") -> "RouteInfo":
        return cls(
            est_departure_airport=flight.est_departure_airport or None,
            est_arrival_airport=flight.est_arrival_airport or None,
            first_seen=flight.first_seen,
            last_seen=flight.last_seen,
        )

    @property
    def is_empty(self) -> bool:
        return (
            self.est_departure_airport is None
            and self.est_arrival_airport is None
            and self.first_seen is None
            and self.last_seen is None
        )


class AircraftState(_CamelModel):
    """
    One aircraft with a known position in a snapshot.

    Only ever built with both coordinates present; raw vectors without a
    position are dropped by the parser before a state exists.
    """

    icao24: str
    callsign: str | None = None
    origin_country: str
    time_position: int | None = None
    last_contact: int
    longitude: float
    latitude: float
    baro_altitude: float | None = None
    on_ground: bool
    velocity: float | None = None
    true_track: float | None = None
    vertical_rate: float | None = None
    geo_altitude: float | None = None
    squawk: str | None = None
    spi: bool
    position_source: int
    category: int | None = None

    # Filled in by the route enricher
    est_departure_airport: str | None = None
    est_arrival_airport: str | None = None
    first_seen: int | None = None
    last_seen: int | None = None

    @property
    def normalized_icao24(self) -> str:
        return normalize_icao24(self.icao24)

    @property
    def has_route(self) -> bool:
        """True once an estimated departure airport is known."""
        return bool(self.est_departure_airport)

    @property
    def position_source_name(self) -> str | None:
        try:
            return PositionSource(self.position_source).name
        except ValueError:
            return None

    def apply_route(self, route: RouteInfo) -> None:
        """Copy the fields that ``route`` actually carries onto this state."""
        if route.est_departure_airport:
            self.est_departure_airport = route.est_departure_airport
        if route.est_arrival_airport:
            self.est_arrival_airport = route.est_arrival_airport
        if route.first_seen is not None:
            self.first_seen = route.first_seen
        if route.last_seen is not None:
            self.last_seen = route.last_seen


class Flight(_CamelModel):
    """One flight from the OpenSky historical flights API."""

    icao24: str
    first_seen: int
    last_seen: int
    est_departure_airport: str | None = None
    est_arrival_airport: str | None = None
    callsign: str | None = None
    est_departure_airport_horiz_distance: int | None = None
    est_departure_airport_vert_distance: int | None = None
    est_arrival_airport_horiz_distance: int | None = None
    est_arrival_airport_vert_distance: int | None = None
    departure_airport_candidates_count: int | None = None
    arrival_airport_candidates_count: int | None = None


class RouteDetail(_CamelModel):
    """Most relevant recent route of a single aircraft."""

    icao24: str
    first_seen: int
    last_seen: int
    est_departure_airport: str | None = None
    est_arrival_airport: str | None = None


__all__ = [
    "normalize_icao24",
    "PositionSource",
    "RouteInfo",
    "AircraftState",
    "Flight",
    "RouteDetail",
]
