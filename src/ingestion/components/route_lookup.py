"""On-demand route lookup for a single aircraft."""

import time
from typing import Callable

from src.utils import logger
from src.ingestion.components.client import OpenSkyClient
from src.ingestion.models import RouteDetail

LOOKBACK_SECONDS = 24 * 60 * 60


class RouteLookup:
    """Finds the most relevant recent route of one aircraft."""

    def __init__(
        self,
        client: OpenSkyClient,
        lookback_seconds: int = LOOKBACK_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.client = client
        self.lookback_seconds = lookback_seconds
        self._clock = clock

    def lookup(self, icao24: str, now: int | None = None) -> RouteDetail | None:
        """
        Return the latest flight with a known endpoint, else the latest flight.

        Airport codes are upper-cased. Returns None for a blank address or
        when the aircraft has no flights in the lookback window.
        """
        icao24 = icao24.strip().lower()
        if not icao24:
            return None

        end = int(now if now is not None else self._clock())
        flights = self.client.get_flights_by_aircraft(icao24, end - self.lookback_seconds, end)
        if not flights:
            logger.info(f"No flights found for {icao24} in the last {self.lookback_seconds}s")
            return None

        ordered = sorted(flights, key=lambda flight: flight.last_seen, reverse=True)
        best = next(
            (f for f in ordered if f.est_departure_airport or f.est_arrival_airport),
            ordered[0],
        )

        return RouteDetail(
            icao24=icao24,
            first_seen=best.first_seen,
            last_seen=best.last_seen,
            est_departure_airport=best.est_departure_airport.upper() if best.est_departure_airport else None,
            est_arrival_airport=best.est_arrival_airport.upper() if best.est_arrival_airport else None,
        )


__all__ = ["RouteLookup", "LOOKBACK_SECONDS"]
