"""
Route enrichment for freshly parsed aircraft states.

Fills estimated departure/arrival airports and leg timing, first from the
previously active snapshot (no network), then from a bounded walk backwards
through fixed-width windows of the OpenSky historical flights API.
"""

import time
from datetime import datetime, timezone
from typing import Callable, Iterable, NamedTuple, Sequence

from src.utils import logger
from src.ingestion.config import settings
from src.ingestion.components.client import OpenSkyClient
from src.ingestion.components.rate_limiter import FixedDelayTicker
from src.ingestion.models import AircraftState, Flight, RouteInfo, normalize_icao24


class EnrichmentResult(NamedTuple):
    """Outcome of one enrichment pass."""
    total: int
    enriched: int
    missing: int
    carried_forward: int
    iterations: int
    flights_seen: int


def build_route_index(states: Iterable[AircraftState]) -> dict[str, RouteInfo]:
    """Map normalized icao24 to the non-empty route info carried by ``states``."""
    index: dict[str, RouteInfo] = {}
    for state in states:
        route = RouteInfo.from_state(state)
        if not route.is_empty:
            index[state.normalized_icao24] = route
    return index


def latest_flight_by_icao24(flights: Iterable[Flight]) -> dict[str, Flight]:
    """Map normalized icao24 to its most recently seen flight (first wins ties)."""
    index: dict[str, Flight] = {}
    for flight in flights:
        key = normalize_icao24(flight.icao24)
        existing = index.get(key)
        if existing is None or flight.last_seen > existing.last_seen:
            index[key] = flight
    return index


def count_missing(states: Sequence[AircraftState]) -> int:
    return sum(1 for state in states if not state.has_route)


class RouteEnricher:
    """
    Best-effort route enrichment with a hard cost bound.

    Never issues more than ``max_iterations`` historical queries per call and
    stops the moment every state has a departure airport. States the
    upstream knows nothing about simply stay unenriched.
    """

    def __init__(
        self,
        client: OpenSkyClient,
        ticker: FixedDelayTicker | None = None,
        window_seconds: int | None = None,
        max_iterations: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the enricher.

        Args:
            client: OpenSky client used for /flights/all
            ticker: Pacing between windows (defaults to settings delay)
            window_seconds: Width of each historical window
            max_iterations: Maximum number of windows queried per run
            clock: Wall clock returning Unix seconds
        """
        self.client = client
        self.window_seconds = window_seconds or settings.enrichment.window_seconds
        self.max_iterations = (
            max_iterations if max_iterations is not None else settings.enrichment.max_iterations
        )
        self.ticker = ticker or FixedDelayTicker(settings.enrichment.delay_seconds)
        self._clock = clock

    def carry_forward(
        self,
        states: Sequence[AircraftState],
        previous_states: Iterable[AircraftState],
    ) -> int:
        """Apply route info from the previous snapshot. Returns states touched."""
        index = build_route_index(previous_states)
        logger.info(f"Route info available from previous snapshot for {len(index)} aircraft")

        applied = 0
        for state in states:
            route = index.get(state.normalized_icao24)
            if route is not None:
                state.apply_route(route)
                applied += 1
        return applied

    def _apply_flights(self, states: Sequence[AircraftState], flights: list[Flight]) -> None:
        index = latest_flight_by_icao24(flights)
        for state in states:
            if state.has_route:
                continue
            flight = index.get(state.normalized_icao24)
            if flight is not None:
                state.apply_route(RouteInfo.from_flight(flight))

    def enrich(
        self,
        states: Sequence[AircraftState],
        previous_states: Iterable[AircraftState] = (),
        now: int | None = None,
    ) -> EnrichmentResult:
        """
        Enrich ``states`` in place.

        Args:
            states: Newly parsed states
            previous_states: Rows of the previously active snapshot
            now: Unix seconds where the backward window walk starts

        Returns:
            EnrichmentResult with counts and the number of windows queried

        Raises:
            APIError: Any upstream error other than 404 (404 is an empty window)
        """
        now = int(now if now is not None else self._clock())

        carried = self.carry_forward(states, previous_states)
        missing = count_missing(states)
        logger.info(
            f"After merging previous snapshot: {len(states) - missing} with route info, "
            f"{missing} missing estDepartureAirport"
        )

        iterations = 0
        flights_seen = 0
        self.ticker.reset()

        while missing > 0 and iterations < self.max_iterations:
            end = now - iterations * self.window_seconds
            begin = end - self.window_seconds

            self.ticker.wait()
            logger.info(
                f"Flights window {iterations + 1}/{self.max_iterations}: "
                f"{datetime.fromtimestamp(begin, tz=timezone.utc).isoformat()} -> "
                f"{datetime.fromtimestamp(end, tz=timezone.utc).isoformat()} | missing: {missing}"
            )

            flights = self.client.get_flights_by_time(begin=begin, end=end)
            iterations += 1
            flights_seen += len(flights)

            before = missing
            self._apply_flights(states, flights)
            missing = count_missing(states)
            logger.info(
                f"  -> flights: {len(flights)} | filled: {before - missing} | still missing: {missing}"
            )

        result = EnrichmentResult(
            total=len(states),
            enriched=len(states) - missing,
            missing=missing,
            carried_forward=carried,
            iterations=iterations,
            flights_seen=flights_seen,
        )
        logger.info(
            f"Enrichment done: {result.enriched} with route info, {result.missing} without, "
            f"{result.iterations} historical queries"
        )
        return result


__all__ = [
    "EnrichmentResult",
    "RouteEnricher",
    "build_route_index",
    "latest_flight_by_icao24",
    "count_missing",
]
