"""Shared fixtures for the snapshot service tests."""

from unittest.mock import Mock

import pytest

from src.utils.logger import setup_logger
from src.ingestion.components import FixedDelayTicker, RouteEnricher
from src.ingestion.db import SnapshotRepository, RefreshRunRepository
from src.ingestion.models import AircraftState, Flight

# Less noise during tests
setup_logger(log_level="WARNING", enable_file=False)

NOW = 1_700_000_000


def raw_vector(icao24: str, longitude=72.8, latitude=19.0, callsign="TEST123 ") -> list:
    """Raw /states/all tuple with every field present."""
    return [
        icao24, callsign, "India", NOW - 5, NOW - 1, longitude, latitude, 1000.0, False,
        100.0, 90.0, 0.0, None, 1050.0, "1234", False, 0, 1,
    ]


def make_state(icao24: str, **route) -> AircraftState:
    return AircraftState(
        icao24=icao24,
        callsign="TEST123",
        origin_country="India",
        last_contact=NOW - 1,
        longitude=72.8,
        latitude=19.0,
        on_ground=False,
        spi=False,
        position_source=0,
        **route,
    )


def make_flight(icao24: str, last_seen: int, departure=None, arrival=None, first_seen=None) -> Flight:
    return Flight(
        icao24=icao24,
        first_seen=first_seen if first_seen is not None else last_seen - 3600,
        last_seen=last_seen,
        est_departure_airport=departure,
        est_arrival_airport=arrival,
    )


@pytest.fixture
def snapshot_repository(tmp_path) -> SnapshotRepository:
    return SnapshotRepository(db_path=tmp_path / "snapshots.db")


@pytest.fixture
def run_repository(tmp_path) -> RefreshRunRepository:
    return RefreshRunRepository(db_path=tmp_path / "snapshots.db")


@pytest.fixture
def mock_client() -> Mock:
    client = Mock()
    client.get_states.return_value = {"time": NOW, "states": []}
    client.get_flights_by_time.return_value = []
    return client


@pytest.fixture
def enricher(mock_client) -> RouteEnricher:
    """Enricher that never sleeps between windows."""
    return RouteEnricher(
        mock_client,
        ticker=FixedDelayTicker(0),
        window_seconds=7200,
        max_iterations=20,
    )
