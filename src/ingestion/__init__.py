"""
Live flight snapshot service.

This module provides:
- OpenSky API client for live state vectors and historical flights
- Parser and route enricher for aircraft states
- SQLite snapshot repository with an atomically promoted active pointer
- Refresh job (fetch -> enrich -> write -> promote -> reap) and scheduler

Quick start:
    from src.ingestion import start_scheduler
    start_scheduler()  # Refresh periodically

One-time run:
    from src.ingestion import run_refresh
    result = run_refresh()

Reading the current snapshot:
    from src.ingestion import current_states
    states = current_states()

Configuration (environment variables):
    OPENSKY_CLIENT_ID / OPENSKY_CLIENT_SECRET: OAuth2 client credentials
    SCHEDULER_INTERVAL_SECONDS: Refresh interval (default: 300)
    ENRICH_MAX_ITERATIONS / ENRICH_DELAY_SECONDS: Historical query budget
    SNAPSHOT_BATCH_SIZE: Rows per write/delete batch (default: 1000)
    DB_PATH: SQLite database file
"""

from src.ingestion.config import settings, get_settings
from src.ingestion.models import (
    AircraftState,
    Flight,
    PositionSource,
    RouteDetail,
    RouteInfo,
    normalize_icao24,
)
from src.ingestion.components import (
    OpenSkyClient,
    create_client,
    VectorFetcher,
    parse_state_vector,
    parse_state_vectors,
    FixedDelayTicker,
    RouteEnricher,
    SnapshotWriter,
    SnapshotPromoter,
    SnapshotReaper,
    RouteLookup,
)
from src.ingestion.db import (
    SnapshotRepository,
    create_snapshot_repository,
    RefreshStatus,
    RefreshRecord,
    RefreshRunRepository,
    create_run_repository,
)
from src.ingestion.jobs import (
    RefreshJob,
    current_states,
    run_refresh,
    RefreshScheduler,
    create_scheduler,
    start_scheduler,
)

__all__ = [
    # Config
    "settings",
    "get_settings",
    # Models
    "AircraftState",
    "Flight",
    "PositionSource",
    "RouteDetail",
    "RouteInfo",
    "normalize_icao24",
    # Components
    "OpenSkyClient",
    "create_client",
    "VectorFetcher",
    "parse_state_vector",
    "parse_state_vectors",
    "FixedDelayTicker",
    "RouteEnricher",
    "SnapshotWriter",
    "SnapshotPromoter",
    "SnapshotReaper",
    "RouteLookup",
    # Database
    "SnapshotRepository",
    "create_snapshot_repository",
    "RefreshStatus",
    "RefreshRecord",
    "RefreshRunRepository",
    "create_run_repository",
    # Jobs
    "RefreshJob",
    "current_states",
    "run_refresh",
    "RefreshScheduler",
    "create_scheduler",
    "start_scheduler",
]
