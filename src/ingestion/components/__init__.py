"""Components module for the snapshot refresh pipeline."""

from src.ingestion.components.client import OpenSkyClient, create_client
from src.ingestion.components.fetcher import VectorFetcher
from src.ingestion.components.parser import parse_state_vector, parse_state_vectors
from src.ingestion.components.rate_limiter import FixedDelayTicker
from src.ingestion.components.enricher import EnrichmentResult, RouteEnricher
from src.ingestion.components.snapshot_writer import SnapshotWriter, new_snapshot_time
from src.ingestion.components.snapshot_promoter import SnapshotPromoter
from src.ingestion.components.snapshot_reaper import ReapResult, SnapshotReaper
from src.ingestion.components.route_lookup import RouteLookup

__all__ = [
    "OpenSkyClient",
    "create_client",
    "VectorFetcher",
    "parse_state_vector",
    "parse_state_vectors",
    "FixedDelayTicker",
    "EnrichmentResult",
    "RouteEnricher",
    "SnapshotWriter",
    "new_snapshot_time",
    "SnapshotPromoter",
    "ReapResult",
    "SnapshotReaper",
    "RouteLookup",
]
