"""Database module for the snapshot refresh service."""

from src.ingestion.db.repository import (
    ANY,
    STATE_COLUMNS,
    SnapshotPointer,
    SnapshotRepository,
    create_snapshot_repository,
)
from src.ingestion.db.runs import (
    RefreshStatus,
    RefreshRecord,
    RefreshRunRepository,
    create_run_repository,
)

__all__ = [
    "ANY",
    "STATE_COLUMNS",
    "SnapshotPointer",
    "SnapshotRepository",
    "create_snapshot_repository",
    "RefreshStatus",
    "RefreshRecord",
    "RefreshRunRepository",
    "create_run_repository",
]
