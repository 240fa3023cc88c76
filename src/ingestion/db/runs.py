"""
Refresh run records.

Every refresh leaves one row behind describing what it fetched, enriched,
promoted and reaped, or why it failed.
"""

import sqlite3
from contextlib import closing
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import NamedTuple

from src.utils import logger
from src.utils.exceptions import RefreshRecordError
from src.ingestion.config import settings


class RefreshStatus(str, Enum):
    """Status of a refresh run."""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    PARTIAL = "partial"  # Promoted, but the previous snapshot was not fully reaped


class RefreshRecord(NamedTuple):
    """Record of a single refresh run."""
    id: int | None
    created_at: datetime
    snapshot_time: int | None
    previous_snapshot_time: int | None
    state_count: int
    enriched_count: int
    enrichment_iterations: int
    rows_reaped: int
    status: RefreshStatus
    error_message: str | None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "snapshot_time": self.snapshot_time,
            "previous_snapshot_time": self.previous_snapshot_time,
            "state_count": self.state_count,
            "enriched_count": self.enriched_count,
            "enrichment_iterations": self.enrichment_iterations,
            "rows_reaped": self.rows_reaped,
            "status": self.status.value,
            "error_message": self.error_message,
        }


CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS refresh_runs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    created_at TEXT NOT NULL,
    snapshot_time INTEGER,
    previous_snapshot_time INTEGER,
    state_count INTEGER NOT NULL DEFAULT 0,
    enriched_count INTEGER NOT NULL DEFAULT 0,
    enrichment_iterations INTEGER NOT NULL DEFAULT 0,
    rows_reaped INTEGER NOT NULL DEFAULT 0,
    status TEXT NOT NULL DEFAULT 'pending',
    error_message TEXT
)
"""

CREATE_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_refresh_created_at ON refresh_runs(created_at);
CREATE INDEX IF NOT EXISTS idx_refresh_status ON refresh_runs(status);
"""

INSERT_RECORD_SQL = """
INSERT INTO refresh_runs (created_at, status)
VALUES (?, ?)
"""

UPDATE_RECORD_SQL = """
UPDATE refresh_runs
SET snapshot_time = ?, previous_snapshot_time = ?, state_count = ?,
    enriched_count = ?, enrichment_iterations = ?, rows_reaped = ?,
    status = ?, error_message = ?
WHERE id = ?
"""

SELECT_COLUMNS = """
id, created_at, snapshot_time, previous_snapshot_time, state_count,
enriched_count, enrichment_iterations, rows_reaped, status, error_message
"""

SELECT_BY_ID_SQL = f"SELECT {SELECT_COLUMNS} FROM refresh_runs WHERE id = ?"

SELECT_LATEST_SQL = f"""
SELECT {SELECT_COLUMNS} FROM refresh_runs
ORDER BY id DESC
LIMIT ?
"""

SELECT_BY_STATUS_SQL = f"""
SELECT {SELECT_COLUMNS} FROM refresh_runs
WHERE status = ?
ORDER BY id DESC
"""


def _row_to_record(row: tuple) -> RefreshRecord:
    """Convert database row to RefreshRecord."""
    return RefreshRecord(
        id=row[0],
        created_at=datetime.fromisoformat(row[1]),
        snapshot_time=row[2],
        previous_snapshot_time=row[3],
        state_count=row[4],
        enriched_count=row[5],
        enrichment_iterations=row[6],
        rows_reaped=row[7],
        status=RefreshStatus(row[8]),
        error_message=row[9],
    )


class RefreshRunRepository:
    """Repository for refresh run records in SQLite."""

    def __init__(self, db_path: str | Path | None = None):
        """
        Initialize the repository.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path) if db_path else settings.database.full_path
        self._ensure_database()

    def _ensure_database(self) -> None:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with closing(self._get_connection()) as conn:
            cursor = conn.cursor()
            cursor.execute(CREATE_TABLE_SQL)
            cursor.executescript(CREATE_INDEX_SQL)
            conn.commit()

    def _get_connection(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(str(self.db_path), timeout=settings.database.busy_timeout_seconds)
        except sqlite3.Error as e:
            raise RefreshRecordError(f"Failed to open {self.db_path}: {e}")

    def create_record(self, status: RefreshStatus = RefreshStatus.PENDING) -> RefreshRecord:
        """
        Create a new refresh record.

        Args:
            status: Initial status

        Returns:
            Created RefreshRecord with assigned ID
        """
        created_at = datetime.now(timezone.utc)

        try:
            with closing(self._get_connection()) as conn:
                cursor = conn.cursor()
                cursor.execute(INSERT_RECORD_SQL, (created_at.isoformat(), status.value))
                conn.commit()
                record_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise RefreshRecordError(f"Failed to create refresh record: {e}")

        logger.debug(f"Created refresh record with ID: {record_id}")
        return RefreshRecord(
            id=record_id,
            created_at=created_at,
            snapshot_time=None,
            previous_snapshot_time=None,
            state_count=0,
            enriched_count=0,
            enrichment_iterations=0,
            rows_reaped=0,
            status=status,
            error_message=None,
        )

    def update_record(self, record_id: int, **changes) -> RefreshRecord | None:
        """
        Update fields of an existing refresh record.

        Args:
            record_id: ID of the record to update
            **changes: RefreshRecord fields to overwrite; None leaves a field as is

        Returns:
            Updated RefreshRecord or None if not found
        """
        existing = self.get_by_id(record_id)
        if not existing:
            logger.warning(f"Record {record_id} not found for update")
            return None

        unknown = set(changes) - set(RefreshRecord._fields)
        if unknown:
            raise RefreshRecordError(f"Unknown refresh record fields: {sorted(unknown)}")

        updated = existing._replace(**{k: v for k, v in changes.items() if v is not None})

        try:
            with closing(self._get_connection()) as conn:
                conn.execute(
                    UPDATE_RECORD_SQL,
                    (
                        updated.snapshot_time,
                        updated.previous_snapshot_time,
                        updated.state_count,
                        updated.enriched_count,
                        updated.enrichment_iterations,
                        updated.rows_reaped,
                        updated.status.value,
                        updated.error_message,
                        record_id,
                    ),
                )
                conn.commit()
        except sqlite3.Error as e:
            raise RefreshRecordError(f"Failed to update refresh record {record_id}: {e}")

        logger.debug(f"Updated refresh record {record_id} with status: {updated.status.value}")
        return updated

    def get_by_id(self, record_id: int) -> RefreshRecord | None:
        """Get a record by ID."""
        with closing(self._get_connection()) as conn:
            row = conn.execute(SELECT_BY_ID_SQL, (record_id,)).fetchone()

        return _row_to_record(row) if row else None

    def get_latest(self, limit: int = 10) -> list[RefreshRecord]:
        """Get the most recent refresh records."""
        with closing(self._get_connection()) as conn:
            rows = conn.execute(SELECT_LATEST_SQL, (limit,)).fetchall()

        return [_row_to_record(row) for row in rows]

    def get_by_status(self, status: RefreshStatus) -> list[RefreshRecord]:
        """Get all records with a specific status."""
        with closing(self._get_connection()) as conn:
            rows = conn.execute(SELECT_BY_STATUS_SQL, (status.value,)).fetchall()

        return [_row_to_record(row) for row in rows]


def create_run_repository() -> RefreshRunRepository:
    """Create a new run repository with default settings."""
    return RefreshRunRepository()


__all__ = [
    "RefreshStatus",
    "RefreshRecord",
    "RefreshRunRepository",
    "create_run_repository",
]
