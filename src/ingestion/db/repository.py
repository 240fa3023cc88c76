"""
SQLite snapshot repository.

Stores one row per aircraft per snapshot in ``states`` and the singleton
active-snapshot pointer in ``state_meta``. Readers resolve the pointer and
its rows in one statement, so they only ever see a fully written snapshot.
"""

import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator, NamedTuple, Sequence

from src.utils import logger
from src.utils.exceptions import DatabaseError, SnapshotConflictError
from src.ingestion.config import settings
from src.ingestion.models import AircraftState


class SnapshotPointer(NamedTuple):
    """The singleton record naming the active snapshot."""
    active_snapshot_time: int
    version: int
    updated_at: datetime


# Column order shared by INSERT and SELECT statements
STATE_COLUMNS = (
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
    "geo_altitude",
    "squawk",
    "spi",
    "position_source",
    "category",
    "est_departure_airport",
    "est_arrival_airport",
    "first_seen",
    "last_seen",
)

_COLUMN_LIST = ", ".join(STATE_COLUMNS)

# Pass as expected_previous to skip the compare-and-swap check
ANY = object()


# SQL statements
CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS states (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    snapshot_time INTEGER NOT NULL,
    icao24 TEXT NOT NULL,
    callsign TEXT,
    origin_country TEXT NOT NULL,
    time_position INTEGER,
    last_contact INTEGER NOT NULL,
    longitude REAL NOT NULL,
    latitude REAL NOT NULL,
    baro_altitude REAL,
    on_ground INTEGER NOT NULL,
    velocity REAL,
    true_track REAL,
    vertical_rate REAL,
    geo_altitude REAL,
    squawk TEXT,
    spi INTEGER NOT NULL,
    position_source INTEGER NOT NULL,
    category INTEGER,
    est_departure_airport TEXT,
    est_arrival_airport TEXT,
    first_seen INTEGER,
    last_seen INTEGER
);
CREATE INDEX IF NOT EXISTS idx_states_snapshot_time ON states(snapshot_time);

CREATE TABLE IF NOT EXISTS state_meta (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    active_snapshot_time INTEGER NOT NULL,
    version INTEGER NOT NULL DEFAULT 1,
    updated_at TEXT NOT NULL
);
"""

INSERT_STATE_SQL = f"""
INSERT INTO states (snapshot_time, {_COLUMN_LIST})
VALUES (?, {", ".join("?" for _ in STATE_COLUMNS)})
"""

SELECT_ACTIVE_STATES_SQL = f"""
SELECT {", ".join("s." + column for column in STATE_COLUMNS)}
FROM states s
JOIN state_meta m ON s.snapshot_time = m.active_snapshot_time
WHERE m.id = 1
ORDER BY s.id
"""

SELECT_SNAPSHOT_STATES_SQL = f"""
SELECT {_COLUMN_LIST} FROM states
WHERE snapshot_time = ?
ORDER BY id
"""

COUNT_SNAPSHOT_SQL = "SELECT COUNT(*) FROM states WHERE snapshot_time = ?"

SELECT_SNAPSHOT_TIMES_SQL = "SELECT DISTINCT snapshot_time FROM states ORDER BY snapshot_time"

SELECT_POINTER_SQL = """
SELECT active_snapshot_time, version, updated_at FROM state_meta WHERE id = 1
"""

INSERT_POINTER_SQL = """
INSERT INTO state_meta (id, active_snapshot_time, version, updated_at)
VALUES (1, ?, 1, ?)
"""

UPDATE_POINTER_SQL = """
UPDATE state_meta
SET active_snapshot_time = ?, version = version + 1, updated_at = ?
WHERE id = 1
"""

DELETE_BATCH_SQL = """
DELETE FROM states WHERE id IN (
    SELECT id FROM states WHERE snapshot_time = ? LIMIT ?
)
"""


def _state_to_row(state: AircraftState, snapshot_time: int) -> tuple:
    return (snapshot_time, *(getattr(state, column) for column in STATE_COLUMNS))


def _row_to_state(row: sqlite3.Row) -> AircraftState:
    return AircraftState(**{key: row[key] for key in row.keys() if row[key] is not None})


class SnapshotRepository:
    """
    Repository for snapshot rows and the active-snapshot pointer.

    Each public method opens its own connection, so the writer can insert
    batches from several threads at once.
    """

    def __init__(self, db_path: str | Path | None = None, timeout: float | None = None):
        """
        Initialize the repository.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait on a locked database
        """
        self.db_path = Path(db_path) if db_path else settings.database.full_path
        self.timeout = timeout or settings.database.busy_timeout_seconds
        self._ensure_database()

    def _ensure_database(self) -> None:
        """Ensure database and tables exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._connection() as conn:
            conn.executescript(CREATE_TABLES_SQL)

        logger.info(f"Snapshot database initialized at {self.db_path}")

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """
        Yield an autocommit connection, closing it afterwards.

        Transactions are opened explicitly where a method needs one.
        """
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout, isolation_level=None)
        except sqlite3.Error as e:
            raise DatabaseError(f"Failed to open {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        except sqlite3.Error as e:
            raise DatabaseError(f"Database operation failed: {e}") from e
        finally:
            conn.close()

    @contextmanager
    def _transaction(self, conn: sqlite3.Connection, mode: str = "DEFERRED") -> Iterator[None]:
        conn.execute(f"BEGIN {mode}")
        try:
            yield
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        else:
            conn.execute("COMMIT")

    # -------------------------------------------------------------------------
    # Rows
    # -------------------------------------------------------------------------

    def insert_batch(self, rows: Sequence[AircraftState], snapshot_time: int) -> int:
        """Append ``rows`` tagged with ``snapshot_time`` in one transaction."""
        with self._connection() as conn:
            with self._transaction(conn):
                conn.executemany(
                    INSERT_STATE_SQL,
                    [_state_to_row(state, snapshot_time) for state in rows],
                )

        logger.debug(f"Inserted {len(rows)} rows for snapshot {snapshot_time}")
        return len(rows)

    def read_active_snapshot_rows(self) -> list[AircraftState]:
        """All rows of the snapshot the pointer names, empty if none is active."""
        with self._connection() as conn:
            rows = conn.execute(SELECT_ACTIVE_STATES_SQL).fetchall()

        return [_row_to_state(row) for row in rows]

    def read_snapshot_rows(self, snapshot_time: int) -> list[AircraftState]:
        """All rows tagged with ``snapshot_time``, active or not."""
        with self._connection() as conn:
            rows = conn.execute(SELECT_SNAPSHOT_STATES_SQL, (snapshot_time,)).fetchall()

        return [_row_to_state(row) for row in rows]

    def count_rows(self, snapshot_time: int) -> int:
        with self._connection() as conn:
            return conn.execute(COUNT_SNAPSHOT_SQL, (snapshot_time,)).fetchone()[0]

    def list_snapshot_times(self) -> list[int]:
        """Every snapshot_time that still has rows, oldest first."""
        with self._connection() as conn:
            return [row[0] for row in conn.execute(SELECT_SNAPSHOT_TIMES_SQL).fetchall()]

    def delete_batch(self, snapshot_time: int, limit: int) -> int:
        """Delete up to ``limit`` rows of ``snapshot_time``. Returns rows deleted."""
        with self._connection() as conn:
            with self._transaction(conn):
                cursor = conn.execute(DELETE_BATCH_SQL, (snapshot_time, limit))
                deleted = cursor.rowcount

        logger.debug(f"Deleted {deleted} rows of snapshot {snapshot_time}")
        return deleted

    # -------------------------------------------------------------------------
    # Pointer
    # -------------------------------------------------------------------------

    def read_pointer(self) -> SnapshotPointer | None:
        with self._connection() as conn:
            row = conn.execute(SELECT_POINTER_SQL).fetchone()

        if row is None:
            return None
        return SnapshotPointer(
            active_snapshot_time=row["active_snapshot_time"],
            version=row["version"],
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def write_pointer(self, new_time: int, expected_previous: object = ANY) -> int | None:
        """
        Atomically point readers at ``new_time``.

        Creates the singleton on first use. The read of the previous value and
        the update happen inside one write-locked transaction.

        Args:
            new_time: snapshot_time to activate
            expected_previous: When given (an int or None), only update if the
                pointer still holds this value

        Returns:
            The previously active snapshot_time, or None on first write

        Raises:
            SnapshotConflictError: The pointer no longer holds expected_previous
        """
        updated_at = datetime.now(timezone.utc).isoformat()

        with self._connection() as conn:
            with self._transaction(conn, "IMMEDIATE"):
                row = conn.execute(SELECT_POINTER_SQL).fetchone()
                previous = row["active_snapshot_time"] if row is not None else None

                if expected_previous is not ANY and previous != expected_previous:
                    raise SnapshotConflictError(expected=expected_previous, actual=previous)

                if row is None:
                    conn.execute(INSERT_POINTER_SQL, (new_time, updated_at))
                else:
                    conn.execute(UPDATE_POINTER_SQL, (new_time, updated_at))

        logger.debug(f"Active snapshot pointer moved {previous} -> {new_time}")
        return previous


def create_snapshot_repository() -> SnapshotRepository:
    """Create a new snapshot repository with default settings."""
    return SnapshotRepository()


__all__ = [
    "ANY",
    "STATE_COLUMNS",
    "SnapshotPointer",
    "SnapshotRepository",
    "create_snapshot_repository",
]
