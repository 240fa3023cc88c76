"""
Refresh job that publishes a new live snapshot.

This is the main pipeline that:
1. Fetches state vectors for every tracked aircraft from OpenSky
2. Parses them, dropping aircraft without a position
3. Enriches them with estimated routes (previous snapshot, then flights API)
4. Writes them in batches under a new, inactive snapshot_time
5. Atomically promotes the new snapshot
6. Deletes the superseded snapshot in bounded batches

Any failure before step 5 leaves the active snapshot untouched. A failure
in step 6 does not undo the promotion; the run is recorded as partial.
"""

import time
import traceback
from datetime import datetime, timezone
from typing import Callable

from src.utils import logger
from src.utils.exceptions import (
    FlightServiceError,
    OpenSkyAPIError,
    AuthenticationError,
    RateLimitError,
    APIConnectionError,
    APITimeoutError,
    SnapshotWriteError,
    SnapshotConflictError,
    SnapshotReapError,
    DatabaseError,
    ConfigurationError,
)
from src.ingestion.config import settings
from src.ingestion.components import (
    OpenSkyClient,
    create_client,
    VectorFetcher,
    parse_state_vectors,
    RouteEnricher,
    SnapshotWriter,
    new_snapshot_time,
    SnapshotPromoter,
    SnapshotReaper,
    ReapResult,
)
from src.ingestion.db import (
    SnapshotRepository,
    create_snapshot_repository,
    RefreshRunRepository,
    create_run_repository,
    RefreshRecord,
    RefreshStatus,
)
from src.ingestion.models import AircraftState
from src.notifications import RefreshNotifier, get_notifier


def _failed_record(message: str) -> RefreshRecord:
    """Stand-in record when not even the tracking row could be written."""
    return RefreshRecord(
        id=None,
        created_at=datetime.now(timezone.utc),
        snapshot_time=None,
        previous_snapshot_time=None,
        state_count=0,
        enriched_count=0,
        enrichment_iterations=0,
        rows_reaped=0,
        status=RefreshStatus.FAILED,
        error_message=message,
    )


class RefreshJob:
    """
    Orchestrates one fetch -> enrich -> write -> promote -> reap cycle.

    All collaborators can be injected; anything not given is built from
    settings.
    """

    def __init__(
        self,
        client: OpenSkyClient | None = None,
        repository: SnapshotRepository | None = None,
        run_repository: RefreshRunRepository | None = None,
        enricher: RouteEnricher | None = None,
        writer: SnapshotWriter | None = None,
        promoter: SnapshotPromoter | None = None,
        reaper: SnapshotReaper | None = None,
        notifier: RefreshNotifier | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the refresh job.

        Raises:
            ConfigurationError: If components cannot be initialized
        """
        try:
            self.client = client or create_client()
        except Exception as e:
            raise ConfigurationError(f"Failed to initialize OpenSky client: {e}")

        try:
            self.repository = repository or create_snapshot_repository()
            self.run_repository = run_repository or create_run_repository()
        except Exception as e:
            raise ConfigurationError(f"Failed to initialize database repository: {e}")

        self.fetcher = VectorFetcher(self.client)
        self.enricher = enricher or RouteEnricher(self.client, clock=clock)
        self.writer = writer or SnapshotWriter(self.repository)
        self.promoter = promoter or SnapshotPromoter(self.repository)
        self.reaper = reaper or SnapshotReaper(self.repository)
        self._notifier = notifier
        self._clock = clock

        logger.info("RefreshJob initialized successfully")

    @property
    def notifier(self) -> RefreshNotifier:
        if self._notifier is None:
            self._notifier = get_notifier(settings)
        return self._notifier

    def _categorize_error(self, error: Exception) -> tuple[str, str]:
        """
        Categorize an error for logging and storage.

        Returns:
            Tuple of (error_category, error_message)
        """
        if isinstance(error, AuthenticationError):
            category = "AUTH"
            message = f"OpenSky authentication failed: {error.message}"
        elif isinstance(error, RateLimitError):
            category = "RATE_LIMIT"
            message = f"API rate limit exceeded. Retry after {error.retry_after}s"
        elif isinstance(error, APITimeoutError):
            category = "API_TIMEOUT"
            message = f"API request timed out after {error.timeout}s"
        elif isinstance(error, APIConnectionError):
            category = "API_CONNECTION"
            message = f"Failed to connect to OpenSky API: {error}"
        elif isinstance(error, OpenSkyAPIError):
            category = "API_ERROR"
            message = f"OpenSky API error (HTTP {error.status_code}): {error.message}"
        elif isinstance(error, SnapshotWriteError):
            category = "SNAPSHOT_WRITE"
            message = f"Failed to write snapshot {error.snapshot_time}: {error.message}"
        elif isinstance(error, SnapshotConflictError):
            category = "SNAPSHOT_CONFLICT"
            message = error.message
        elif isinstance(error, DatabaseError):
            category = "DATABASE"
            message = f"Database error: {error}"
        elif isinstance(error, ConfigurationError):
            category = "CONFIG"
            message = f"Configuration error: {error}"
        elif isinstance(error, FlightServiceError):
            category = "SERVICE"
            message = f"Service error: {error}"
        else:
            category = "UNEXPECTED"
            message = f"Unexpected error ({type(error).__name__}): {error}"

        return category, message

    def run(self) -> RefreshRecord:
        """
        Run one snapshot refresh.

        Returns:
            RefreshRecord with the result (SUCCESS, PARTIAL or FAILED)

        Never raises: every error is captured in the returned record.
        """
        logger.info("Starting snapshot refresh")
        started = self._clock()

        try:
            record = self.run_repository.create_record(status=RefreshStatus.PENDING)
        except Exception as e:
            logger.exception(f"CRITICAL: Failed to create refresh record: {e}")
            return _failed_record(f"Failed to create tracking record: {e}")

        snapshot_time = None
        state_count = 0
        enriched_count = 0
        iterations = 0

        try:
            pointer = self.repository.read_pointer()
            active_before = pointer.active_snapshot_time if pointer else None

            logger.info("Step 1/5: Fetching state vectors...")
            raw_states = self.fetcher.fetch()
            states = parse_state_vectors(raw_states)
            state_count = len(states)
            logger.info(
                f"Step 1/5: Parsed {state_count} aircraft "
                f"({len(raw_states) - state_count} dropped without position)"
            )

            logger.info("Step 2/5: Enriching routes...")
            previous_states = self.repository.read_active_snapshot_rows()
            logger.info(f"Loaded previous snapshot: {len(previous_states)} states")
            enrichment = self.enricher.enrich(states, previous_states, now=int(started))
            enriched_count = enrichment.enriched
            iterations = enrichment.iterations

            logger.info("Step 3/5: Writing new snapshot...")
            snapshot_time = new_snapshot_time(active_before, clock=self._clock)
            self.writer.write(states, snapshot_time)

            logger.info("Step 4/5: Promoting new snapshot...")
            previous_snapshot_time = self.promoter.promote(snapshot_time, expected_previous=active_before)

        except Exception as e:
            category, message = self._categorize_error(e)
            if snapshot_time is not None:
                # Rows already inserted under this id are never promoted or reaped
                message = f"{message} (snapshot {snapshot_time} abandoned)"

            logger.error(f"Refresh FAILED [{category}]: {message}")
            logger.debug(f"Full traceback:\n{traceback.format_exc()}")

            try:
                self.notifier.on_failure(
                    record_id=record.id,
                    error_category=category,
                    error_message=message,
                )
            except Exception as notify_error:
                logger.warning(f"Failed to send failure notification: {notify_error}")

            try:
                return self.run_repository.update_record(
                    record.id,
                    snapshot_time=snapshot_time,
                    state_count=state_count,
                    enriched_count=enriched_count,
                    enrichment_iterations=iterations,
                    status=RefreshStatus.FAILED,
                    error_message=f"[{category}] {message}",
                )
            except Exception as update_error:
                logger.exception(f"CRITICAL: Failed to update record with error: {update_error}")
                return record._replace(
                    status=RefreshStatus.FAILED,
                    error_message=f"[{category}] {message} (also failed to update record: {update_error})",
                )

        logger.info("Step 5/5: Cleaning up previous snapshot...")
        status = RefreshStatus.SUCCESS
        error_message = None
        rows_reaped = 0
        try:
            rows_reaped = self.reaper.reap(previous_snapshot_time).rows_deleted
        except SnapshotReapError as e:
            rows_reaped = e.rows_deleted
            status = RefreshStatus.PARTIAL
            error_message = f"[SNAPSHOT_REAP] {e.message}"
            logger.warning(f"Snapshot {snapshot_time} is active but cleanup failed: {e.message}")
            try:
                self.notifier.on_reap_failure(record.id, previous_snapshot_time, e.message)
            except Exception as notify_error:
                logger.warning(f"Failed to send cleanup notification: {notify_error}")

        outcome = dict(
            snapshot_time=snapshot_time,
            previous_snapshot_time=previous_snapshot_time,
            state_count=state_count,
            enriched_count=enriched_count,
            enrichment_iterations=iterations,
            rows_reaped=rows_reaped,
            status=status,
            error_message=error_message,
        )
        try:
            updated = self.run_repository.update_record(record.id, **outcome)
        except Exception as update_error:
            # The snapshot is already live; only its bookkeeping is lost
            logger.exception(f"CRITICAL: Failed to update record of published snapshot {snapshot_time}: {update_error}")
            updated = record._replace(**outcome)

        duration = self._clock() - started
        logger.info(
            f"Refresh complete in {duration:.1f}s: snapshot {snapshot_time} active with "
            f"{state_count} aircraft ({enriched_count} with route info)"
        )

        if status == RefreshStatus.SUCCESS:
            try:
                self.notifier.on_success(updated, duration_seconds=duration)
            except Exception as notify_error:
                logger.warning(f"Failed to send success notification: {notify_error}")

        return updated

    def reap(self, snapshot_time: int) -> ReapResult:
        """
        Delete a superseded snapshot left behind by a partial run.

        Refuses to touch the snapshot readers are currently using.
        """
        pointer = self.repository.read_pointer()
        if pointer is not None and pointer.active_snapshot_time == snapshot_time:
            raise ConfigurationError(f"Snapshot {snapshot_time} is active and cannot be reaped")
        return self.reaper.reap(snapshot_time)


def current_states(repository: SnapshotRepository | None = None) -> list[AircraftState]:
    """All aircraft in the active snapshot, as readers see them."""
    repository = repository or create_snapshot_repository()
    return repository.read_active_snapshot_rows()


def run_refresh() -> RefreshRecord:
    """
    Run a single refresh cycle.

    Never raises exceptions - all errors are captured in the returned record.
    """
    try:
        job = RefreshJob()
    except ConfigurationError as e:
        logger.error(f"Failed to initialize refresh job: {e}")
        return _failed_record(f"[CONFIG] {e}")

    return job.run()


__all__ = ["RefreshJob", "current_states", "run_refresh"]
