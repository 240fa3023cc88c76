"""
Interval scheduler for snapshot refreshes.

A single APScheduler job drives ``run_refresh``. ``max_instances=1`` keeps
refreshes strictly sequential, so only one process-local writer ever moves
the active-snapshot pointer; ticks that arrive while a refresh is still
running are coalesced into one.
"""

import signal
import sys
from datetime import datetime, timezone
from typing import Callable

from apscheduler.events import (
    EVENT_JOB_ERROR,
    EVENT_JOB_MAX_INSTANCES,
    EVENT_JOB_MISSED,
    JobEvent,
    JobExecutionEvent,
)
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.utils import logger
from src.utils.logger import setup_logger
from src.ingestion.config import settings
from src.ingestion.db import RefreshRecord, RefreshStatus
from src.ingestion.jobs.refresh_job import run_refresh

JOB_ID = "snapshot_refresh"

# Escalate to ERROR once this many refreshes in a row did not succeed
FAILURE_STREAK_ALERT = 3


class RefreshScheduler:
    """
    Runs one refresh every ``interval_seconds``, never two at once.

    The scheduler itself never fails because of a refresh: every outcome is
    already captured in the returned RefreshRecord, and anything that still
    escapes is logged and counted as a failure.
    """

    def __init__(
        self,
        interval_seconds: int | None = None,
        run_on_start: bool | None = None,
        refresh: Callable[[], RefreshRecord] = run_refresh,
        scheduler: BlockingScheduler | None = None,
        install_signal_handlers: bool = True,
    ):
        """
        Args:
            interval_seconds: Seconds between refresh starts (default from settings)
            run_on_start: Fire the first refresh immediately instead of after one interval
            refresh: Callable performing one refresh
            scheduler: APScheduler instance (a BlockingScheduler if not provided)
            install_signal_handlers: Shut down cleanly on SIGINT/SIGTERM
        """
        self.interval_seconds = interval_seconds or settings.scheduler.interval_seconds
        self.run_on_start = settings.scheduler.run_on_start if run_on_start is None else run_on_start
        self._refresh = refresh
        self.last_result: RefreshRecord | None = None
        self.failure_streak = 0

        self._scheduler = scheduler or BlockingScheduler()
        self._scheduler.add_listener(self._on_job_error, EVENT_JOB_ERROR)
        self._scheduler.add_listener(self._on_job_skipped, EVENT_JOB_MAX_INSTANCES | EVENT_JOB_MISSED)

        if install_signal_handlers:
            signal.signal(signal.SIGINT, self._handle_signal)
            signal.signal(signal.SIGTERM, self._handle_signal)

    def _handle_signal(self, signum: int, frame) -> None:
        logger.info(f"Received signal {signum}, stopping scheduler")
        self._scheduler.shutdown(wait=False)
        sys.exit(0)

    def _on_job_error(self, event: JobExecutionEvent) -> None:
        logger.error(f"Refresh job raised: {event.exception}\n{event.traceback}")

    def _on_job_skipped(self, event: JobEvent) -> None:
        if event.code == EVENT_JOB_MAX_INSTANCES:
            logger.warning("Refresh tick skipped: previous refresh still running")
        else:
            logger.warning(f"Refresh tick missed (scheduled for {event.scheduled_run_time})")

    def tick(self) -> RefreshRecord | None:
        """Run one refresh and track the outcome."""
        try:
            result = self._refresh()
        except Exception as e:
            logger.exception(f"Refresh escaped its error handling: {e}")
            self.failure_streak += 1
            return None

        self.last_result = result
        summary = (
            f"Refresh {result.status.value}: snapshot={result.snapshot_time} "
            f"aircraft={result.state_count} routed={result.enriched_count} "
            f"windows={result.enrichment_iterations} reaped={result.rows_reaped}"
        )

        if result.status == RefreshStatus.SUCCESS:
            self.failure_streak = 0
            logger.info(summary)
        elif result.status == RefreshStatus.PARTIAL:
            # New snapshot is live; only cleanup is behind
            self.failure_streak = 0
            logger.warning(f"{summary} | {result.error_message}")
        else:
            self.failure_streak += 1
            log = logger.error if self.failure_streak >= FAILURE_STREAK_ALERT else logger.warning
            log(f"{summary} | {result.error_message} (failed {self.failure_streak} in a row)")

        return result

    def schedule(self) -> None:
        """Register the refresh job."""
        options = {}
        if self.run_on_start:
            # Passing None instead would add the job paused
            options["next_run_time"] = datetime.now(timezone.utc)

        self._scheduler.add_job(
            self.tick,
            trigger=IntervalTrigger(seconds=self.interval_seconds),
            id=JOB_ID,
            name="Live snapshot refresh",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
            **options,
        )
        logger.info(
            f"Refresh every {self.interval_seconds}s, "
            f"first run {'now' if self.run_on_start else 'after one interval'}"
        )

    def start(self) -> None:
        """Schedule and block until shutdown."""
        self.schedule()
        logger.info("Snapshot refresh scheduler started")
        self._scheduler.start()

    def stop(self) -> None:
        self._scheduler.shutdown(wait=True)
        logger.info("Snapshot refresh scheduler stopped")


def create_scheduler(
    interval_seconds: int | None = None,
    run_on_start: bool | None = None,
) -> RefreshScheduler:
    """Create a scheduler, falling back to settings for anything not given."""
    return RefreshScheduler(interval_seconds=interval_seconds, run_on_start=run_on_start)


def start_scheduler() -> None:
    """Configure file logging from settings and run the scheduler (blocking)."""
    setup_logger(
        log_level=settings.logging.level,
        log_dir=settings.logging.log_dir,
        log_file=settings.logging.log_file,
        rotation=settings.logging.rotation,
        retention=settings.logging.retention,
        serialize=settings.logging.serialize,
    )
    create_scheduler().start()


__all__ = [
    "RefreshScheduler",
    "create_scheduler",
    "start_scheduler",
]
