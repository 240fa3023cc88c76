"""Jobs module for the snapshot refresh service."""

from src.ingestion.jobs.refresh_job import (
    RefreshJob,
    current_states,
    run_refresh,
)
from src.ingestion.jobs.scheduler import (
    RefreshScheduler,
    create_scheduler,
    start_scheduler,
)

__all__ = [
    "RefreshJob",
    "current_states",
    "run_refresh",
    "RefreshScheduler",
    "create_scheduler",
    "start_scheduler",
]
