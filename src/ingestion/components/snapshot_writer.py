"""
Batch writer for new, not yet active snapshots.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence

from src.utils import logger
from src.utils.exceptions import SnapshotWriteError
from src.ingestion.config import settings
from src.ingestion.db import SnapshotRepository
from src.ingestion.models import AircraftState


def new_snapshot_time(
    previous: int | None = None,
    clock: Callable[[], float] = time.time,
) -> int:
    """
    Identifier for a new snapshot: the current time in milliseconds.

    Always strictly greater than ``previous`` so identifiers keep
    increasing even if the wall clock steps backwards.
    """
    snapshot_time = int(clock() * 1000)
    if previous is not None and snapshot_time <= previous:
        snapshot_time = previous + 1
    return snapshot_time


def split_batches(states: Sequence[AircraftState], batch_size: int) -> list[Sequence[AircraftState]]:
    return [states[i:i + batch_size] for i in range(0, len(states), batch_size)]


class SnapshotWriter:
    """
    Persists a full state list under a new snapshot_time.

    Batches are independent row sets and are written concurrently. The
    snapshot is complete only when every batch succeeded; any failure is
    raised so the caller never promotes a partial snapshot.
    """

    def __init__(
        self,
        repository: SnapshotRepository,
        batch_size: int | None = None,
        max_workers: int | None = None,
    ):
        self.repository = repository
        self.batch_size = batch_size or settings.snapshot.batch_size
        self.max_workers = max_workers or settings.snapshot.write_workers

    def write(self, states: Sequence[AircraftState], snapshot_time: int) -> int:
        """
        Write every state tagged with ``snapshot_time``.

        Returns:
            Number of rows written

        Raises:
            SnapshotWriteError: If any batch fails
        """
        batches = split_batches(states, self.batch_size)
        logger.info(f"Writing {len(states)} states in {len(batches)} batches for snapshot {snapshot_time}")

        if not batches:
            return 0

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(batches))) as pool:
            futures = [
                pool.submit(self.repository.insert_batch, batch, snapshot_time)
                for batch in batches
            ]

        written = 0
        failures = []
        for index, future in enumerate(futures):
            error = future.exception()
            if error is not None:
                failures.append((index, error))
            else:
                written += future.result()

        if failures:
            index, error = failures[0]
            raise SnapshotWriteError(
                f"{len(failures)} of {len(batches)} batches failed for snapshot "
                f"{snapshot_time} (first: batch {index}: {error})",
                snapshot_time=snapshot_time,
            ) from error

        logger.info(f"Snapshot {snapshot_time} complete: {written} rows")
        return written


__all__ = ["SnapshotWriter", "new_snapshot_time", "split_batches"]
