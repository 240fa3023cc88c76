"""Bounded deletion of superseded snapshots."""

from typing import NamedTuple

from src.utils import logger
from src.utils.exceptions import SnapshotReapError
from src.ingestion.config import settings
from src.ingestion.db import SnapshotRepository


class ReapResult(NamedTuple):
    snapshot_time: int | None
    rows_deleted: int
    batches: int


class SnapshotReaper:
    """
    Deletes a superseded snapshot one batch at a time.

    Batches run sequentially to keep delete load on the store bounded. A
    batch that removes fewer than ``batch_size`` rows means nothing is left.
    """

    def __init__(self, repository: SnapshotRepository, batch_size: int | None = None):
        self.repository = repository
        self.batch_size = batch_size or settings.snapshot.batch_size

    def reap(self, snapshot_time: int | None) -> ReapResult:
        """
        Delete every row of ``snapshot_time``. No-op when it is None.

        Raises:
            SnapshotReapError: A delete batch failed; rows_deleted says how far it got
        """
        if snapshot_time is None:
            logger.info("No previous snapshot to clean up")
            return ReapResult(snapshot_time=None, rows_deleted=0, batches=0)

        logger.info(f"Cleaning up previous snapshot {snapshot_time}")
        rows_deleted = 0
        batches = 0

        while True:
            try:
                deleted = self.repository.delete_batch(snapshot_time, self.batch_size)
            except Exception as e:
                raise SnapshotReapError(
                    f"Failed to delete batch {batches + 1} of snapshot {snapshot_time}: {e}",
                    snapshot_time=snapshot_time,
                    rows_deleted=rows_deleted,
                ) from e

            batches += 1
            rows_deleted += deleted
            if deleted < self.batch_size:
                break

        logger.info(f"Cleanup complete: {rows_deleted} rows in {batches} batches")
        return ReapResult(snapshot_time=snapshot_time, rows_deleted=rows_deleted, batches=batches)


__all__ = ["ReapResult", "SnapshotReaper"]
