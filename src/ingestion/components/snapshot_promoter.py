"""Activation of a completely written snapshot."""

from src.utils import logger
from src.ingestion.config import settings
from src.ingestion.db import ANY, SnapshotRepository


class SnapshotPromoter:
    """
    Flips the active-snapshot pointer in a single repository mutation.

    With ``compare_and_swap`` enabled the flip only happens if the pointer
    still holds the value this run started from; a racing refresh then
    surfaces as ``SnapshotConflictError`` instead of silently winning.
    """

    def __init__(self, repository: SnapshotRepository, compare_and_swap: bool | None = None):
        self.repository = repository
        self.compare_and_swap = (
            compare_and_swap if compare_and_swap is not None else settings.snapshot.compare_and_swap
        )

    def promote(self, snapshot_time: int, expected_previous: int | None = None) -> int | None:
        """
        Make ``snapshot_time`` the active snapshot.

        Args:
            snapshot_time: Fully written snapshot to activate
            expected_previous: Pointer value seen at the start of the run
                (only checked with compare_and_swap)

        Returns:
            The previously active snapshot_time, or None on the first run
        """
        expected = expected_previous if self.compare_and_swap else ANY
        previous = self.repository.write_pointer(snapshot_time, expected_previous=expected)

        if previous is None:
            logger.info(f"Activated first snapshot {snapshot_time}")
        else:
            logger.info(f"Activated snapshot {snapshot_time} (previous: {previous})")
        return previous


__all__ = ["SnapshotPromoter"]
