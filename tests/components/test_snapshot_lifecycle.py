"""Tests for writing, promoting and reaping snapshots."""

from unittest.mock import Mock

import pytest
from conftest import make_state

from src.utils.exceptions import (
    DatabaseError,
    SnapshotConflictError,
    SnapshotReapError,
    SnapshotWriteError,
)
from src.ingestion.components.snapshot_writer import SnapshotWriter, new_snapshot_time, split_batches
from src.ingestion.components.snapshot_promoter import SnapshotPromoter
from src.ingestion.components.snapshot_reaper import SnapshotReaper


# =============================================================================
# Writer
# =============================================================================

def test_new_snapshot_time_is_milliseconds():
    assert new_snapshot_time(clock=lambda: 1_700_000_000.5) == 1_700_000_000_500


def test_new_snapshot_time_never_goes_backwards():
    assert new_snapshot_time(previous=2_000_000_000_000, clock=lambda: 1_700_000_000.0) == 2_000_000_000_001


def test_split_batches_keeps_every_state():
    states = [make_state(f"{i:06x}") for i in range(5)]

    batches = split_batches(states, 2)

    assert [len(b) for b in batches] == [2, 2, 1]


def test_writer_writes_all_batches(snapshot_repository):
    states = [make_state(f"{i:06x}") for i in range(25)]
    writer = SnapshotWriter(snapshot_repository, batch_size=10, max_workers=3)

    written = writer.write(states, snapshot_time=1000)

    assert written == 25
    assert snapshot_repository.count_rows(1000) == 25
    # Not active until promoted
    assert snapshot_repository.read_active_snapshot_rows() == []


def test_writer_empty_list_writes_nothing():
    repository = Mock()

    assert SnapshotWriter(repository, batch_size=10).write([], snapshot_time=1000) == 0
    repository.insert_batch.assert_not_called()


def test_writer_raises_when_any_batch_fails():
    repository = Mock()
    repository.insert_batch.side_effect = [2, DatabaseError("disk full")]
    writer = SnapshotWriter(repository, batch_size=2, max_workers=1)

    with pytest.raises(SnapshotWriteError) as exc_info:
        writer.write([make_state(f"{i:06x}") for i in range(4)], snapshot_time=1000)

    assert exc_info.value.snapshot_time == 1000
    assert "disk full" in exc_info.value.message


# =============================================================================
# Promoter
# =============================================================================

def test_promote_returns_previous_active(snapshot_repository):
    promoter = SnapshotPromoter(snapshot_repository, compare_and_swap=False)

    assert promoter.promote(1000) is None
    assert promoter.promote(2000) == 1000
    assert snapshot_repository.read_pointer().active_snapshot_time == 2000


def test_promote_without_compare_and_swap_ignores_expected(snapshot_repository):
    snapshot_repository.write_pointer(1500)
    promoter = SnapshotPromoter(snapshot_repository, compare_and_swap=False)

    assert promoter.promote(2000, expected_previous=1000) == 1500


def test_promote_with_compare_and_swap_detects_race(snapshot_repository):
    snapshot_repository.write_pointer(1500)
    promoter = SnapshotPromoter(snapshot_repository, compare_and_swap=True)

    with pytest.raises(SnapshotConflictError):
        promoter.promote(2000, expected_previous=1000)
    assert snapshot_repository.read_pointer().active_snapshot_time == 1500


# =============================================================================
# Reaper
# =============================================================================

def test_reaper_deletes_in_bounded_batches():
    """2500 rows with a batch size of 1000 takes three deletes."""
    repository = Mock()
    repository.delete_batch.side_effect = [1000, 1000, 500]

    result = SnapshotReaper(repository, batch_size=1000).reap(1000)

    assert result.rows_deleted == 2500
    assert result.batches == 3
    assert repository.delete_batch.call_count == 3
    repository.delete_batch.assert_called_with(1000, 1000)


def test_reaper_empties_snapshot(snapshot_repository):
    snapshot_repository.insert_batch([make_state(f"{i:06x}") for i in range(25)], 1000)
    snapshot_repository.insert_batch([make_state("ffffff")], 2000)

    result = SnapshotReaper(snapshot_repository, batch_size=10).reap(1000)

    assert result.rows_deleted == 25
    assert result.batches == 3
    assert snapshot_repository.count_rows(1000) == 0
    assert snapshot_repository.count_rows(2000) == 1
    assert snapshot_repository.delete_batch(1000, 10) == 0


def test_reaper_exact_multiple_needs_one_empty_batch():
    repository = Mock()
    repository.delete_batch.side_effect = [1000, 1000, 0]

    result = SnapshotReaper(repository, batch_size=1000).reap(1000)

    assert result.rows_deleted == 2000
    assert result.batches == 3


def test_reaper_none_is_noop():
    repository = Mock()

    result = SnapshotReaper(repository, batch_size=1000).reap(None)

    assert result.rows_deleted == 0
    repository.delete_batch.assert_not_called()


def test_reaper_failure_reports_progress():
    repository = Mock()
    repository.delete_batch.side_effect = [1000, DatabaseError("locked")]

    with pytest.raises(SnapshotReapError) as exc_info:
        SnapshotReaper(repository, batch_size=1000).reap(1000)

    assert exc_info.value.rows_deleted == 1000
    assert exc_info.value.snapshot_time == 1000
