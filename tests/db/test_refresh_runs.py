"""Tests for refresh run records."""

import pytest

from src.utils.exceptions import RefreshRecordError
from src.ingestion.db import RefreshStatus


def test_create_and_update_record(run_repository):
    record = run_repository.create_record()
    assert record.status == RefreshStatus.PENDING

    updated = run_repository.update_record(
        record.id,
        snapshot_time=2000,
        previous_snapshot_time=1000,
        state_count=10,
        status=RefreshStatus.SUCCESS,
    )

    assert updated.state_count == 10
    stored = run_repository.get_by_id(record.id)
    assert stored == updated
    assert stored.to_dict()["status"] == "success"


def test_none_leaves_field_unchanged(run_repository):
    record = run_repository.create_record()
    run_repository.update_record(record.id, snapshot_time=2000)

    updated = run_repository.update_record(record.id, snapshot_time=None, status=RefreshStatus.FAILED)

    assert updated.snapshot_time == 2000
    assert updated.status == RefreshStatus.FAILED


def test_unknown_field_rejected(run_repository):
    record = run_repository.create_record()

    with pytest.raises(RefreshRecordError):
        run_repository.update_record(record.id, route_count=3)


def test_missing_record_returns_none(run_repository):
    assert run_repository.update_record(999, status=RefreshStatus.SUCCESS) is None


def test_latest_and_by_status(run_repository):
    first = run_repository.create_record()
    second = run_repository.create_record()
    run_repository.update_record(first.id, status=RefreshStatus.FAILED)

    assert [r.id for r in run_repository.get_latest(limit=2)] == [second.id, first.id]
    assert [r.id for r in run_repository.get_by_status(RefreshStatus.FAILED)] == [first.id]
