"""
End-to-end refresh runs against a temporary SQLite database.

The OpenSky client and the notifier are mocked; everything else is real.
"""

from unittest.mock import Mock

import pytest
from conftest import NOW, raw_vector, make_flight, make_state

from src.utils.exceptions import ConfigurationError, DatabaseError
from src.ingestion.components import SnapshotReaper, SnapshotWriter, SnapshotPromoter
from src.ingestion.db import RefreshStatus
from src.ingestion.jobs.refresh_job import RefreshJob, current_states


@pytest.fixture
def notifier() -> Mock:
    return Mock()


@pytest.fixture
def make_job(mock_client, snapshot_repository, run_repository, enricher, notifier):
    def _make(**overrides) -> RefreshJob:
        clock = iter(float(NOW + i) for i in range(1000))
        components = dict(
            client=mock_client,
            repository=snapshot_repository,
            run_repository=run_repository,
            enricher=enricher,
            writer=SnapshotWriter(snapshot_repository, batch_size=2, max_workers=2),
            promoter=SnapshotPromoter(snapshot_repository, compare_and_swap=True),
            reaper=SnapshotReaper(snapshot_repository, batch_size=2),
            notifier=notifier,
            clock=lambda: next(clock),
        )
        components.update(overrides)
        return RefreshJob(**components)

    return _make


def test_first_refresh_publishes_snapshot(make_job, mock_client, snapshot_repository, notifier):
    mock_client.get_states.return_value = {
        "time": NOW,
        "states": [raw_vector("abc123"), raw_vector("def456", latitude=None), raw_vector("0a1b2c")],
    }
    mock_client.get_flights_by_time.return_value = [
        make_flight("ABC123", NOW - 100, departure="VABB", arrival="VIDP"),
        make_flight("0a1b2c", NOW - 200, departure="EGLL"),
    ]

    result = make_job().run()

    assert result.status == RefreshStatus.SUCCESS
    assert result.state_count == 2
    assert result.enriched_count == 2
    assert result.enrichment_iterations == 1
    assert result.previous_snapshot_time is None
    assert snapshot_repository.read_pointer().active_snapshot_time == result.snapshot_time

    states = current_states(snapshot_repository)
    assert [s.icao24 for s in states] == ["abc123", "0a1b2c"]
    assert states[0].est_arrival_airport == "VIDP"
    notifier.on_success.assert_called_once()


def test_second_refresh_carries_routes_and_reaps_previous(make_job, mock_client, snapshot_repository):
    mock_client.get_states.return_value = {"time": NOW, "states": [raw_vector(f"{i:06x}") for i in range(5)]}
    mock_client.get_flights_by_time.return_value = [make_flight(f"{i:06x}", NOW - 100, departure="VABB") for i in range(5)]
    first = make_job().run()

    mock_client.get_flights_by_time.reset_mock()
    second = make_job().run()

    assert second.status == RefreshStatus.SUCCESS
    assert second.previous_snapshot_time == first.snapshot_time
    assert second.snapshot_time > first.snapshot_time
    assert second.enriched_count == 5
    assert second.enrichment_iterations == 0
    assert second.rows_reaped == 5
    mock_client.get_flights_by_time.assert_not_called()
    assert snapshot_repository.list_snapshot_times() == [second.snapshot_time]


def test_unknown_routes_do_not_fail_the_run(make_job, mock_client, snapshot_repository):
    """Every historical window empty: full iteration budget, run still succeeds."""
    mock_client.get_states.return_value = {"time": NOW, "states": [raw_vector("abc123")]}

    result = make_job().run()

    assert result.status == RefreshStatus.SUCCESS
    assert result.enriched_count == 0
    assert result.enrichment_iterations == 20
    assert mock_client.get_flights_by_time.call_count == 20
    assert current_states(snapshot_repository)[0].est_departure_airport is None


def test_empty_fetch_publishes_empty_snapshot(make_job, mock_client, snapshot_repository):
    mock_client.get_states.return_value = {"time": NOW, "states": [raw_vector("abc123")]}
    make_job().run()
    mock_client.get_states.return_value = {"time": NOW, "states": None}

    result = make_job().run()

    assert result.status == RefreshStatus.SUCCESS
    assert result.state_count == 0
    assert current_states(snapshot_repository) == []


def test_write_failure_leaves_active_snapshot_untouched(make_job, mock_client, snapshot_repository, notifier):
    mock_client.get_states.return_value = {"time": NOW, "states": [raw_vector("abc123")]}
    first = make_job().run()

    broken_repository = Mock(wraps=snapshot_repository)
    broken_repository.insert_batch.side_effect = DatabaseError("disk I/O error")
    result = make_job(writer=SnapshotWriter(broken_repository, batch_size=2, max_workers=1)).run()

    assert result.status == RefreshStatus.FAILED
    assert "[SNAPSHOT_WRITE]" in result.error_message
    assert "abandoned" in result.error_message
    assert snapshot_repository.read_pointer().active_snapshot_time == first.snapshot_time
    assert [s.icao24 for s in current_states(snapshot_repository)] == ["abc123"]
    notifier.on_failure.assert_called_once()


def test_reap_failure_is_partial_but_promoted(make_job, mock_client, snapshot_repository, notifier):
    mock_client.get_states.return_value = {"time": NOW, "states": [raw_vector("abc123")]}
    first = make_job().run()

    broken_repository = Mock(wraps=snapshot_repository)
    broken_repository.delete_batch.side_effect = DatabaseError("database is locked")
    job = make_job(reaper=SnapshotReaper(broken_repository, batch_size=2))
    result = job.run()

    assert result.status == RefreshStatus.PARTIAL
    assert "[SNAPSHOT_REAP]" in result.error_message
    assert snapshot_repository.read_pointer().active_snapshot_time == result.snapshot_time
    assert first.snapshot_time in snapshot_repository.list_snapshot_times()
    notifier.on_reap_failure.assert_called_once()
    notifier.on_success.assert_not_called()

    # Manual retry cleans up what the run left behind
    retry = make_job().reap(first.snapshot_time)
    assert retry.rows_deleted == 1
    assert snapshot_repository.list_snapshot_times() == [result.snapshot_time]


def test_reap_refuses_active_snapshot(make_job, mock_client):
    mock_client.get_states.return_value = {"time": NOW, "states": [raw_vector("abc123")]}
    job = make_job()
    result = job.run()

    with pytest.raises(ConfigurationError):
        job.reap(result.snapshot_time)


def test_conflicting_promotion_fails_run(make_job, mock_client, snapshot_repository):
    """Another writer moving the pointer mid-run is detected with compare-and-swap."""
    mock_client.get_states.return_value = {"time": NOW, "states": [raw_vector("abc123")]}
    snapshot_repository.insert_batch([make_state("ffffff")], 1)
    snapshot_repository.write_pointer(1)

    def racing_fetch():
        snapshot_repository.write_pointer(2)
        return {"time": NOW, "states": [raw_vector("abc123")]}

    mock_client.get_states.side_effect = racing_fetch
    result = make_job().run()

    assert result.status == RefreshStatus.FAILED
    assert "[SNAPSHOT_CONFLICT]" in result.error_message
    assert snapshot_repository.read_pointer().active_snapshot_time == 2
