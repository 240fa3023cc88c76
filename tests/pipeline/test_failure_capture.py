"""
Failure scenarios of the refresh pipeline.

Each one must be recorded as FAILED with its error category and must leave
the active snapshot exactly as it was.
"""

from unittest.mock import Mock

import pytest
from conftest import NOW, raw_vector

from src.utils.exceptions import (
    APIConnectionError,
    APITimeoutError,
    AuthenticationError,
    ConfigurationError,
    OpenSkyAPIError,
    RateLimitError,
    RefreshRecordError,
)
from src.ingestion.db import RefreshStatus
from src.ingestion.jobs.refresh_job import RefreshJob, run_refresh


@pytest.fixture
def job(mock_client, snapshot_repository, run_repository, enricher):
    snapshot_repository.write_pointer(1000)
    return RefreshJob(
        client=mock_client,
        repository=snapshot_repository,
        run_repository=run_repository,
        enricher=enricher,
        notifier=Mock(),
    )


@pytest.mark.parametrize(
    "error, category",
    [
        (APIConnectionError("Connection refused: opensky-network.org"), "API_CONNECTION"),
        (APITimeoutError("Request timed out", timeout=30), "API_TIMEOUT"),
        (RateLimitError(retry_after=60), "RATE_LIMIT"),
        (AuthenticationError("OPENSKY_CLIENT_ID and OPENSKY_CLIENT_SECRET must be set"), "AUTH"),
        (OpenSkyAPIError("API request failed: 503", status_code=503), "API_ERROR"),
        (RuntimeError("Something completely unexpected"), "UNEXPECTED"),
    ],
)
def test_fetch_failure_is_captured(job, mock_client, run_repository, snapshot_repository, error, category):
    mock_client.get_states.side_effect = error

    result = job.run()

    assert result.status == RefreshStatus.FAILED
    assert f"[{category}]" in result.error_message
    assert result.snapshot_time is None
    assert snapshot_repository.read_pointer().active_snapshot_time == 1000
    assert run_repository.get_by_status(RefreshStatus.FAILED)[0].id == result.id
    job.notifier.on_failure.assert_called_once()


def test_rate_limit_message_mentions_retry(job, mock_client):
    mock_client.get_states.side_effect = RateLimitError(retry_after=60)

    assert "60" in job.run().error_message


def test_enrichment_failure_aborts_refresh(job, mock_client, snapshot_repository):
    """Historical flight errors other than 404 abort the whole refresh."""
    mock_client.get_states.return_value = {"time": NOW, "states": [raw_vector("abc123")]}
    mock_client.get_flights_by_time.side_effect = OpenSkyAPIError("API request failed: 500", status_code=500)

    result = job.run()

    assert result.status == RefreshStatus.FAILED
    assert "[API_ERROR]" in result.error_message
    assert snapshot_repository.list_snapshot_times() == []


def test_run_refresh_reports_configuration_errors(monkeypatch):
    def broken_init(self, *args, **kwargs):
        raise ConfigurationError("Failed to initialize database repository: unable to open database file")

    monkeypatch.setattr(RefreshJob, "__init__", broken_init)

    result = run_refresh()

    assert result.status == RefreshStatus.FAILED
    assert result.error_message.startswith("[CONFIG]")


def test_record_update_failure_after_publish_is_captured(job, mock_client, run_repository, snapshot_repository):
    """A published snapshot stays published even when its run record cannot be saved."""
    mock_client.get_states.return_value = {"time": NOW, "states": [raw_vector("abc123")]}
    run_repository.update_record = Mock(side_effect=RefreshRecordError("disk I/O error"))

    result = job.run()

    active = snapshot_repository.read_pointer().active_snapshot_time
    assert active != 1000
    assert result.snapshot_time == active
    assert result.previous_snapshot_time == 1000
    assert result.state_count == 1
    assert result.status == RefreshStatus.SUCCESS
    assert [s.icao24 for s in snapshot_repository.read_active_snapshot_rows()] == ["abc123"]
