"""Tests for the command line entry point."""

import sys
from unittest.mock import Mock

import pytest

import main
import src.ingestion
from src.utils.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def no_file_logging(monkeypatch):
    monkeypatch.setattr(main, "setup_logger", Mock())


def test_reap_of_active_snapshot_exits_with_error(monkeypatch):
    job = Mock()
    job.reap.side_effect = ConfigurationError("Snapshot 1000 is active and cannot be reaped")
    monkeypatch.setattr(src.ingestion, "RefreshJob", Mock(return_value=job))
    monkeypatch.setattr(sys, "argv", ["main.py", "--reap", "1000"])

    with pytest.raises(SystemExit) as exc_info:
        main.main()

    assert exc_info.value.code == 1
    job.reap.assert_called_once_with(1000)


def test_reap_of_superseded_snapshot(monkeypatch):
    job = Mock()
    monkeypatch.setattr(src.ingestion, "RefreshJob", Mock(return_value=job))
    monkeypatch.setattr(sys, "argv", ["main.py", "--reap", "900"])

    main.main()

    job.reap.assert_called_once_with(900)
