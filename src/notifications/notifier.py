"""
Refresh notifier that routes run outcomes to Slack.
"""

from typing import TYPE_CHECKING

from src.utils import logger
from src.notifications.slack import SlackNotifier, create_slack_notifier

if TYPE_CHECKING:
    from src.ingestion.config import Settings
    from src.ingestion.db import RefreshRecord


class RefreshNotifier:
    """Unified notifier for refresh events."""

    def __init__(self, slack: SlackNotifier):
        self.slack = slack

    def on_success(self, record: "RefreshRecord", duration_seconds: float | None = None) -> None:
        self.slack.notify_success(
            state_count=record.state_count,
            enriched_count=record.enriched_count,
            duration_seconds=duration_seconds,
        )

    def on_failure(
        self,
        record_id: int | None,
        error_category: str,
        error_message: str,
    ) -> None:
        logger.error(f"Recording failure: [{error_category}] {error_message}")
        self.slack.notify_failure(
            error_category=error_category,
            error_message=error_message,
            record_id=record_id,
        )

    def on_reap_failure(self, record_id: int | None, snapshot_time: int, error_message: str) -> None:
        logger.warning(f"Recording incomplete cleanup of snapshot {snapshot_time}: {error_message}")
        self.slack.notify_reap_failure(
            snapshot_time=snapshot_time,
            error_message=error_message,
            record_id=record_id,
        )


def create_notifier(app_settings: "Settings") -> RefreshNotifier:
    """Create a new notifier."""
    return RefreshNotifier(create_slack_notifier(app_settings))


_notifier: RefreshNotifier | None = None


def get_notifier(app_settings: "Settings") -> RefreshNotifier:
    """Get the process-wide notifier, created on first use."""
    global _notifier
    if _notifier is None:
        _notifier = create_notifier(app_settings)
    return _notifier


__all__ = [
    "RefreshNotifier",
    "create_notifier",
    "get_notifier",
]
