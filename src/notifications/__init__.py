"""
Notifications module for Slack alerts.

Usage:
    from src.ingestion.config import settings
    from src.notifications import get_notifier

    notifier = get_notifier(settings)
    notifier.on_failure(record_id=2, error_category="API_ERROR", error_message="...")

Configuration comes from the application settings (``SLACK_*``,
``APP_ENVIRONMENT``, ``APP_SERVICE_NAME``); this package does not read the
environment itself.
"""

from src.notifications.slack import (
    SlackNotifier,
    create_slack_notifier,
)
from src.notifications.notifier import (
    RefreshNotifier,
    create_notifier,
    get_notifier,
)

__all__ = [
    # Slack
    "SlackNotifier",
    "create_slack_notifier",
    # Main notifier
    "RefreshNotifier",
    "create_notifier",
    "get_notifier",
]
