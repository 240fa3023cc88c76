"""
Slack notification sender for refresh alerts.

Sends failure/partial/success notifications to a Slack channel via webhook.
"""

from datetime import datetime, timezone

import httpx

from src.utils import logger


def _timestamp_block(timestamp: datetime) -> dict:
    return {
        "type": "context",
        "elements": [
            {"type": "mrkdwn", "text": f"⏰ {timestamp.strftime('%Y-%m-%d %H:%M:%S UTC')}"}
        ],
    }


class SlackNotifier:
    """Sends notifications to Slack via incoming webhooks."""

    def __init__(
        self,
        webhook_url: str | None = None,
        enabled: bool = True,
        notify_on_success: bool = False,
        environment: str = "development",
        service_name: str = "snapshot-refresh",
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize Slack notifier.

        Args:
            webhook_url: Slack incoming webhook URL (nothing is sent without one)
            enabled: Master switch
            notify_on_success: Also post successful refreshes
            environment: Environment named in every message
            service_name: Service named in every message
            transport: Optional httpx transport (used by tests)
        """
        self.webhook_url = webhook_url
        self.enabled = enabled and bool(webhook_url)
        self.notify_on_success = notify_on_success
        self.environment = environment
        self.service_name = service_name
        self._transport = transport

        if self.enabled:
            logger.info("Slack notifier initialized")
        elif not self.webhook_url:
            logger.debug("Slack webhook URL not configured, notifications disabled")
        else:
            logger.info("Slack notifier disabled")

    def _send(self, payload: dict) -> bool:
        """
        Send a message to Slack.

        Returns:
            True if successful, False otherwise
        """
        if not self.enabled:
            logger.debug("Slack disabled or not configured, skipping notification")
            return False

        try:
            with httpx.Client(timeout=10, transport=self._transport) as client:
                response = client.post(self.webhook_url, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Failed to send Slack notification: {e}")
            return False

        if response.status_code != 200:
            logger.error(f"Slack webhook failed: {response.status_code} - {response.text}")
            return False

        logger.info("Slack notification sent successfully")
        return True

    def notify_failure(
        self,
        error_category: str,
        error_message: str,
        record_id: int | None = None,
        timestamp: datetime | None = None,
    ) -> bool:
        """Refresh aborted; the previous snapshot stays active."""
        timestamp = timestamp or datetime.now(timezone.utc)

        payload = {
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": "🚨 Snapshot Refresh Failed", "emoji": True},
                },
                {
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*Environment:*\n{self.environment}"},
                        {"type": "mrkdwn", "text": f"*Service:*\n{self.service_name}"},
                        {"type": "mrkdwn", "text": f"*Error Category:*\n`{error_category}`"},
                        {"type": "mrkdwn", "text": f"*Run ID:*\n{record_id or 'N/A'}"},
                    ],
                },
                {
                    "type": "section",
                    "text": {"type": "mrkdwn", "text": f"*Error Message:*\n```{error_message}```"},
                },
                _timestamp_block(timestamp),
            ]
        }

        return self._send(payload)

    def notify_reap_failure(
        self,
        snapshot_time: int,
        error_message: str,
        record_id: int | None = None,
        timestamp: datetime | None = None,
    ) -> bool:
        """New snapshot is live but the superseded one was not fully deleted."""
        timestamp = timestamp or datetime.now(timezone.utc)

        payload = {
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": "⚠️ Snapshot Cleanup Incomplete", "emoji": True},
                },
                {
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*Environment:*\n{self.environment}"},
                        {"type": "mrkdwn", "text": f"*Snapshot:*\n`{snapshot_time}`"},
                        {"type": "mrkdwn", "text": f"*Run ID:*\n{record_id or 'N/A'}"},
                    ],
                },
                {
                    "type": "section",
                    "text": {
                        "type": "mrkdwn",
                        "text": f"*Error Message:*\n```{error_message}```\nRetry with `--reap {snapshot_time}`",
                    },
                },
                _timestamp_block(timestamp),
            ]
        }

        return self._send(payload)

    def notify_success(
        self,
        state_count: int,
        enriched_count: int,
        duration_seconds: float | None = None,
        timestamp: datetime | None = None,
    ) -> bool:
        """Send a success notification (usually disabled)."""
        if not self.notify_on_success:
            return False

        timestamp = timestamp or datetime.now(timezone.utc)
        duration_str = f"{duration_seconds:.1f}s" if duration_seconds else "N/A"

        payload = {
            "blocks": [
                {
                    "type": "header",
                    "text": {"type": "plain_text", "text": "✅ Snapshot Refreshed", "emoji": True},
                },
                {
                    "type": "section",
                    "fields": [
                        {"type": "mrkdwn", "text": f"*Aircraft:*\n{state_count}"},
                        {"type": "mrkdwn", "text": f"*With route:*\n{enriched_count}"},
                        {"type": "mrkdwn", "text": f"*Duration:*\n{duration_str}"},
                    ],
                },
                _timestamp_block(timestamp),
            ]
        }

        return self._send(payload)


def create_slack_notifier(app_settings) -> SlackNotifier:
    """Create a Slack notifier from the application settings."""
    return SlackNotifier(
        webhook_url=app_settings.slack.webhook_url,
        enabled=app_settings.slack.enabled,
        notify_on_success=app_settings.slack.notify_on_success,
        environment=app_settings.environment,
        service_name=app_settings.service_name,
    )


__all__ = ["SlackNotifier", "create_slack_notifier"]
