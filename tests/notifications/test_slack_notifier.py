"""Tests for Slack webhook notifications."""

import json

import httpx

from src.notifications.slack import SlackNotifier
from src.notifications.notifier import RefreshNotifier

WEBHOOK_URL = "https://hooks.slack.test/services/T000/B000/XXX"


def capture(status_code: int = 200):
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(json.loads(request.content))
        return httpx.Response(status_code, text="ok")

    return sent, httpx.MockTransport(handler)


def test_failure_notification_is_posted():
    sent, transport = capture()
    notifier = SlackNotifier(webhook_url=WEBHOOK_URL, transport=transport)

    assert notifier.notify_failure("API_ERROR", "API request failed: 503", record_id=7)

    text = json.dumps(sent[0])
    assert "API_ERROR" in text
    assert "API request failed: 503" in text


def test_reap_failure_names_snapshot_to_retry():
    sent, transport = capture()
    notifier = RefreshNotifier(slack=SlackNotifier(webhook_url=WEBHOOK_URL, transport=transport))

    notifier.on_reap_failure(record_id=3, snapshot_time=1234, error_message="database is locked")

    assert "--reap 1234" in json.dumps(sent[0])


def test_webhook_error_returns_false():
    _, transport = capture(status_code=500)
    notifier = SlackNotifier(webhook_url=WEBHOOK_URL, transport=transport)

    assert notifier.notify_failure("DATABASE", "boom") is False


def test_no_webhook_sends_nothing():
    sent, transport = capture()
    notifier = SlackNotifier(webhook_url=None, transport=transport)

    assert notifier.notify_failure("DATABASE", "boom") is False
    assert sent == []


def test_success_is_only_posted_when_opted_in():
    sent, transport = capture()

    assert SlackNotifier(webhook_url=WEBHOOK_URL, transport=transport).notify_success(10, 8) is False
    assert sent == []

    notifier = SlackNotifier(webhook_url=WEBHOOK_URL, notify_on_success=True, transport=transport)
    assert notifier.notify_success(10, 8, duration_seconds=4.2)
    assert "4.2s" in json.dumps(sent[0])


def test_messages_name_environment_and_service():
    sent, transport = capture()
    notifier = SlackNotifier(
        webhook_url=WEBHOOK_URL,
        environment="production",
        service_name="snapshot-refresh",
        transport=transport,
    )

    notifier.notify_failure("AUTH", "rejected")

    text = json.dumps(sent[0])
    assert "production" in text
    assert "snapshot-refresh" in text
