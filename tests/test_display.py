"""Tests for the webhook notification display."""

import json

import httpx
import pytest
from freezegun import freeze_time

from alarms import ids
from alarms.display import ALARM_CHANNEL, REMINDER_CHANNEL, WebhookDisplay
from alarms.models import AlarmRecord, Recurrence
from alarms.receivers import build_actions
from alarms.runtime import build_runtime


class Sink:
    """Records requests and answers with a fixed status."""

    def __init__(self, status_code=200):
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code)


def webhook(sink, token="secret"):
    client = httpx.Client(transport=httpx.MockTransport(sink))
    return WebhookDisplay(base_url="http://sink/", token=token, client=client)


def alarm_record(record_id=5):
    return AlarmRecord(
        id=record_id,
        title="Kick count",
        category="custom",
        recurrence=Recurrence.DAILY,
        hour=9,
        is_alarm=True,
    )


class TestShow:

    def test_show_puts_by_id_and_repeat_targets_same_url(self):
        sink = Sink()
        display = webhook(sink)

        display.show(7, REMINDER_CHANNEL, "Take vitamin", "", [])
        display.show(7, REMINDER_CHANNEL, "Take vitamin", "again", [])

        assert [r.method for r in sink.requests] == ["PUT", "PUT"]
        assert [str(r.url) for r in sink.requests] == [
            "http://sink/notifications/7",
            "http://sink/notifications/7",
        ]

    def test_payload_carries_channel_actions_and_full_screen(self):
        sink = Sink()
        display = webhook(sink)
        record = alarm_record()

        display.show(5, ALARM_CHANNEL, record.title, "", build_actions(record, True), full_screen=True)

        body = json.loads(sink.requests[0].content)
        assert body["id"] == 5
        assert body["channel"] == "reminders_alarm"
        assert body["sound"] == "alarm"
        assert body["insistent"] is True
        assert body["full_screen"] is True
        assert [(a["kind"], a["request_id"]) for a in body["actions"]] == [
            ("snooze", 10005),
            ("dismiss", 20005),
            ("wake", 30005),
        ]
        assert body["actions"][0]["payload"]["isAlarm"] is True

    def test_bearer_token_is_sent(self):
        sink = Sink()
        webhook(sink, token="secret").show(7, REMINDER_CHANNEL, "Take vitamin", "", [])

        assert sink.requests[0].headers["Authorization"] == "Bearer secret"

    def test_no_token_no_authorization_header(self):
        sink = Sink()
        webhook(sink, token="").show(7, REMINDER_CHANNEL, "Take vitamin", "", [])

        assert "Authorization" not in sink.requests[0].headers

    def test_server_error_raises(self):
        display = webhook(Sink(status_code=503))

        with pytest.raises(httpx.HTTPStatusError):
            display.show(7, REMINDER_CHANNEL, "Take vitamin", "", [])


class TestDismiss:

    def test_dismiss_deletes_by_id(self):
        sink = Sink(status_code=204)
        webhook(sink).dismiss(7)

        assert sink.requests[0].method == "DELETE"
        assert str(sink.requests[0].url) == "http://sink/notifications/7"

    def test_dismiss_of_unknown_id_is_success(self):
        webhook(Sink(status_code=404)).dismiss(7)

    def test_dismiss_server_error_raises(self):
        with pytest.raises(httpx.HTTPStatusError):
            webhook(Sink(status_code=503)).dismiss(7)


def test_missing_base_url_is_rejected():
    with pytest.raises(ValueError):
        WebhookDisplay(base_url="")


def test_duplicate_fire_reaches_same_notification(store, backend):
    sink = Sink()
    runtime = build_runtime(store=store, backend=backend, display=webhook(sink))
    with freeze_time("2026-03-02 08:00:00"):
        runtime.scheduler.schedule_daily(1, "Take vitamin", "", "medication", 9, 0)
    payload = store.get(1).to_dict()

    with freeze_time("2026-03-02 09:00:00"):
        runtime.fire_handler.on_fire(payload)
        runtime.fire_handler.on_fire(payload)

    puts = [r for r in sink.requests if r.method == "PUT"]
    assert len(puts) == 2
    assert {str(r.url) for r in puts} == {"http://sink/notifications/1"}


def test_dismiss_action_with_unreachable_sink_returns_false(store, backend):
    runtime = build_runtime(store=store, backend=backend, display=webhook(Sink(status_code=503)))

    assert runtime.handle_action(ids.dismiss_action_id(7)) is False
