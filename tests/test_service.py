"""Tests for the caller-facing reminder operations."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from freezegun import freeze_time

from alarms.errors import InvalidReminderError
from alarms.models import to_epoch_millis
from alarms.service import parse_time_of_day

UTC = ZoneInfo("UTC")


@pytest.fixture
def service(runtime):
    return runtime.service


class TestScheduleDailyReminder:

    @freeze_time("2026-03-02 09:30:00")
    def test_take_vitamin_scenario(self, service, store, backend):
        result = service.schedule_daily_reminder(1, "Take vitamin", None, "medication", hour=9, minute=0)

        assert result == {"success": True, "reminder_id": 1}
        entry = store.get(1).to_dict()
        assert entry["hour"] == 9
        assert entry["minute"] == 0
        assert entry["isDaily"] is True
        assert entry["body"] == ""
        assert backend.armed[1].run_at == datetime(2026, 3, 3, 9, 0, tzinfo=UTC)

    @freeze_time("2026-03-02 09:30:00")
    def test_time_string(self, service, store):
        service.schedule_daily_reminder(3, "Walk", "20 minutes", "exercise", time="21:15")

        assert (store.get(3).hour, store.get(3).minute) == (21, 15)

    @pytest.mark.parametrize("overrides, field", [
        ({"title": None}, "title"),
        ({"title": ""}, "title"),
        ({"category": None}, "category"),
        ({"hour": None}, "hour"),
        ({"hour": 24}, "hour"),
        ({"minute": 60}, "minute"),
        ({"reminder_id": 0}, "reminder_id"),
        ({"reminder_id": 10000}, "reminder_id"),
        ({"reminder_id": "1"}, "reminder_id"),
    ])
    def test_invalid_request_mutates_nothing(self, service, store, backend, overrides, field):
        request = {
            "reminder_id": 1,
            "title": "Take vitamin",
            "body": "",
            "category": "medication",
            "hour": 9,
            "minute": 0,
        }
        request.update(overrides)

        with pytest.raises(InvalidReminderError) as exc_info:
            service.schedule_daily_reminder(**request)

        assert exc_info.value.field == field
        assert store.load() == []
        assert backend.arm_calls == []

    def test_time_string_with_hour_is_rejected(self, service, store):
        with pytest.raises(InvalidReminderError) as exc_info:
            service.schedule_daily_reminder(3, "Walk", "", "exercise", hour=8, time="21:15")

        assert exc_info.value.field == "time"
        assert store.load() == []

    def test_backend_failure_is_reported(self, service, backend):
        backend.fail_arm_ids.add(1)

        result = service.schedule_daily_reminder(1, "Take vitamin", "", "medication", 9, 0)

        assert result["success"] is False
        assert result["reminder_id"] == 1
        assert "error" in result


class TestScheduleOneTimeReminder:

    @freeze_time("2026-03-02 09:30:00")
    def test_epoch_millis_instant(self, service, store, backend):
        when = datetime(2026, 3, 5, 14, 0, tzinfo=UTC)

        result = service.schedule_one_time_reminder(2, "Scan", "Bring notes", "custom", to_epoch_millis(when))

        assert result == {"success": True, "reminder_id": 2}
        assert backend.armed[2].run_at == when
        assert store.get(2).trigger_at == to_epoch_millis(when)

    def test_without_exact_permission_fails_and_stores_nothing(self, service, store, backend):
        backend.exact_permitted = False

        result = service.schedule_one_time_reminder(
            2, "Scan", "", "custom", datetime(2026, 3, 5, 14, 0, tzinfo=UTC)
        )

        assert result["success"] is False
        assert store.get(2) is None

    def test_missing_instant_is_rejected(self, service, store):
        with pytest.raises(InvalidReminderError) as exc_info:
            service.schedule_one_time_reminder(2, "Scan", "", "custom", None)

        assert exc_info.value.field == "trigger_at"
        assert store.load() == []

    def test_bool_instant_is_rejected(self, service):
        with pytest.raises(InvalidReminderError):
            service.schedule_one_time_reminder(2, "Scan", "", "custom", True)


class TestCancel:

    @freeze_time("2026-03-02 09:30:00")
    def test_cancel_reminder(self, service, store, backend):
        service.schedule_daily_reminder(1, "Take vitamin", "", "medication", 9, 0)

        assert service.cancel_reminder(1) == {"success": True}
        assert store.get(1) is None
        assert backend.armed == {}

    def test_cancel_snoozed_copy_is_allowed(self, service):
        assert service.cancel_reminder(50007) == {"success": True}

    @pytest.mark.parametrize("reminder_id", [0, -1, None, "7"])
    def test_cancel_invalid_id(self, service, reminder_id):
        with pytest.raises(InvalidReminderError):
            service.cancel_reminder(reminder_id)

    def test_cancel_failure_is_reported(self, service, backend):
        backend.fail_disarm_ids.add(1)

        result = service.cancel_reminder(1)

        assert result["success"] is False

    @freeze_time("2026-03-02 09:30:00")
    def test_cancel_all_reminders(self, service, store, backend):
        service.schedule_daily_reminder(1, "Take vitamin", "", "medication", 9, 0)
        service.schedule_daily_reminder(2, "Walk", "", "exercise", 18, 0)
        service.schedule_one_time_reminder(3, "Scan", "", "custom", datetime(2026, 3, 5, 14, 0, tzinfo=UTC))

        assert service.cancel_all_reminders() == {"success": True}
        assert store.load() == []
        assert backend.armed == {}


class TestPermission:

    def test_check_permission(self, service, backend):
        assert service.check_exact_scheduling_permission() is True
        backend.exact_permitted = False
        assert service.check_exact_scheduling_permission() is False

    def test_request_permission_is_fire_and_forget(self, service, backend):
        assert service.request_exact_scheduling_permission() is None
        assert backend.permission_requests == 1


@freeze_time("2026-03-02 09:30:00")
def test_list_reminders(service):
    service.schedule_daily_reminder(1, "Take vitamin", "", "medication", 9, 0)
    service.schedule_one_time_reminder(2, "Scan", "", "custom", datetime(2026, 3, 5, 14, 0, tzinfo=UTC))

    reminders = service.list_reminders()

    assert [r["id"] for r in reminders] == [1, 2]
    assert reminders[0]["next"] == "2026-03-03T09:00:00+00:00"
    assert reminders[1]["next"] == "2026-03-05T14:00:00+00:00"


@pytest.mark.parametrize("value, expected", [
    ("09:00", (9, 0)),
    ("7:05", (7, 5)),
    (" 23:59 ", (23, 59)),
])
def test_parse_time_of_day(value, expected):
    assert parse_time_of_day(value) == expected


@pytest.mark.parametrize("value", ["24:00", "12:60", "noon", "12", "", None])
def test_parse_time_of_day_rejects(value):
    with pytest.raises(InvalidReminderError):
        parse_time_of_day(value)
