"""Pytest configuration and fixtures."""

import os
import sys
import tempfile
from dataclasses import dataclass
from datetime import datetime
from typing import Any

# Keep logs and config side effects out of the working tree; must run
# before anything imports config
os.environ.setdefault("LOCALAPPDATA", tempfile.mkdtemp(prefix="reminder-alarms-tests-"))
os.environ["ALARM_TIMEZONE"] = "UTC"
os.environ["EXACT_ALARMS_PERMITTED"] = "true"
os.environ["SNOOZE_MINUTES"] = "10"
os.environ.pop("NOTIFY_WEBHOOK_URL", None)

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from zoneinfo import ZoneInfo

from alarms.backend import TriggerBackend
from alarms.display import InMemoryDisplay
from alarms.errors import BackendError, ExactAlarmPermissionError
from alarms.runtime import build_runtime
from alarms.scheduler import AlarmScheduler
from alarms.store import InMemoryRecordStore

UTC = ZoneInfo("UTC")


@dataclass
class ArmedWake:
    run_at: datetime
    payload: dict[str, Any]
    exact: bool


class FakeBackend(TriggerBackend):
    """In-memory trigger backend that records arms and fires on demand."""

    def __init__(self, exact_permitted: bool = True):
        super().__init__()
        self.exact_permitted = exact_permitted
        self.armed: dict[int, ArmedWake] = {}
        self.arm_calls: list[int] = []
        self.disarm_calls: list[int] = []
        self.fail_arm_ids: set[int] = set()
        self.fail_disarm_ids: set[int] = set()
        self.permission_requests = 0

    def can_schedule_exact(self) -> bool:
        return self.exact_permitted

    def arm(self, alarm_id, run_at, payload, exact=True):
        if alarm_id in self.fail_arm_ids:
            raise BackendError("arm rejected", alarm_id)
        if exact and not self.exact_permitted:
            raise ExactAlarmPermissionError("not permitted")
        self.armed[alarm_id] = ArmedWake(run_at, dict(payload), exact)
        self.arm_calls.append(alarm_id)

    def disarm(self, alarm_id):
        if alarm_id in self.fail_disarm_ids:
            raise BackendError("disarm rejected", alarm_id)
        self.armed.pop(alarm_id, None)
        self.disarm_calls.append(alarm_id)

    def request_exact_permission(self):
        self.permission_requests += 1

    def fire(self, alarm_id: int) -> None:
        """Deliver the armed wake-up for ``alarm_id`` (one-shot)."""
        wake = self.armed.pop(alarm_id)
        self.deliver(wake.payload)

    def restart(self) -> None:
        """Forget every wake-up, as a process restart does."""
        self.armed.clear()


@pytest.fixture
def store():
    return InMemoryRecordStore()


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def display():
    return InMemoryDisplay()


@pytest.fixture
def scheduler(store, backend):
    return AlarmScheduler(store, backend, tz=UTC)


@pytest.fixture
def runtime(store, backend, display):
    return build_runtime(store=store, backend=backend, display=display)
