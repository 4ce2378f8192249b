"""Persistent reminder alarms.

Daily and one-time reminders armed on a volatile one-shot trigger backend
(APScheduler), with a SQLite-backed record store as the source of truth for
recovery after restarts.
"""

from .models import AlarmRecord, Recurrence
from .errors import (
    AlarmError,
    InvalidReminderError,
    ExactAlarmPermissionError,
    PersistenceError,
    BackendError,
)
from .store import RecordStore, InMemoryRecordStore, SqliteRecordStore
from .backend import TriggerBackend, APSchedulerBackend
from .display import (
    NotificationDisplay,
    InMemoryDisplay,
    WebhookDisplay,
    ALARM_CHANNEL,
    REMINDER_CHANNEL,
)
from .scheduler import AlarmScheduler
from .receivers import FireHandler, SnoozeHandler, DismissHandler
from .service import ReminderService
from .runtime import AlarmRuntime, build_runtime

__all__ = [
    "AlarmRecord",
    "Recurrence",
    "AlarmError",
    "InvalidReminderError",
    "ExactAlarmPermissionError",
    "PersistenceError",
    "BackendError",
    "RecordStore",
    "InMemoryRecordStore",
    "SqliteRecordStore",
    "TriggerBackend",
    "APSchedulerBackend",
    "NotificationDisplay",
    "InMemoryDisplay",
    "WebhookDisplay",
    "ALARM_CHANNEL",
    "REMINDER_CHANNEL",
    "AlarmScheduler",
    "FireHandler",
    "SnoozeHandler",
    "DismissHandler",
    "ReminderService",
    "AlarmRuntime",
    "build_runtime",
]
