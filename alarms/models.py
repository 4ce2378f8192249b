"""Type definitions for persisted reminder alarms."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional


class Recurrence(str, Enum):
    """How often a reminder fires."""
    DAILY = "daily"         # Every day at hour:minute, re-armed after each fire
    ONE_TIME = "one_time"   # Once, at an absolute instant


@dataclass
class AlarmRecord:
    """One scheduled reminder, as kept in the record store.

    ``hour``/``minute`` only mean something for DAILY records; ONE_TIME
    records carry their instant in ``trigger_at`` (epoch milliseconds).
    """
    id: int
    title: str
    category: str
    recurrence: Recurrence
    body: str = ""
    hour: int = 0
    minute: int = 0
    is_alarm: bool = False
    wake_screen: bool = False
    trigger_at: Optional[int] = None

    def __post_init__(self):
        # Alarm-grade reminders always take over the screen
        if self.is_alarm:
            self.wake_screen = True

    @property
    def is_daily(self) -> bool:
        return self.recurrence == Recurrence.DAILY

    @property
    def trigger_datetime(self) -> Optional[datetime]:
        if self.trigger_at is None:
            return None
        return from_epoch_millis(self.trigger_at)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted layout (camelCase keys)."""
        data = {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "category": self.category,
            "hour": self.hour,
            "minute": self.minute,
            "isDaily": self.is_daily,
            "wakeScreen": self.wake_screen,
            "isAlarm": self.is_alarm,
        }
        if self.trigger_at is not None:
            data["triggerAt"] = self.trigger_at
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AlarmRecord":
        """Parse one persisted entry.

        Raises:
            KeyError, TypeError, ValueError: If the entry is malformed
        """
        is_daily = data["isDaily"]
        if not isinstance(is_daily, bool):
            raise TypeError(f"isDaily must be a bool, got {is_daily!r}")

        record_id = data["id"]
        if not isinstance(record_id, int) or isinstance(record_id, bool):
            raise TypeError(f"id must be an int, got {record_id!r}")

        trigger_at = data.get("triggerAt")
        return cls(
            id=record_id,
            title=str(data["title"]),
            body=str(data.get("body") or ""),
            category=str(data["category"]),
            recurrence=Recurrence.DAILY if is_daily else Recurrence.ONE_TIME,
            hour=int(data.get("hour", 0)),
            minute=int(data.get("minute", 0)),
            # Entries written before alarm support have no isAlarm key
            is_alarm=bool(data.get("isAlarm", False)),
            wake_screen=bool(data.get("wakeScreen", False)),
            trigger_at=int(trigger_at) if trigger_at is not None else None,
        )


def to_epoch_millis(moment: datetime) -> int:
    """Epoch milliseconds of an aware datetime (naive is taken as UTC)."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return round(moment.timestamp() * 1000)


def from_epoch_millis(millis: int) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)
