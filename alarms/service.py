"""Caller-facing reminder operations.

Validates requests, forwards them to the scheduler and reports plain
``{"success": ...}`` results. Invalid requests raise ``InvalidReminderError``
before anything is armed or stored.
"""

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from logger import logger
from . import ids
from .errors import InvalidReminderError
from .models import from_epoch_millis
from .scheduler import AlarmScheduler


# Request models


class DailyReminderRequest(BaseModel):
    """Request to schedule a reminder every day at hour:minute."""

    reminder_id: int = Field(..., ge=1, le=ids.MAX_BASE_ID, strict=True, description="Base reminder id")
    title: str = Field(..., min_length=1)
    body: str = Field("", description="Notification body")
    category: str = Field(..., min_length=1, description="e.g. 'medication', 'exercise', 'custom'")
    hour: int = Field(..., ge=0, le=23, strict=True)
    minute: int = Field(..., ge=0, le=59, strict=True)
    is_alarm: bool = Field(False, description="Loud, insistent, full-screen delivery")

    @field_validator("body", mode="before")
    @classmethod
    def _none_body(cls, value):
        return "" if value is None else value


class OneTimeReminderRequest(BaseModel):
    """Request to schedule a reminder once at an absolute instant."""

    reminder_id: int = Field(..., ge=1, le=ids.MAX_BASE_ID, strict=True, description="Base reminder id")
    title: str = Field(..., min_length=1)
    body: str = Field("", description="Notification body")
    category: str = Field(..., min_length=1)
    trigger_at: datetime = Field(..., description="Datetime or epoch milliseconds")
    wake_screen: bool = False
    is_alarm: bool = False

    @field_validator("body", mode="before")
    @classmethod
    def _none_body(cls, value):
        return "" if value is None else value

    @field_validator("trigger_at", mode="before")
    @classmethod
    def _epoch_millis(cls, value):
        if isinstance(value, bool):
            raise ValueError("trigger_at must be a datetime or epoch milliseconds")
        if isinstance(value, (int, float)):
            return from_epoch_millis(int(value))
        return value


def parse_time_of_day(value: str) -> tuple[int, int]:
    """Parse "HH:MM" into ``(hour, minute)``.

    Raises:
        InvalidReminderError: If the string is not a valid time of day
    """
    try:
        hour_text, minute_text = value.strip().split(":")
        hour, minute = int(hour_text), int(minute_text)
    except (AttributeError, ValueError):
        raise InvalidReminderError(f"Invalid time {value!r}, expected HH:MM", field="time")
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise InvalidReminderError(f"Invalid time {value!r}, expected HH:MM", field="time")
    return hour, minute


def _validate(model: type[BaseModel], **fields) -> BaseModel:
    try:
        return model(**fields)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or None
        message = f"Missing or invalid parameter {field}: {first.get('msg')}"
        logger.warning(f"Rejected reminder request: {message}")
        raise InvalidReminderError(message, field=field) from e


class ReminderService:
    """Operations exposed to the application layer."""

    def __init__(self, scheduler: AlarmScheduler):
        self.scheduler = scheduler

    def schedule_daily_reminder(
        self,
        reminder_id: int,
        title: str,
        body: Optional[str],
        category: str,
        hour: Optional[int] = None,
        minute: Optional[int] = None,
        is_alarm: bool = False,
        time: Optional[str] = None,
    ) -> dict[str, Any]:
        """Schedule a daily reminder, given ``hour``/``minute`` or ``time="HH:MM"``.

        Passing both forms is rejected.
        """
        if time is not None:
            if hour is not None or minute is not None:
                raise InvalidReminderError("Give either time or hour/minute, not both", field="time")
            hour, minute = parse_time_of_day(time)

        request = _validate(
            DailyReminderRequest,
            reminder_id=reminder_id,
            title=title,
            body=body,
            category=category,
            hour=hour,
            minute=minute,
            is_alarm=is_alarm,
        )

        success = self.scheduler.schedule_daily(
            request.reminder_id,
            request.title,
            request.body,
            request.category,
            request.hour,
            request.minute,
            is_alarm=request.is_alarm,
        )
        return self._result(success, request.reminder_id)

    def schedule_one_time_reminder(
        self,
        reminder_id: int,
        title: str,
        body: Optional[str],
        category: str,
        trigger_at: Union[datetime, int],
        wake_screen: bool = False,
        is_alarm: bool = False,
    ) -> dict[str, Any]:
        """Schedule a one-shot reminder at ``trigger_at`` (datetime or epoch ms)."""
        request = _validate(
            OneTimeReminderRequest,
            reminder_id=reminder_id,
            title=title,
            body=body,
            category=category,
            trigger_at=trigger_at,
            wake_screen=wake_screen,
            is_alarm=is_alarm,
        )

        success = self.scheduler.schedule_one_time(
            request.reminder_id,
            request.title,
            request.body,
            request.category,
            request.trigger_at,
            wake_screen=request.wake_screen,
            is_alarm=request.is_alarm,
        )
        return self._result(success, request.reminder_id)

    def cancel_reminder(self, reminder_id: int) -> dict[str, Any]:
        # Snoozed copies (derived ids) are cancellable too, so only positivity is checked
        if not isinstance(reminder_id, int) or isinstance(reminder_id, bool) or reminder_id <= 0:
            raise InvalidReminderError("Invalid reminder ID", field="reminder_id")

        if self.scheduler.cancel(reminder_id):
            return {"success": True}
        return {"success": False, "error": f"Failed to cancel reminder {reminder_id}"}

    def cancel_all_reminders(self) -> dict[str, Any]:
        if self.scheduler.cancel_all():
            return {"success": True}
        return {"success": False, "error": "Some reminders could not be cancelled"}

    def check_exact_scheduling_permission(self) -> bool:
        return self.scheduler.can_schedule_exact()

    def request_exact_scheduling_permission(self) -> None:
        """Fire-and-forget; poll ``check_exact_scheduling_permission`` later."""
        self.scheduler.backend.request_exact_permission()

    def list_reminders(self) -> list[dict[str, Any]]:
        """Stored reminders in persisted layout, with their next instant."""
        reminders = []
        for record in self.scheduler.list_records():
            entry = record.to_dict()
            if record.is_daily:
                entry["next"] = self.scheduler.next_daily_occurrence(record.hour, record.minute).isoformat()
            elif record.trigger_datetime is not None:
                entry["next"] = record.trigger_datetime.isoformat()
            reminders.append(entry)
        return reminders

    @staticmethod
    def _result(success: bool, reminder_id: int) -> dict[str, Any]:
        if success:
            return {"success": True, "reminder_id": reminder_id}
        return {"success": False, "reminder_id": reminder_id, "error": "Failed to schedule alarm"}
