"""Handlers for fired alarms and for actions on delivered notifications."""

from datetime import datetime, timedelta
from typing import Any, Optional

import config
from logger import logger
from . import ids
from .display import NotificationAction, NotificationDisplay, channel_for
from .ids import ActionKind
from .models import AlarmRecord
from .scheduler import AlarmScheduler


class FireHandler:
    """Runs when the trigger backend delivers a wake-up.

    The backend only knows one-shot wake-ups, so daily recurrence is rebuilt
    here: every daily fire arms the next day's occurrence.
    """

    def __init__(self, scheduler: AlarmScheduler, display: NotificationDisplay):
        self.scheduler = scheduler
        self.display = display

    def on_fire(self, payload: dict[str, Any]) -> None:
        """Show the notification, then re-arm (daily) or consume (one-time).

        Args:
            payload: The fired record in persisted layout
        """
        try:
            record = AlarmRecord.from_dict(payload)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Dropping malformed alarm payload {payload!r}: {e}")
            return

        logger.info(f"Alarm {record.id} fired (daily={record.is_daily}, alarm={record.is_alarm})")

        # Re-arm or consume runs even when the display fails
        try:
            self._show(record)
        except Exception as e:
            logger.error(f"Failed to show notification {record.id}: {e}")

        if record.is_daily:
            self.scheduler.rearm_daily(record.id)
        else:
            try:
                self.scheduler.store.consume(record.id, record.trigger_at)
            except Exception as e:
                logger.error(f"Failed to consume one-time alarm {record.id}: {e}")

    def _show(self, record: AlarmRecord) -> None:
        full_screen = record.wake_screen or record.is_alarm
        self.display.show(
            record.id,
            channel_for(record.is_alarm),
            record.title,
            record.body,
            build_actions(record, full_screen),
            full_screen=full_screen,
        )


def build_actions(record: AlarmRecord, full_screen: bool) -> list[NotificationAction]:
    """Snooze and dismiss buttons, plus the wake target for full-screen ones."""
    snooze_payload = {
        "id": record.id,
        "title": record.title,
        "body": record.body,
        "category": record.category,
        "isAlarm": record.is_alarm,
    }
    actions = [
        NotificationAction(
            kind=ActionKind.SNOOZE,
            label=f"Snooze {config.SNOOZE_MINUTES} min",
            request_id=ids.snooze_action_id(record.id),
            payload=snooze_payload,
        ),
        NotificationAction(
            kind=ActionKind.DISMISS,
            label="Dismiss",
            request_id=ids.dismiss_action_id(record.id),
            payload={"id": record.id},
        ),
    ]
    if full_screen:
        actions.append(NotificationAction(
            kind=ActionKind.WAKE,
            label="Open",
            request_id=ids.wake_action_id(record.id),
            payload={"id": record.id},
        ))
    return actions


class SnoozeHandler:
    """Withdraws a notification and schedules it again a few minutes later."""

    def __init__(
        self,
        scheduler: AlarmScheduler,
        display: NotificationDisplay,
        snooze_minutes: Optional[int] = None,
    ):
        self.scheduler = scheduler
        self.display = display
        self.snooze_minutes = snooze_minutes if snooze_minutes is not None else config.SNOOZE_MINUTES

    def on_snooze(
        self,
        reminder_id: int,
        title: str,
        body: str,
        category: str,
        is_alarm: bool = False,
    ) -> bool:
        """Snooze the notification ``reminder_id``.

        The snoozed copy is a one-time reminder under a derived id; a daily
        record for ``reminder_id`` keeps its own schedule.

        Returns:
            True if the snoozed copy was scheduled
        """
        try:
            self.display.dismiss(reminder_id)
        except Exception as e:
            logger.warning(f"Failed to withdraw notification {reminder_id}: {e}")

        target = ids.snooze_target(reminder_id)
        trigger_at = datetime.now(self.scheduler.tz) + timedelta(minutes=self.snooze_minutes)

        ok = self.scheduler.schedule_one_time(
            target,
            title,
            body,
            category,
            trigger_at,
            wake_screen=is_alarm,
            is_alarm=is_alarm,
        )
        if ok:
            logger.info(f"Snoozed {reminder_id} for {self.snooze_minutes} min as {target}")
        else:
            logger.error(f"Failed to snooze {reminder_id}")
        return ok


class DismissHandler:
    """Withdraws a delivered notification; schedules are left alone."""

    def __init__(self, display: NotificationDisplay):
        self.display = display

    def on_dismiss(self, reminder_id: int) -> bool:
        try:
            self.display.dismiss(reminder_id)
        except Exception as e:
            logger.error(f"Failed to dismiss notification {reminder_id}: {e}")
            return False
        logger.info(f"Notification dismissed: {reminder_id}")
        return True
