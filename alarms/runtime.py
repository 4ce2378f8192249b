"""Wire the alarm components together and route notification actions."""

from dataclasses import dataclass
from typing import Any, Optional

from apscheduler.schedulers.base import BaseScheduler

import config
from logger import logger
from . import ids
from .backend import APSchedulerBackend, TriggerBackend
from .display import InMemoryDisplay, NotificationDisplay, WebhookDisplay
from .ids import ActionKind
from .receivers import DismissHandler, FireHandler, SnoozeHandler
from .scheduler import AlarmScheduler
from .service import ReminderService
from .store import RecordStore, SqliteRecordStore


@dataclass
class AlarmRuntime:
    """Everything one process needs to schedule and deliver reminders."""
    store: RecordStore
    backend: TriggerBackend
    display: NotificationDisplay
    scheduler: AlarmScheduler
    service: ReminderService
    fire_handler: FireHandler
    snooze_handler: SnoozeHandler
    dismiss_handler: DismissHandler

    def handle_action(self, request_id: int, payload: Optional[dict[str, Any]] = None) -> bool:
        """Dispatch a tapped notification action.

        Args:
            request_id: Action request id (see ``alarms.ids``)
            payload: Data attached to the action when it was shown

        Returns:
            False if the id is unknown or the action failed
        """
        try:
            kind, notification_id = ids.resolve_action(request_id)
        except ValueError as e:
            logger.warning(f"Ignoring action: {e}")
            return False

        payload = payload or {}

        if kind == ActionKind.SNOOZE:
            return self.snooze_handler.on_snooze(
                notification_id,
                payload.get("title", ""),
                payload.get("body", ""),
                payload.get("category", "custom"),
                is_alarm=bool(payload.get("isAlarm", False)),
            )

        if kind == ActionKind.DISMISS:
            return self.dismiss_handler.on_dismiss(notification_id)

        # Wake only brings the app forward; nothing to schedule
        logger.info(f"Wake action for notification {notification_id}")
        return True


def default_display() -> NotificationDisplay:
    if config.NOTIFY_WEBHOOK_URL:
        return WebhookDisplay()
    logger.warning("NOTIFY_WEBHOOK_URL not set, notifications are kept in memory only")
    return InMemoryDisplay()


def build_runtime(
    scheduler: Optional[BaseScheduler] = None,
    store: Optional[RecordStore] = None,
    backend: Optional[TriggerBackend] = None,
    display: Optional[NotificationDisplay] = None,
) -> AlarmRuntime:
    """Build the runtime; fired wake-ups are routed to the fire handler.

    Either an APScheduler ``scheduler`` or a ready ``backend`` is required.
    """
    if backend is None:
        if scheduler is None:
            raise ValueError("build_runtime needs an APScheduler scheduler or a backend")
        backend = APSchedulerBackend(scheduler)

    store = store or SqliteRecordStore(config.ALARM_STORE_DB, config.ALARM_STORE_KEY)
    display = display or default_display()

    alarm_scheduler = AlarmScheduler(store, backend)
    fire_handler = FireHandler(alarm_scheduler, display)
    backend.set_fire_callback(fire_handler.on_fire)

    return AlarmRuntime(
        store=store,
        backend=backend,
        display=display,
        scheduler=alarm_scheduler,
        service=ReminderService(alarm_scheduler),
        fire_handler=fire_handler,
        snooze_handler=SnoozeHandler(alarm_scheduler, display),
        dismiss_handler=DismissHandler(display),
    )
