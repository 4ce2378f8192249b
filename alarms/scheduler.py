"""Schedule, cancel and restore reminder alarms.

Keeps the volatile trigger backend and the durable record store consistent:

- schedule: arm the backend first, then persist
- cancel: disarm first, then remove the record
- restart: rebuild every daily arm from the store; one-time arms are gone

A crash between the two steps heals on the next restore: a persisted but
unarmed record is re-armed, an armed but unpersisted one fires once at most.

Each arm+persist (or disarm+remove) pair runs under one scheduler lock, so a
daily fire re-arming itself cannot interleave with a cancel of the same id.
"""

import threading
from datetime import datetime, time, timedelta
from typing import Optional
from zoneinfo import ZoneInfo

import config
from logger import logger
from utils import sanitize_for_log
from .backend import TriggerBackend
from .errors import ExactAlarmPermissionError, PersistenceError
from .models import AlarmRecord, Recurrence, to_epoch_millis
from .store import RecordStore


class AlarmScheduler:
    """Orchestrates the record store and the trigger backend."""

    def __init__(self, store: RecordStore, backend: TriggerBackend, tz: Optional[ZoneInfo] = None):
        self.store = store
        self.backend = backend
        self.tz = tz or config.ALARM_TIMEZONE
        self._lock = threading.RLock()

    # Time arithmetic

    def next_daily_occurrence(self, hour: int, minute: int, now: Optional[datetime] = None) -> datetime:
        """Next wall-clock ``hour:minute`` strictly after ``now``.

        Seconds are zeroed; if today's instant is not in the future the
        result is tomorrow's.
        """
        now = (now or datetime.now(self.tz)).astimezone(self.tz)
        at = time(hour, minute)
        candidate = datetime.combine(now.date(), at, tzinfo=self.tz)
        if candidate <= now:
            candidate = datetime.combine(now.date() + timedelta(days=1), at, tzinfo=self.tz)
        return candidate

    # Queries

    def can_schedule_exact(self) -> bool:
        return self.backend.can_schedule_exact()

    def get(self, alarm_id: int) -> Optional[AlarmRecord]:
        return self.store.get(alarm_id)

    def list_records(self) -> list[AlarmRecord]:
        return self.store.load()

    # Scheduling

    def schedule_daily(
        self,
        alarm_id: int,
        title: str,
        body: str,
        category: str,
        hour: int,
        minute: int,
        is_alarm: bool = False,
    ) -> bool:
        """Arm a daily reminder and persist it.

        Without exact permission the reminder is armed best-effort rather
        than refused.

        Returns:
            True if armed and persisted
        """
        record = AlarmRecord(
            id=alarm_id,
            title=title,
            body=body or "",
            category=category,
            recurrence=Recurrence.DAILY,
            hour=hour,
            minute=minute,
            is_alarm=is_alarm,
            wake_screen=is_alarm,
        )

        with self._lock:
            try:
                run_at = self._arm_daily(record)
            except Exception as e:
                logger.error(f"Error scheduling daily alarm {alarm_id}: {e}")
                return False

            if not self._persist(record):
                return False

        logger.info(
            f"Scheduled daily alarm {alarm_id} '{sanitize_for_log(title)}' at "
            f"{hour:02d}:{minute:02d} (next {run_at.isoformat()}, alarm={is_alarm})"
        )
        return True

    def schedule_one_time(
        self,
        alarm_id: int,
        title: str,
        body: str,
        category: str,
        trigger_at: datetime,
        wake_screen: bool = False,
        is_alarm: bool = False,
    ) -> bool:
        """Arm a one-shot reminder at ``trigger_at`` and persist it.

        Needs exact permission: without it nothing is armed or stored.
        Naive datetimes are read in the scheduler's time zone.

        Returns:
            True if armed and persisted
        """
        if trigger_at.tzinfo is None:
            trigger_at = trigger_at.replace(tzinfo=self.tz)

        if not self.backend.can_schedule_exact():
            logger.warning(f"Cannot schedule one-time alarm {alarm_id} - exact alarm permission not granted")
            return False

        record = AlarmRecord(
            id=alarm_id,
            title=title,
            body=body or "",
            category=category,
            recurrence=Recurrence.ONE_TIME,
            is_alarm=is_alarm,
            wake_screen=wake_screen or is_alarm,
            trigger_at=to_epoch_millis(trigger_at),
        )

        with self._lock:
            try:
                self.backend.arm(alarm_id, trigger_at, record.to_dict(), exact=True)
            except ExactAlarmPermissionError:
                logger.warning(f"Exact alarm permission revoked while scheduling {alarm_id}")
                return False
            except Exception as e:
                logger.error(f"Error scheduling one-time alarm {alarm_id}: {e}")
                return False

            if not self._persist(record):
                return False

        logger.info(
            f"Scheduled one-time alarm {alarm_id} '{sanitize_for_log(title)}' at {trigger_at.isoformat()}"
        )
        return True

    def rearm_daily(self, alarm_id: int) -> bool:
        """Arm the next occurrence of a stored daily reminder after it fired.

        Parameters come from the store, not from the fired payload. A record
        cancelled (or replaced by a one-time reminder) in the meantime is not
        re-armed.
        """
        with self._lock:
            record = self.store.get(alarm_id)
            if record is None:
                logger.info(f"Daily alarm {alarm_id} was cancelled, not re-arming")
                return False
            if not record.is_daily:
                logger.info(f"Alarm {alarm_id} is no longer daily, not re-arming")
                return False

            try:
                run_at = self._arm_daily(record)
            except Exception as e:
                logger.error(f"Error re-arming daily alarm {alarm_id}: {e}")
                return False

        logger.info(f"Re-armed daily alarm {alarm_id} for {run_at.isoformat()}")
        return True

    # Cancellation

    def cancel(self, alarm_id: int) -> bool:
        """Disarm and forget ``alarm_id``. Unknown ids are a no-op success."""
        with self._lock:
            try:
                self.backend.disarm(alarm_id)
            except Exception as e:
                logger.error(f"Error cancelling alarm {alarm_id}: {e}")
                return False

            try:
                removed = self.store.remove(alarm_id)
            except PersistenceError:
                return False

        if removed:
            logger.info(f"Cancelled alarm {alarm_id}")
        else:
            logger.debug(f"Cancel for unknown alarm {alarm_id} - nothing stored")
        return True

    def cancel_all(self) -> bool:
        """Cancel every stored alarm, then clear the store.

        One failing id does not stop the others.

        Returns:
            True if every cancellation and the final clear succeeded
        """
        ok = True
        with self._lock:
            records = self.store.load()
            for record in records:
                if not self.cancel(record.id):
                    ok = False

            try:
                self.store.clear()
            except PersistenceError:
                ok = False

        logger.info(f"Cancelled all alarms ({len(records)} stored, ok={ok})")
        return ok

    # Recovery

    def restore_after_restart(self) -> int:
        """Re-arm every stored daily alarm after a process or host restart.

        One-time alarms are not re-armed: their wake-up died with the old
        process and they stay dropped, left in the store until the next
        cancel or overwrite of their id.

        Returns:
            Count of daily alarms re-armed
        """
        with self._lock:
            records = self.store.load()
            rearmed = 0
            skipped = 0
            failed = 0

            for record in records:
                if not record.is_daily:
                    skipped += 1
                    continue
                try:
                    self._arm_daily(record)
                    rearmed += 1
                except Exception as e:
                    logger.error(f"Failed to restore daily alarm {record.id}: {e}")
                    failed += 1

        logger.info(
            f"Restored {rearmed} daily alarms after restart "
            f"(dropped {skipped} one-time, {failed} failed)"
        )
        return rearmed

    # Internals

    def _arm_daily(self, record: AlarmRecord) -> datetime:
        """Arm the next occurrence of a daily record, best-effort if needed."""
        run_at = self.next_daily_occurrence(record.hour, record.minute)
        exact = self.backend.can_schedule_exact()
        if not exact:
            logger.warning(f"Cannot schedule exact alarms - arming daily alarm {record.id} inexact")

        try:
            self.backend.arm(record.id, run_at, record.to_dict(), exact=exact)
        except ExactAlarmPermissionError:
            # Permission dropped between the check and the arm
            logger.warning(f"Exact alarm permission revoked - arming daily alarm {record.id} inexact")
            self.backend.arm(record.id, run_at, record.to_dict(), exact=False)
        return run_at

    def _persist(self, record: AlarmRecord) -> bool:
        # The arm is not rolled back; the next restore reconciles
        try:
            self.store.upsert(record)
            return True
        except PersistenceError:
            logger.error(f"Alarm {record.id} is armed but could not be saved")
            return False
