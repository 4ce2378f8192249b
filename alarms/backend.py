"""Trigger backends - one-shot wake-ups at absolute instants.

A backend only knows "wake me at T for id X" and "forget X". It keeps no
recurrence and nothing survives a restart; the scheduler rebuilds its state
from the record store.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from apscheduler.events import EVENT_JOB_MISSED, JobExecutionEvent
from apscheduler.jobstores.base import JobLookupError
from apscheduler.schedulers.base import BaseScheduler
from apscheduler.triggers.date import DateTrigger

import config
from logger import logger
from .errors import BackendError, ExactAlarmPermissionError

FireCallback = Callable[[dict[str, Any]], None]


def job_id_for(alarm_id: int) -> str:
    """APScheduler job id used for an alarm id."""
    return f"alarm:{alarm_id}"


class TriggerBackend(ABC):
    """Arms and disarms one-shot wake-ups and delivers them when due."""

    def __init__(self):
        self._fire_callback: Optional[FireCallback] = None

    def set_fire_callback(self, callback: FireCallback) -> None:
        """Register the function that receives fired payloads."""
        self._fire_callback = callback

    @abstractmethod
    def can_schedule_exact(self) -> bool:
        """Whether exact wake-ups are currently permitted."""

    @abstractmethod
    def arm(self, alarm_id: int, run_at: datetime, payload: dict[str, Any], exact: bool = True) -> None:
        """Arm (or re-arm, replacing) a wake-up for ``alarm_id``.

        Raises:
            ExactAlarmPermissionError: ``exact`` requested but not permitted
            BackendError: The wake-up could not be registered
        """

    @abstractmethod
    def disarm(self, alarm_id: int) -> None:
        """Forget the wake-up for ``alarm_id``; unknown ids are ignored.

        Raises:
            BackendError: The wake-up could not be removed
        """

    def request_exact_permission(self) -> None:
        """Ask the host for exact wake-ups. The outcome is observed later."""
        logger.info("Exact alarm permission requested")

    def deliver(self, payload: dict[str, Any]) -> None:
        """Hand a fired payload to the registered callback."""
        if self._fire_callback is None:
            logger.warning(f"Alarm {payload.get('id')} fired with no handler registered")
            return
        self._fire_callback(payload)


class APSchedulerBackend(TriggerBackend):
    """Trigger backend on top of an APScheduler scheduler.

    Each wake-up is a ``DateTrigger`` job. Exact arms get a short misfire
    grace window; inexact (best-effort) arms run however late the executor
    gets to them. An exact wake-up that APScheduler drops as missed is still
    delivered, late, from the missed-job event. The in-memory job store is
    volatile.
    """

    def __init__(
        self,
        scheduler: BaseScheduler,
        exact_permitted: Optional[bool] = None,
        misfire_grace_seconds: Optional[int] = None,
        on_permission_request: Optional[Callable[[], None]] = None,
    ):
        super().__init__()
        self.scheduler = scheduler
        self.exact_permitted = (
            config.EXACT_ALARMS_PERMITTED if exact_permitted is None else exact_permitted
        )
        self.misfire_grace_seconds = (
            config.EXACT_MISFIRE_GRACE_SECONDS if misfire_grace_seconds is None else misfire_grace_seconds
        )
        self._on_permission_request = on_permission_request
        # Payloads of armed wake-ups, for delivery after a missed run
        self._pending: dict[str, dict[str, Any]] = {}
        self.scheduler.add_listener(self._on_job_missed, EVENT_JOB_MISSED)

    def can_schedule_exact(self) -> bool:
        return self.exact_permitted

    def request_exact_permission(self) -> None:
        super().request_exact_permission()
        if self.exact_permitted:
            return
        if self._on_permission_request is None:
            logger.warning("No permission hook configured; set EXACT_ALARMS_PERMITTED on the host")
            return
        try:
            self._on_permission_request()
        except Exception as e:
            logger.error(f"Exact alarm permission request failed: {e}")

    def arm(self, alarm_id: int, run_at: datetime, payload: dict[str, Any], exact: bool = True) -> None:
        if exact and not self.exact_permitted:
            raise ExactAlarmPermissionError("Exact alarms are not permitted on this host")

        if run_at.tzinfo is None:
            run_at = run_at.replace(tzinfo=timezone.utc)
        # Instants already behind us fire straight away instead of misfiring
        now = datetime.now(timezone.utc)
        run_date = run_at if run_at > now else now

        job_id = job_id_for(alarm_id)
        try:
            self._remove_job(job_id)
            self.scheduler.add_job(
                self.deliver,
                trigger=DateTrigger(run_date=run_date),
                kwargs={"payload": payload},
                id=job_id,
                name=job_id,
                replace_existing=True,
                misfire_grace_time=self.misfire_grace_seconds if exact else None,
                coalesce=True,
            )
        except Exception as e:
            logger.error(f"Failed to arm alarm {alarm_id}: {e}")
            raise BackendError(f"Failed to arm alarm {alarm_id}: {e}", alarm_id) from e
        self._pending[job_id] = payload

        logger.debug(f"Armed {job_id} at {run_date.isoformat()} ({'exact' if exact else 'inexact'})")

    def disarm(self, alarm_id: int) -> None:
        try:
            self._remove_job(job_id_for(alarm_id))
            self._pending.pop(job_id_for(alarm_id), None)
        except Exception as e:
            logger.error(f"Failed to disarm alarm {alarm_id}: {e}")
            raise BackendError(f"Failed to disarm alarm {alarm_id}: {e}", alarm_id) from e

    def deliver(self, payload: dict[str, Any]) -> None:
        self._pending.pop(job_id_for(payload.get("id")), None)
        super().deliver(payload)

    def _on_job_missed(self, event: JobExecutionEvent) -> None:
        """Deliver a wake-up APScheduler gave up on, however late."""
        if self.scheduler.get_job(event.job_id) is not None:
            # Re-armed since; the new job carries the wake-up
            return
        payload = self._pending.pop(event.job_id, None)
        if payload is None:
            return
        logger.warning(
            f"{event.job_id} missed its run time {event.scheduled_run_time}, delivering late"
        )
        try:
            self.deliver(payload)
        except Exception as e:
            logger.error(f"Late delivery of {event.job_id} failed: {e}")

    def armed_at(self, alarm_id: int) -> Optional[datetime]:
        """Instant the wake-up for ``alarm_id`` is armed for, if any."""
        job = self.scheduler.get_job(job_id_for(alarm_id))
        if job is None:
            return None
        return job.trigger.run_date

    def _remove_job(self, job_id: str) -> None:
        try:
            self.scheduler.remove_job(job_id)
        except JobLookupError:
            pass
