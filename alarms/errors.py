"""Exceptions raised inside the alarm subsystem.

Components raise these; the scheduler and service seams catch them, log,
and report a failure result to the caller.
"""


class AlarmError(Exception):
    """Base class for alarm subsystem errors."""


class InvalidReminderError(AlarmError):
    """A caller request is missing a field or carries a malformed one.

    Raised before anything is armed or persisted.
    """

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ExactAlarmPermissionError(AlarmError):
    """The host does not currently allow exact wake-ups."""


class PersistenceError(AlarmError):
    """The record store could not be written."""


class BackendError(AlarmError):
    """The trigger backend rejected an arm or disarm."""

    def __init__(self, message: str, alarm_id: int | None = None):
        super().__init__(message)
        self.alarm_id = alarm_id
