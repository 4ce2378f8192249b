"""Derived id namespace for notification actions and snoozed instances.

Every reminder has a caller-chosen base id. Follow-up objects get ids from a
fixed offset table so they never collide with a base id or with each other:

    =====================  ======
    kind                   offset
    =====================  ======
    snooze action          +10000
    dismiss action         +20000
    full-screen wake       +30000
    snoozed instance       +50000
    =====================  ======

The table only stays disjoint while base ids lie in ``1..MAX_BASE_ID``.
Callers scheduling reminders must keep to that range; ``is_base_id`` checks it.
"""

from enum import Enum

ID_BLOCK = 10000
MAX_BASE_ID = ID_BLOCK - 1


class ActionKind(str, Enum):
    """User actions attached to a delivered notification."""
    SNOOZE = "snooze"
    DISMISS = "dismiss"
    WAKE = "wake"


ACTION_OFFSETS = {
    ActionKind.SNOOZE: 10000,
    ActionKind.DISMISS: 20000,
    ActionKind.WAKE: 30000,
}

SNOOZED_OFFSET = 50000


def is_base_id(value: int) -> bool:
    """True if ``value`` can be used as a base reminder id."""
    return isinstance(value, int) and not isinstance(value, bool) and 1 <= value <= MAX_BASE_ID


def action_id(base_id: int, kind: ActionKind) -> int:
    """Request id of the ``kind`` action on the notification for ``base_id``."""
    return base_id + ACTION_OFFSETS[kind]


def snooze_action_id(base_id: int) -> int:
    return action_id(base_id, ActionKind.SNOOZE)


def dismiss_action_id(base_id: int) -> int:
    return action_id(base_id, ActionKind.DISMISS)


def wake_action_id(base_id: int) -> int:
    return action_id(base_id, ActionKind.WAKE)


def snoozed_id(base_id: int) -> int:
    """Id of the one-shot reminder created by snoozing ``base_id``."""
    return base_id + SNOOZED_OFFSET


def is_snoozed_id(value: int) -> bool:
    return SNOOZED_OFFSET < value <= SNOOZED_OFFSET + MAX_BASE_ID


def base_of_snoozed(value: int) -> int:
    """Inverse of ``snoozed_id``.

    Raises:
        ValueError: If ``value`` is not a snoozed-instance id
    """
    if not is_snoozed_id(value):
        raise ValueError(f"{value} is not a snoozed reminder id")
    return value - SNOOZED_OFFSET


def snooze_target(notification_id: int) -> int:
    """Id to schedule when the notification ``notification_id`` is snoozed.

    Snoozing an already-snoozed instance reuses its id, so repeated snoozes
    replace one record instead of walking out of the namespace.
    """
    if is_snoozed_id(notification_id):
        return notification_id
    return snoozed_id(notification_id)


def resolve_action(request_id: int) -> tuple[ActionKind, int]:
    """Map an action request id back to ``(kind, notification_id)``.

    Only resolves actions on base-range notifications; the snoozed instance
    of a reminder is itself a notification, and its actions are offset from
    the snoozed id.

    Raises:
        ValueError: If ``request_id`` is not in any action block
    """
    for kind, offset in ACTION_OFFSETS.items():
        candidate = request_id - offset
        if is_base_id(candidate):
            return kind, candidate
        if is_snoozed_id(candidate):
            return kind, candidate
    raise ValueError(f"{request_id} is not a notification action id")
