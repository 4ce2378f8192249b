"""Notification display sinks.

A display shows a notification under an integer id and withdraws it again.
Showing twice under one id must overwrite, never stack: duplicate fires
after a restart race rely on that.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx

import config
from logger import logger
from .ids import ActionKind


@dataclass(frozen=True)
class Channel:
    """Delivery channel a notification is posted on."""
    id: str
    name: str
    sound: str            # "alarm" or "notification"
    insistent: bool       # repeat sound until the user acts
    full_screen: bool     # may take over the screen


ALARM_CHANNEL = Channel(
    id="reminders_alarm",
    name="Reminders (Alarm)",
    sound="alarm",
    insistent=True,
    full_screen=True,
)

REMINDER_CHANNEL = Channel(
    id="reminders",
    name="Reminders",
    sound="notification",
    insistent=False,
    full_screen=False,
)


def channel_for(is_alarm: bool) -> Channel:
    return ALARM_CHANNEL if is_alarm else REMINDER_CHANNEL


@dataclass
class NotificationAction:
    """A button on a notification; ``request_id`` comes from the id namespace."""
    kind: ActionKind
    label: str
    request_id: int
    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "label": self.label,
            "request_id": self.request_id,
            "payload": self.payload,
        }


@dataclass
class Notification:
    """What is currently shown under one id."""
    id: int
    channel: Channel
    title: str
    body: str
    actions: list[NotificationAction]
    full_screen: bool


class NotificationDisplay(ABC):
    """Where delivered reminders are shown."""

    @abstractmethod
    def show(
        self,
        notification_id: int,
        channel: Channel,
        title: str,
        body: str,
        actions: list[NotificationAction],
        full_screen: bool = False,
    ) -> None:
        """Show (or overwrite) the notification ``notification_id``."""

    @abstractmethod
    def dismiss(self, notification_id: int) -> None:
        """Withdraw ``notification_id``; unknown ids are ignored."""


class InMemoryDisplay(NotificationDisplay):
    """Keeps shown notifications in a dict keyed by id.

    ``history`` records every ``show`` call, so tests can tell an overwrite
    from a notification that was never re-shown.
    """

    def __init__(self):
        self.shown: dict[int, Notification] = {}
        self.history: list[Notification] = []
        self.dismissed: list[int] = []

    def show(self, notification_id, channel, title, body, actions, full_screen=False):
        notification = Notification(
            id=notification_id,
            channel=channel,
            title=title,
            body=body,
            actions=list(actions),
            full_screen=full_screen,
        )
        self.shown[notification_id] = notification
        self.history.append(notification)

    def dismiss(self, notification_id):
        self.shown.pop(notification_id, None)
        self.dismissed.append(notification_id)


class WebhookDisplay(NotificationDisplay):
    """Pushes notifications to an HTTP sink.

    ``PUT {base_url}/notifications/{id}`` shows (idempotent per id, so a
    repeat overwrites) and ``DELETE`` on the same URL withdraws.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: float = 10,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = (base_url or config.NOTIFY_WEBHOOK_URL or "").rstrip("/")
        if not self.base_url:
            raise ValueError("WebhookDisplay needs a base URL (NOTIFY_WEBHOOK_URL)")
        self.token = token if token is not None else config.NOTIFY_WEBHOOK_TOKEN
        self._client = client or httpx.Client(timeout=timeout)

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _url(self, notification_id: int) -> str:
        return f"{self.base_url}/notifications/{notification_id}"

    def show(self, notification_id, channel, title, body, actions, full_screen=False):
        response = self._client.put(
            self._url(notification_id),
            headers=self._headers(),
            json={
                "id": notification_id,
                "channel": channel.id,
                "sound": channel.sound,
                "insistent": channel.insistent,
                "title": title,
                "body": body,
                "actions": [a.to_dict() for a in actions],
                "full_screen": full_screen,
            },
        )
        response.raise_for_status()
        logger.debug(f"Posted notification {notification_id} to webhook")

    def dismiss(self, notification_id):
        response = self._client.delete(self._url(notification_id), headers=self._headers())
        # Already gone is fine
        if response.status_code == 404:
            return
        response.raise_for_status()

    def close(self) -> None:
        self._client.close()
