from __future__ import annotations
"""Notification events emitted by the core for the caller to display."""
from dataclasses import dataclass
from enum import Enum
import logging
from typing import Callable

LOGGER = logging.getLogger(__name__)


class NotificationKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    title: str
    message: str


NotificationSink = Callable[[Notification], None]


def log_notification(notification: Notification) -> None:
    """Sink that writes notifications to the module logger."""

    level = logging.ERROR if notification.kind is NotificationKind.ERROR else logging.INFO
    LOGGER.log(level, "%s: %s", notification.title, notification.message)


class NotificationLog:
    """Collects notifications in memory so a view can drain them later."""

    def __init__(self) -> None:
        self._items: list[Notification] = []

    def __call__(self, notification: Notification) -> None:
        self._items.append(notification)

    @property
    def items(self) -> list[Notification]:
        return list(self._items)

    def drain(self) -> list[Notification]:
        items, self._items = self._items, []
        return items


def success(title: str, message: str) -> Notification:
    return Notification(NotificationKind.SUCCESS, title, message)


def error(title: str, message: str) -> Notification:
    return Notification(NotificationKind.ERROR, title, message)


def info(title: str, message: str) -> Notification:
    return Notification(NotificationKind.INFO, title, message)
