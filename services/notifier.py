from dataclasses import dataclass
from typing import Callable

import structlog

from utils.constants import NOTIFICATION_KINDS

log = structlog.get_logger(__name__)


@dataclass
class Notification:
    kind: str       # 'saved' | 'error' | 'info'
    message: str


class Notifier:
    """Advisory messages for toast display. Listeners never affect control flow."""

    def __init__(self):
        self._listeners: list[Callable[[Notification], None]] = []
        self.history: list[Notification] = []

    def subscribe(self, listener: Callable[[Notification], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def notify(self, kind: str, message: str) -> Notification:
        if kind not in NOTIFICATION_KINDS:
            raise ValueError(f"Invalid notification kind: {kind}")
        note = Notification(kind, message)
        self.history.append(note)
        log.info("notification", kind=kind, message=message)
        for listener in list(self._listeners):
            try:
                listener(note)
            except Exception:
                log.exception("notification_listener_failed", kind=kind)
        return note

    @property
    def last(self) -> Notification | None:
        return self.history[-1] if self.history else None
