from __future__ import annotations
import time
from dataclasses import dataclass
from typing import Callable, Optional

from .settings import settings


@dataclass(frozen=True)
class Notification:
    message: str
    posted_at: float
    expires_at: float


class NotificationCenter:
    """Single transient error banner; a newer message replaces the current one."""

    def __init__(self, lifetime: Optional[float] = None, clock: Callable[[], float] = time.monotonic) -> None:
        self.lifetime = settings.notification_seconds if lifetime is None else lifetime
        self.clock = clock
        self._current: Optional[Notification] = None

    def post(self, message: str) -> Notification:
        now = self.clock()
        self._current = Notification(message=message, posted_at=now, expires_at=now + self.lifetime)
        return self._current

    def current(self) -> Optional[Notification]:
        if self._current is not None and self.clock() >= self._current.expires_at:
            self._current = None
        return self._current

    def dismiss(self) -> None:
        self._current = None
