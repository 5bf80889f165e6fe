"""Transient user notifications (toasts).

Sessions publish short-lived messages here instead of failing the view. In this
minimal implementation notifications are logged and buffered in memory so the
host UI (or a test) can drain them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional
import logging
import time

logger = logging.getLogger(__name__)

LEVEL_ERROR = "error"
LEVEL_SUCCESS = "success"
LEVEL_INFO = "info"


@dataclass(frozen=True)
class Notification:
    level: str
    message: str
    collection_id: Any = None
    created_at: float = field(default_factory=time.monotonic)


class Notifier:
    def __init__(self, ttl_seconds: float = 4.0) -> None:
        self.ttl_seconds = ttl_seconds
        self._buffer: List[Notification] = []

    def publish(self, level: str, message: str, collection_id: Any = None) -> Notification:
        note = Notification(level=level, message=message, collection_id=collection_id)
        logger.info("notification_publish level=%s collection_id=%s message=%s", level, collection_id, message)
        self._buffer.append(note)
        return note

    def error(self, message: str, collection_id: Any = None) -> Notification:
        return self.publish(LEVEL_ERROR, message, collection_id)

    def active(self, now: Optional[float] = None) -> List[Notification]:
        """Return notifications younger than the TTL, dropping expired ones."""
        now = time.monotonic() if now is None else now
        self._buffer = [n for n in self._buffer if now - n.created_at < self.ttl_seconds]
        return list(self._buffer)

    def drain(self) -> List[Notification]:
        notes = list(self._buffer)
        self._buffer.clear()
        return notes


__all__ = [
    "LEVEL_ERROR",
    "LEVEL_SUCCESS",
    "LEVEL_INFO",
    "Notification",
    "Notifier",
]
