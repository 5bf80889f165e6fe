"""Error taxonomy for ordered-collection reordering.

Engine and store errors are raised synchronously, before any network call is
issued. ``SyncError`` is the only error produced across the gateway boundary.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


class OrderingError(Exception):
    """Base class for all reordering errors."""


class InvalidMoveError(OrderingError):
    """A move instruction references an id outside the collection.

    Usually signals a stale drag event rather than a real failure; sessions
    log and ignore it.
    """

    def __init__(self, message: str, *, moved_id: Any = None, target_id: Any = None) -> None:
        super().__init__(message)
        self.moved_id = moved_id
        self.target_id = target_id


class UnknownIdError(OrderingError):
    """An explicit order does not match the collection's current membership."""

    def __init__(self, message: str, *, ids: Optional[Iterable[Any]] = None) -> None:
        super().__init__(message)
        self.ids = list(ids or [])


class SyncError(OrderingError):
    """The sync backend rejected a call or could not be reached."""

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
        collection_id: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.collection_id = collection_id

    def __str__(self) -> str:
        base = super().__str__()
        if self.status_code is not None:
            return f"{base} (status={self.status_code})"
        return base


__all__ = ["OrderingError", "InvalidMoveError", "UnknownIdError", "SyncError"]
