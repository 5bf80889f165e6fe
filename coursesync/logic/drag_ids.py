"""Namespaced drag identifiers.

Sortable containers share one drag context, so each draggable carries a token
of the form ``<kind>-<id>`` (``module-12``, ``question-5``). Lesson ids are only
unique inside their module, so lesson tokens also carry the module:
``lesson-<module_id>-<lesson_id>``. The module id in a scoped token must not
contain ``-``; item ids may.

Decoding keeps ids as text. ``resolve`` maps that text back onto the ids a
collection actually holds, so ``"7"`` matches ``7`` and ``"007"`` stays a
string.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from coursesync.logic.errors import InvalidMoveError
from coursesync.models.ordered import ItemId
from coursesync.models.resource_kind import ResourceKind

# Kinds whose ids are scoped to a parent collection
SCOPED_KINDS = (ResourceKind.LESSON,)


@dataclass(frozen=True)
class DragToken:
    kind: str
    item: str
    parent: Optional[str] = None


def encode(kind: str, item_id: ItemId, parent_id: Optional[ItemId] = None) -> str:
    if kind in SCOPED_KINDS:
        if parent_id is None:
            raise InvalidMoveError(f"{kind} drag ids need a parent id", moved_id=item_id)
        return f"{kind}-{parent_id}-{item_id}"
    return f"{kind}-{item_id}"


def decode(token: str) -> DragToken:
    kind, sep, rest = str(token).partition("-")
    if not sep or kind not in ResourceKind.ALL or rest == "":
        raise InvalidMoveError(f"unrecognised drag id {token!r}")
    if kind not in SCOPED_KINDS:
        return DragToken(kind=kind, item=rest)
    parent, sep, item = rest.partition("-")
    if not sep or parent == "" or item == "":
        raise InvalidMoveError(f"unrecognised drag id {token!r}")
    return DragToken(kind=kind, item=item, parent=parent)


def resolve(raw: Optional[str], ids: Iterable[ItemId]) -> Optional[ItemId]:
    """Return the id in ``ids`` whose text form is ``raw``, or None."""
    if raw is None:
        return None
    for candidate in ids:
        if str(candidate) == raw:
            return candidate
    return None


__all__ = ["SCOPED_KINDS", "DragToken", "encode", "decode", "resolve"]
