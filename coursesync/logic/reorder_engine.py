"""Array-move reordering for ordered collections.

Provides the single source of truth for how a drop gesture translates into a
new total order. Every helper here is pure: it takes a sequence of items and
returns a new tuple with dense, zero-based positions re-derived from array
order. Stored ``position`` values on the input are never trusted.

Semantics follow a standard array-move: the moved item is removed from its old
index and reinserted at the target's index, so every item strictly between the
two indices shifts by one slot. ``[A, B, C, D]`` with A moved onto C yields
``[B, C, A, D]``.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple
import logging

from coursesync.logic.errors import InvalidMoveError
from coursesync.models.ordered import ItemId, MoveInstruction, OrderedItem, P

logger = logging.getLogger(__name__)


def _index_of(items: Sequence[OrderedItem[P]], item_id: ItemId) -> Optional[int]:
    for idx, item in enumerate(items):
        if item.id == item_id:
            return idx
    return None


def renumber(items: Sequence[OrderedItem[P]]) -> Tuple[OrderedItem[P], ...]:
    """Return ``items`` with positions set to their array index."""
    return tuple(item.at(idx) for idx, item in enumerate(items))


def _array_move(items: Sequence[OrderedItem[P]], old_index: int, new_index: int) -> Tuple[OrderedItem[P], ...]:
    working: List[OrderedItem[P]] = list(items)
    moved = working.pop(old_index)
    working.insert(new_index, moved)
    return renumber(working)


def move_item(items: Sequence[OrderedItem[P]], instruction: MoveInstruction) -> Tuple[OrderedItem[P], ...]:
    """Apply ``instruction`` and return the new order.

    Raises ``InvalidMoveError`` when either id is absent. Dropping an item on
    itself returns the input unchanged.
    """
    old_index = _index_of(items, instruction.moved_id)
    new_index = _index_of(items, instruction.target_id)
    if old_index is None or new_index is None:
        missing = instruction.moved_id if old_index is None else instruction.target_id
        raise InvalidMoveError(
            f"id {missing!r} is not in the collection",
            moved_id=instruction.moved_id,
            target_id=instruction.target_id,
        )
    if old_index == new_index:
        return tuple(items)
    result = _array_move(items, old_index, new_index)
    logger.debug(
        "reorder_engine.move moved_id=%s old_index=%s new_index=%s",
        instruction.moved_id,
        old_index,
        new_index,
    )
    return result


def move_index(items: Sequence[OrderedItem[P]], from_index: int, to_index: int) -> Tuple[OrderedItem[P], ...]:
    """Index-based array-move; both indices must be in range."""
    size = len(items)
    if not (0 <= from_index < size) or not (0 <= to_index < size):
        raise InvalidMoveError(f"index out of range: from={from_index} to={to_index} size={size}")
    if from_index == to_index:
        return tuple(items)
    return _array_move(items, from_index, to_index)


# Keyboard reordering. Moving past either end is a no-op.


def _move_by_id(items: Sequence[OrderedItem[P]], item_id: ItemId, to_index: int) -> Tuple[OrderedItem[P], ...]:
    idx = _index_of(items, item_id)
    if idx is None:
        raise InvalidMoveError(f"id {item_id!r} is not in the collection", moved_id=item_id)
    to_index = max(0, min(to_index, len(items) - 1))
    return move_index(items, idx, to_index)


def move_up(items: Sequence[OrderedItem[P]], item_id: ItemId) -> Tuple[OrderedItem[P], ...]:
    idx = _index_of(items, item_id)
    return _move_by_id(items, item_id, (idx or 0) - 1)


def move_down(items: Sequence[OrderedItem[P]], item_id: ItemId) -> Tuple[OrderedItem[P], ...]:
    idx = _index_of(items, item_id)
    return _move_by_id(items, item_id, (idx if idx is not None else 0) + 1)


def move_top(items: Sequence[OrderedItem[P]], item_id: ItemId) -> Tuple[OrderedItem[P], ...]:
    return _move_by_id(items, item_id, 0)


def move_bottom(items: Sequence[OrderedItem[P]], item_id: ItemId) -> Tuple[OrderedItem[P], ...]:
    return _move_by_id(items, item_id, len(items) - 1)


KEY_COMMANDS = {
    "up": move_up,
    "down": move_down,
    "home": move_top,
    "end": move_bottom,
}


__all__ = [
    "renumber",
    "move_item",
    "move_index",
    "move_up",
    "move_down",
    "move_top",
    "move_bottom",
    "KEY_COMMANDS",
]
