"""Value types for ordered collections.

``OrderedItem`` and ``OrderedCollection`` are generic over the payload type so
the same engine orders modules, lessons and quiz questions without looking at
their fields. Both are frozen; mutations produce new instances.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Generic, Iterable, List, Mapping, Optional, Tuple, TypeVar, Union

P = TypeVar("P")
ItemId = Union[str, int]


@dataclass(frozen=True)
class OrderedItem(Generic[P]):
    id: ItemId
    position: int
    payload: Optional[P] = None

    def at(self, position: int) -> "OrderedItem[P]":
        """Return a copy of this item placed at ``position``."""
        if position == self.position:
            return self
        return replace(self, position=position)


@dataclass(frozen=True)
class OrderedCollection(Generic[P]):
    parent_id: ItemId
    kind: str
    items: Tuple[OrderedItem[P], ...] = field(default_factory=tuple)

    def ids(self) -> List[ItemId]:
        return [item.id for item in self.items]

    def index_of(self, item_id: ItemId) -> Optional[int]:
        for idx, item in enumerate(self.items):
            if item.id == item_id:
                return idx
        return None

    def positions(self) -> dict:
        return {item.id: item.position for item in self.items}

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class MoveInstruction:
    """Move ``moved_id`` to the current index of ``target_id``."""

    moved_id: ItemId
    target_id: ItemId

    @property
    def is_noop(self) -> bool:
        return self.moved_id == self.target_id


def items_from_rows(rows: Iterable[Mapping[str, Any]], id_field: str = "id") -> List[OrderedItem[dict]]:
    """Build items from fetched rows, trusting array order over stored positions.

    Any ``order_index``/``position`` value present on a row is discarded; the
    row's index in ``rows`` becomes its position.
    """
    return [
        OrderedItem(id=row[id_field], position=idx, payload=dict(row))
        for idx, row in enumerate(rows)
    ]


__all__ = [
    "ItemId",
    "OrderedItem",
    "OrderedCollection",
    "MoveInstruction",
    "items_from_rows",
]
