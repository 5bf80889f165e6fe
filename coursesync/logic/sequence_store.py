"""In-memory store holding one ordered collection.

The store is the authoritative local snapshot of a collection for the
lifetime of its view. It is owned by exactly one session; there are no
concurrent writers. Every write leaves positions dense and contiguous.
"""

from __future__ import annotations

import copy
import logging
from typing import Generic, Iterable, Iterator, List, Optional, Sequence, Tuple

from coursesync.logic.errors import UnknownIdError
from coursesync.logic.reorder_engine import renumber
from coursesync.models.ordered import ItemId, OrderedCollection, OrderedItem, P

logger = logging.getLogger(__name__)


class SequenceStore(Generic[P]):
    def __init__(self, parent_id: ItemId, kind: str, items: Optional[Iterable[OrderedItem[P]]] = None) -> None:
        self.parent_id = parent_id
        self.kind = kind
        self._items: Tuple[OrderedItem[P], ...] = ()
        self.dirty = False
        if items is not None:
            self.load(items)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def items(self) -> Tuple[OrderedItem[P], ...]:
        return self._items

    def ids(self) -> List[ItemId]:
        return [item.id for item in self._items]

    def get(self, item_id: ItemId) -> Optional[OrderedItem[P]]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def position_of(self, item_id: ItemId) -> Optional[int]:
        item = self.get(item_id)
        return item.position if item is not None else None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[OrderedItem[P]]:
        return iter(self._items)

    def __contains__(self, item_id: object) -> bool:
        return any(item.id == item_id for item in self._items)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def load(self, items: Iterable[OrderedItem[P]] | OrderedCollection[P]) -> None:
        """Replace contents; array order wins over any incoming ``position``."""
        if isinstance(items, OrderedCollection):
            items = items.items
        incoming = list(items)
        ids = [item.id for item in incoming]
        if len(set(ids)) != len(ids):
            dupes = sorted({str(i) for i in ids if ids.count(i) > 1})
            logger.error("sequence_store.load duplicate ids parent_id=%s ids=%s", self.parent_id, dupes)
            raise UnknownIdError(f"duplicate ids in {self.kind} collection: {dupes}", ids=dupes)
        self._items = renumber(incoming)
        self.dirty = False

    def snapshot(self) -> OrderedCollection[P]:
        """Return a deep copy unaffected by later mutations of the store."""
        return OrderedCollection(
            parent_id=self.parent_id,
            kind=self.kind,
            items=tuple(copy.deepcopy(self._items)),
        )

    def apply_order(self, ordered_ids: Sequence[ItemId]) -> None:
        """Reorder to match ``ordered_ids`` exactly.

        Membership must be unchanged: unknown, missing or repeated ids raise
        ``UnknownIdError`` and the store is left as it was.
        """
        by_id = {item.id: item for item in self._items}
        unknown = [i for i in ordered_ids if i not in by_id]
        if unknown:
            raise UnknownIdError(f"unknown ids for {self.kind} collection {self.parent_id}: {unknown}", ids=unknown)
        if len(ordered_ids) != len(by_id) or len(set(ordered_ids)) != len(ordered_ids):
            missing = [i for i in by_id if i not in ordered_ids]
            raise UnknownIdError(
                f"order does not match membership of {self.kind} collection {self.parent_id}; missing={missing}",
                ids=missing,
            )
        self._items = renumber([by_id[i] for i in ordered_ids])
        self.dirty = True

    def append(self, item_id: ItemId, payload: Optional[P] = None) -> OrderedItem[P]:
        if item_id in self:
            raise UnknownIdError(f"id {item_id!r} already present in {self.kind} collection", ids=[item_id])
        item: OrderedItem[P] = OrderedItem(id=item_id, position=len(self._items), payload=payload)
        self._items = self._items + (item,)
        self.dirty = True
        return item

    def remove(self, item_id: ItemId) -> OrderedItem[P]:
        item = self.get(item_id)
        if item is None:
            raise UnknownIdError(f"id {item_id!r} not present in {self.kind} collection", ids=[item_id])
        self._items = renumber([i for i in self._items if i.id != item_id])
        self.dirty = True
        return item


__all__ = ["SequenceStore"]
