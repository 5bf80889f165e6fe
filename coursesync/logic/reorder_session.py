"""Per-collection reorder controller.

A ``ReorderSession`` owns one ``SequenceStore`` and drives each drag gesture
through ``idle -> dragging -> committing -> (settled | rolled_back)``:

- While dragging the store is not touched; the drag adapter renders any
  provisional ordering itself.
- On drop the engine computes the new order synchronously, the store is
  updated optimistically and ``persist_order`` is scheduled as a task.
- A successful persist makes that order the last known-good state. A failed
  one restores the store to the last known-good state and publishes a
  notification. There is no automatic retry.

Overlapping commits are tolerated: whichever persist resolves last defines the
known-good order, and the store is reconciled to it once nothing is in flight.
After ``close()`` late resolutions are discarded without touching the store.
"""

from __future__ import annotations

import asyncio
import copy
import logging
from dataclasses import dataclass
from typing import Any, Generator, Generic, Iterable, List, Optional, Sequence, Set, Tuple

from coursesync.logic.errors import InvalidMoveError, OrderingError, SyncError
from coursesync.logic.notifications import Notifier
from coursesync.logic.reorder_engine import KEY_COMMANDS, move_item, renumber
from coursesync.logic.sequence_store import SequenceStore
from coursesync.logic.sync_gateway import ResourceRoute, SyncGateway
from coursesync.models.ordered import ItemId, MoveInstruction, OrderedCollection, OrderedItem, P, items_from_rows

logger = logging.getLogger(__name__)


class GestureState:
    IDLE = "idle"
    DRAGGING = "dragging"
    COMMITTING = "committing"
    SETTLED = "settled"
    ROLLED_BACK = "rolled_back"


class Outcome:
    NOOP = "noop"
    IGNORED = "ignored"
    SETTLED = "settled"
    ROLLED_BACK = "rolled_back"
    DISCARDED = "discarded"


@dataclass(frozen=True)
class CommitResult:
    outcome: str
    ordered_ids: Tuple[ItemId, ...]
    error: Optional[OrderingError] = None


class PendingCommit:
    """Handle returned by ``submit``; await it for the ``CommitResult``.

    Immediate outcomes (no-op, ignored) carry their result directly and never
    schedule a network call.
    """

    def __init__(
        self,
        ordered_ids: Sequence[ItemId],
        *,
        task: Optional["asyncio.Task[CommitResult]"] = None,
        result: Optional[CommitResult] = None,
    ) -> None:
        self.ordered_ids = tuple(ordered_ids)
        self.task = task
        self._result = result

    @property
    def scheduled(self) -> bool:
        return self.task is not None

    @property
    def result(self) -> Optional[CommitResult]:
        if self._result is not None:
            return self._result
        if self.task is not None and self.task.done() and not self.task.cancelled():
            return self.task.result()
        return None

    async def _wait(self) -> CommitResult:
        if self.task is None:
            if self._result is None:
                raise RuntimeError("pending commit has neither a task nor a result")
            return self._result
        return await self.task

    def __await__(self) -> Generator[Any, None, CommitResult]:
        return self._wait().__await__()


class ReorderSession(Generic[P]):
    def __init__(
        self,
        gateway: SyncGateway,
        route: ResourceRoute,
        collection_id: ItemId,
        *,
        notifier: Optional[Notifier] = None,
        row_id_field: str = "id",
    ) -> None:
        self.gateway = gateway
        self.route = route
        self.collection_id = collection_id
        self.notifier = notifier or Notifier()
        self.row_id_field = row_id_field
        self.store: SequenceStore[P] = SequenceStore(collection_id, route.kind)
        self._known_good: OrderedCollection[P] = self.store.snapshot()
        self._state = GestureState.IDLE
        self._dragging: Optional[ItemId] = None
        self._pending = 0
        self._epoch = 0
        self._closed = False
        self._tasks: Set["asyncio.Task[CommitResult]"] = set()
        self.transitions: List[Tuple[str, str]] = []
        self.last_outcome: Optional[str] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> str:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def in_flight(self) -> int:
        return self._pending

    @property
    def known_good(self) -> OrderedCollection[P]:
        return self._known_good

    def _transition(self, new_state: str) -> None:
        if new_state == self._state:
            return
        logger.debug(
            "reorder.state kind=%s collection_id=%s from=%s to=%s",
            self.route.kind,
            self.collection_id,
            self._state,
            new_state,
        )
        self.transitions.append((self._state, new_state))
        self._state = new_state

    def _resting_state(self) -> str:
        if self._dragging is not None:
            return GestureState.DRAGGING
        if self._pending:
            return GestureState.COMMITTING
        return GestureState.IDLE

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, items: Iterable[OrderedItem[P]]) -> None:
        """Install authoritative items; in-flight results from before are discarded."""
        self.store.load(items)
        self._epoch += 1
        self._known_good = self.store.snapshot()

    def load_rows(self, rows: Iterable[dict]) -> None:
        self.load(items_from_rows(rows, self.row_id_field))  # type: ignore[arg-type]

    async def reload(self) -> None:
        """Discard local state and fetch the collection again."""
        rows = await self.gateway.fetch_collection(self.route, self.collection_id)
        if self._closed:
            logger.info("reorder.reload.discarded kind=%s collection_id=%s", self.route.kind, self.collection_id)
            return
        self.load_rows(rows)

    async def open(self) -> None:
        await self.reload()

    def close(self) -> None:
        """Detach from the view; late persist results become inert."""
        self._closed = True
        self._dragging = None
        logger.info(
            "reorder.close kind=%s collection_id=%s in_flight=%s",
            self.route.kind,
            self.collection_id,
            self._pending,
        )

    async def wait_idle(self) -> None:
        """Wait for every scheduled persist call to resolve."""
        while True:
            waiting = [t for t in self._tasks if not t.done()]
            if not waiting:
                return
            await asyncio.gather(*waiting, return_exceptions=True)

    # ------------------------------------------------------------------
    # Gestures
    # ------------------------------------------------------------------

    def begin_drag(self, moved_id: ItemId) -> None:
        if self._closed:
            return
        if moved_id not in self.store:
            logger.info("reorder.drag.ignored kind=%s moved_id=%s reason=unknown_id", self.route.kind, moved_id)
            return
        self._dragging = moved_id
        self._transition(GestureState.DRAGGING)

    def cancel_drag(self) -> None:
        self._dragging = None
        self._transition(self._resting_state())

    def submit(self, moved_id: ItemId, target_id: ItemId) -> PendingCommit:
        """Complete a drop of ``moved_id`` onto ``target_id``."""
        self._dragging = None
        instruction = MoveInstruction(moved_id=moved_id, target_id=target_id)
        try:
            new_items = move_item(self.store.items, instruction)
        except InvalidMoveError as exc:
            return self._ignored(exc)
        if instruction.is_noop:
            self._transition(self._resting_state())
            return PendingCommit(self.store.ids(), result=CommitResult(Outcome.NOOP, tuple(self.store.ids())))
        return self._commit(new_items)

    def submit_key(self, item_id: ItemId, command: str) -> PendingCommit:
        """Keyboard reorder (``up``, ``down``, ``home``, ``end``)."""
        mover = KEY_COMMANDS.get(command)
        if mover is None:
            return self._ignored(InvalidMoveError(f"unknown key command {command!r}", moved_id=item_id))
        try:
            new_items = mover(self.store.items, item_id)
        except InvalidMoveError as exc:
            return self._ignored(exc)
        if [i.id for i in new_items] == self.store.ids():
            return PendingCommit(self.store.ids(), result=CommitResult(Outcome.NOOP, tuple(self.store.ids())))
        return self._commit(new_items)

    async def drop(self, moved_id: ItemId, target_id: ItemId) -> CommitResult:
        return await self.submit(moved_id, target_id)

    def _ignored(self, exc: InvalidMoveError) -> PendingCommit:
        logger.info(
            "reorder.move.ignored kind=%s collection_id=%s moved_id=%s target_id=%s reason=%s",
            self.route.kind,
            self.collection_id,
            exc.moved_id,
            exc.target_id,
            exc,
        )
        self._transition(self._resting_state())
        ids = tuple(self.store.ids())
        return PendingCommit(ids, result=CommitResult(Outcome.IGNORED, ids, error=exc))

    def _commit(self, new_items: Sequence[OrderedItem[P]]) -> PendingCommit:
        ordered_ids = tuple(item.id for item in new_items)
        if self._closed:
            return PendingCommit(ordered_ids, result=CommitResult(Outcome.DISCARDED, ordered_ids))
        # Fails before any state change when called outside an event loop
        loop = asyncio.get_running_loop()
        pre_move = self.store.snapshot()
        try:
            self.store.apply_order(ordered_ids)
        except OrderingError:
            logger.error(
                "reorder.commit.aborted kind=%s collection_id=%s ids=%s",
                self.route.kind,
                self.collection_id,
                ordered_ids,
                exc_info=True,
            )
            raise
        self._pending += 1
        self._transition(GestureState.COMMITTING)
        logger.info(
            "reorder.commit.start kind=%s collection_id=%s ids=%s in_flight=%s",
            self.route.kind,
            self.collection_id,
            list(ordered_ids),
            self._pending,
        )
        task = loop.create_task(self._persist(self._epoch, ordered_ids, pre_move))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return PendingCommit(ordered_ids, task=task)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def _persist(self, epoch: int, ordered_ids: Tuple[ItemId, ...], pre_move: OrderedCollection[P]) -> CommitResult:
        try:
            await self.gateway.persist_order(self.route, self.collection_id, list(ordered_ids))
        except asyncio.CancelledError:
            self._pending -= 1
            if not self._is_stale(epoch):
                logger.info(
                    "reorder.commit.cancelled kind=%s collection_id=%s ids=%s",
                    self.route.kind,
                    self.collection_id,
                    list(ordered_ids),
                )
                self._reconcile(force=True)
            raise
        except SyncError as exc:
            return self._on_failure(epoch, ordered_ids, exc)
        except Exception as exc:
            logger.error(
                "reorder.commit.unexpected_error kind=%s collection_id=%s",
                self.route.kind,
                self.collection_id,
                exc_info=True,
            )
            return self._on_failure(epoch, ordered_ids, SyncError(str(exc), collection_id=self.collection_id))
        return self._on_success(epoch, ordered_ids, pre_move)

    def _is_stale(self, epoch: int) -> bool:
        return self._closed or epoch != self._epoch

    def _reconcile(self, force: bool = False) -> None:
        if self._pending:
            self._transition(self._resting_state())
            return
        if force or self.store.ids() != self._known_good.ids():
            self.store.load(copy.deepcopy(self._known_good.items))
        else:
            self.store.dirty = False
        self._transition(self._resting_state())

    def _on_success(self, epoch: int, ordered_ids: Tuple[ItemId, ...], pre_move: OrderedCollection[P]) -> CommitResult:
        self._pending -= 1
        if self._is_stale(epoch):
            return self._discard(ordered_ids)
        by_id = {item.id: item for item in pre_move.items}
        self._known_good = OrderedCollection(
            parent_id=pre_move.parent_id,
            kind=pre_move.kind,
            items=renumber([by_id[i] for i in ordered_ids]),
        )
        self.last_outcome = Outcome.SETTLED
        self._transition(GestureState.SETTLED)
        logger.info(
            "reorder.commit.settled kind=%s collection_id=%s ids=%s in_flight=%s",
            self.route.kind,
            self.collection_id,
            list(ordered_ids),
            self._pending,
        )
        self._reconcile()
        return CommitResult(Outcome.SETTLED, ordered_ids)

    def _on_failure(self, epoch: int, ordered_ids: Tuple[ItemId, ...], exc: SyncError) -> CommitResult:
        self._pending -= 1
        if self._is_stale(epoch):
            return self._discard(ordered_ids)
        logger.warning(
            "reorder.commit.rolled_back kind=%s collection_id=%s ids=%s status=%s in_flight=%s",
            self.route.kind,
            self.collection_id,
            list(ordered_ids),
            exc.status_code,
            self._pending,
        )
        self.notifier.error(f"Failed to update {self.route.kind} order", collection_id=self.collection_id)
        self.last_outcome = Outcome.ROLLED_BACK
        self._transition(GestureState.ROLLED_BACK)
        self._reconcile(force=True)
        return CommitResult(Outcome.ROLLED_BACK, ordered_ids, error=exc)

    def _discard(self, ordered_ids: Tuple[ItemId, ...]) -> CommitResult:
        logger.info(
            "reorder.commit.discarded kind=%s collection_id=%s ids=%s closed=%s",
            self.route.kind,
            self.collection_id,
            list(ordered_ids),
            self._closed,
        )
        if not self._closed:
            self._reconcile()
        return CommitResult(Outcome.DISCARDED, ordered_ids)


__all__ = [
    "GestureState",
    "Outcome",
    "CommitResult",
    "PendingCommit",
    "ReorderSession",
]
