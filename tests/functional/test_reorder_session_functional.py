"""Functional tests for ReorderSession.

Drives the gesture lifecycle against the in-process FakeGateway: optimistic
update, single persist call per drop, rollback on failure, overlapping
commits and late results after close.
"""

from __future__ import annotations

import asyncio

import pytest

from coursesync.logic.errors import InvalidMoveError, SyncError
from coursesync.logic.notifications import LEVEL_ERROR
from coursesync.logic.reorder_session import GestureState, Outcome, PendingCommit, ReorderSession
from coursesync.logic.sync_gateway import LESSONS, MODULES

from conftest import make_items


def _session(gateway, *ids, route=MODULES, collection_id=1):
    session = ReorderSession(gateway, route, collection_id)
    session.load(make_items(*ids))
    return session


async def _held(gateway, count):
    for _ in range(50):
        if len(gateway.held) >= count:
            return
        await asyncio.sleep(0)
    raise AssertionError(f"expected {count} held persist calls, got {len(gateway.held)}")


# ----------------------------------------------------------------------------
# Happy path
# ----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_drop_updates_store_then_persists_once(fake_gateway):
    session = _session(fake_gateway, 10, 11, 12)

    pending = session.submit(12, 10)

    # Optimistic: the store already shows the new order, nothing sent yet
    assert session.store.ids() == [12, 10, 11]
    assert [i.position for i in session.store] == [0, 1, 2]
    assert session.state == GestureState.COMMITTING
    assert pending.scheduled
    assert fake_gateway.calls == []

    result = await pending
    assert result.outcome == Outcome.SETTLED
    assert result.ordered_ids == (12, 10, 11)
    assert fake_gateway.calls == [("module", 1, [12, 10, 11])]
    assert session.known_good.ids() == [12, 10, 11]
    assert session.store.dirty is False
    assert session.state == GestureState.IDLE
    assert session.transitions == [
        (GestureState.IDLE, GestureState.COMMITTING),
        (GestureState.COMMITTING, GestureState.SETTLED),
        (GestureState.SETTLED, GestureState.IDLE),
    ]


@pytest.mark.asyncio
async def test_drop_coroutine_returns_result(fake_gateway):
    session = _session(fake_gateway, "a", "b", "c", route=LESSONS, collection_id=10)
    result = await session.drop("a", "c")
    assert result.outcome == Outcome.SETTLED
    assert fake_gateway.calls == [("lesson", 10, ["b", "c", "a"])]


@pytest.mark.asyncio
async def test_dragging_does_not_touch_store(fake_gateway):
    session = _session(fake_gateway, 1, 2, 3)
    session.begin_drag(3)
    assert session.state == GestureState.DRAGGING
    assert session.store.ids() == [1, 2, 3]
    session.cancel_drag()
    assert session.state == GestureState.IDLE
    await asyncio.sleep(0)
    assert fake_gateway.calls == []


@pytest.mark.asyncio
async def test_begin_drag_of_unknown_id_is_ignored(fake_gateway):
    session = _session(fake_gateway, 1, 2)
    session.begin_drag(9)
    assert session.state == GestureState.IDLE


# ----------------------------------------------------------------------------
# No-ops and invalid moves
# ----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_drop_on_self_sends_nothing(fake_gateway):
    session = _session(fake_gateway, 1, 2, 3)
    session.begin_drag(2)
    pending = session.submit(2, 2)
    assert not pending.scheduled
    result = await pending
    assert result.outcome == Outcome.NOOP
    assert session.state == GestureState.IDLE
    assert fake_gateway.calls == []
    assert session.store.dirty is False


@pytest.mark.asyncio
async def test_stale_drop_is_ignored_without_network(fake_gateway):
    session = _session(fake_gateway, 1, 2, 3)
    pending = session.submit(99, 1)
    assert pending.result is not None
    assert pending.result.outcome == Outcome.IGNORED
    assert isinstance(pending.result.error, InvalidMoveError)
    await asyncio.sleep(0)
    assert fake_gateway.calls == []
    assert session.store.ids() == [1, 2, 3]


# ----------------------------------------------------------------------------
# Failure and rollback
# ----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_failed_persist_restores_previous_order(fake_gateway):
    fake_gateway.fail_with = SyncError("rejected", status_code=500)
    session = _session(fake_gateway, "A", "B", "C", "D")
    before = session.store.snapshot()

    pending = session.submit("A", "C")
    assert session.store.ids() == ["B", "C", "A", "D"]
    result = await pending

    assert result.outcome == Outcome.ROLLED_BACK
    assert result.error.status_code == 500
    assert session.store.items == before.items
    assert session.store.dirty is False
    assert session.state == GestureState.IDLE
    assert (GestureState.COMMITTING, GestureState.ROLLED_BACK) in session.transitions
    assert len(fake_gateway.calls) == 1

    notes = session.notifier.drain()
    assert [(n.level, n.message) for n in notes] == [(LEVEL_ERROR, "Failed to update module order")]


@pytest.mark.asyncio
async def test_unexpected_gateway_exception_is_treated_as_sync_failure(fake_gateway):
    fake_gateway.fail_with = RuntimeError("socket closed")
    session = _session(fake_gateway, 1, 2, 3)
    result = await session.submit(3, 1)
    assert result.outcome == Outcome.ROLLED_BACK
    assert isinstance(result.error, SyncError)
    assert session.store.ids() == [1, 2, 3]


@pytest.mark.asyncio
async def test_rollback_returns_to_last_settled_order(fake_gateway):
    session = _session(fake_gateway, 1, 2, 3)
    await session.submit(3, 1)
    assert session.store.ids() == [3, 1, 2]

    fake_gateway.fail_with = SyncError("down", status_code=503)
    result = await session.submit(1, 2)
    assert result.outcome == Outcome.ROLLED_BACK
    assert session.store.ids() == [3, 1, 2]


# ----------------------------------------------------------------------------
# Overlapping commits
# ----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_overlapping_commits_last_resolution_wins(fake_gateway):
    fake_gateway.manual = True
    session = _session(fake_gateway, 10, 11, 12)

    first = session.submit(12, 10)  # [12, 10, 11]
    second = session.submit(11, 12)  # [11, 12, 10]
    await _held(fake_gateway, 2)
    assert session.in_flight == 2
    assert session.store.ids() == [11, 12, 10]

    # Second resolves first; the earlier request then resolves last
    fake_gateway.held[1].set_result(None)
    assert (await second).outcome == Outcome.SETTLED
    assert session.state == GestureState.COMMITTING

    fake_gateway.held[0].set_result(None)
    assert (await first).outcome == Outcome.SETTLED

    assert session.in_flight == 0
    assert session.known_good.ids() == [12, 10, 11]
    assert session.store.ids() == [12, 10, 11]
    assert session.state == GestureState.IDLE


@pytest.mark.asyncio
async def test_failure_while_another_commit_is_in_flight(fake_gateway):
    fake_gateway.manual = True
    session = _session(fake_gateway, 10, 11, 12)

    first = session.submit(12, 10)
    second = session.submit(11, 12)
    await _held(fake_gateway, 2)

    fake_gateway.held[0].set_exception(SyncError("rejected", status_code=409))
    assert (await first).outcome == Outcome.ROLLED_BACK
    # Restore waits until nothing is in flight
    assert session.store.ids() == [11, 12, 10]

    fake_gateway.held[1].set_result(None)
    assert (await second).outcome == Outcome.SETTLED
    assert session.store.ids() == [11, 12, 10]
    assert session.known_good.ids() == [11, 12, 10]


@pytest.mark.asyncio
async def test_wait_idle_drains_in_flight_commits(fake_gateway):
    session = _session(fake_gateway, 1, 2, 3)
    session.submit(1, 3)
    session.submit(2, 3)
    await session.wait_idle()
    assert session.in_flight == 0
    assert len(fake_gateway.calls) == 2


# ----------------------------------------------------------------------------
# Close and reload
# ----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_late_failure_after_close_is_inert(fake_gateway):
    fake_gateway.manual = True
    session = _session(fake_gateway, 10, 11, 12)
    pending = session.submit(12, 10)
    await _held(fake_gateway, 1)

    session.close()
    fake_gateway.held[0].set_exception(SyncError("late", status_code=500))
    result = await pending

    assert result.outcome == Outcome.DISCARDED
    assert session.store.ids() == [12, 10, 11]
    assert session.notifier.drain() == []


@pytest.mark.asyncio
async def test_drop_after_close_is_discarded(fake_gateway):
    session = _session(fake_gateway, 1, 2)
    session.close()
    result = await session.submit(2, 1)
    assert result.outcome == Outcome.DISCARDED
    assert fake_gateway.calls == []
    assert session.store.ids() == [1, 2]


@pytest.mark.asyncio
async def test_result_from_before_reload_is_discarded(fake_gateway):
    fake_gateway.manual = True
    session = _session(fake_gateway, 10, 11, 12)
    pending = session.submit(12, 10)
    await _held(fake_gateway, 1)

    session.load(make_items(10, 11, 12, 13))
    fake_gateway.held[0].set_exception(SyncError("rejected"))

    assert (await pending).outcome == Outcome.DISCARDED
    assert session.store.ids() == [10, 11, 12, 13]
    assert session.notifier.drain() == []


@pytest.mark.asyncio
async def test_reload_fetches_rows_in_emitted_order(fake_gateway):
    fake_gateway.documents["/courses/1"] = {
        "id": 1,
        "modules": [{"id": 12, "order_index": 0}, {"id": 10, "order_index": 0}],
    }
    session = ReorderSession(fake_gateway, MODULES, 1)
    await session.open()
    assert session.store.ids() == [12, 10]
    assert session.known_good.ids() == [12, 10]


@pytest.mark.asyncio
async def test_reload_without_items_list_raises(fake_gateway):
    fake_gateway.documents["/courses/1"] = {"id": 1}
    session = ReorderSession(fake_gateway, MODULES, 1)
    with pytest.raises(SyncError):
        await session.reload()


# ----------------------------------------------------------------------------
# Keyboard reordering
# ----------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_keyboard_move_persists(fake_gateway):
    session = _session(fake_gateway, 10, 11, 12)
    result = await session.submit_key(10, "down")
    assert result.outcome == Outcome.SETTLED
    assert fake_gateway.calls == [("module", 1, [11, 10, 12])]


@pytest.mark.asyncio
async def test_keyboard_move_past_end_and_unknown_command(fake_gateway):
    session = _session(fake_gateway, 10, 11, 12)
    assert (await session.submit_key(10, "up")).outcome == Outcome.NOOP
    assert (await session.submit_key(10, "sideways")).outcome == Outcome.IGNORED
    assert (await session.submit_key(99, "down")).outcome == Outcome.IGNORED
    assert fake_gateway.calls == []


# ----------------------------------------------------------------------------
# Scheduling edge cases
# ----------------------------------------------------------------------------


def test_submit_outside_event_loop_leaves_session_untouched(fake_gateway):
    session = _session(fake_gateway, 10, 11, 12)

    with pytest.raises(RuntimeError):
        session.submit(12, 10)

    assert session.store.ids() == [10, 11, 12]
    assert session.store.dirty is False
    assert session.state == GestureState.IDLE
    assert session.in_flight == 0
    assert fake_gateway.calls == []


@pytest.mark.asyncio
async def test_cancelled_persist_restores_settled_order(fake_gateway):
    fake_gateway.manual = True
    session = _session(fake_gateway, 10, 11, 12)

    pending = session.submit(12, 10)
    await _held(fake_gateway, 1)
    pending.task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await pending

    assert session.store.ids() == [10, 11, 12]
    assert session.known_good.ids() == [10, 11, 12]
    assert session.state == GestureState.IDLE
    assert session.in_flight == 0
    assert pending.result is None


@pytest.mark.asyncio
async def test_pending_commit_without_task_or_result_raises():
    with pytest.raises(RuntimeError):
        await PendingCommit(())
