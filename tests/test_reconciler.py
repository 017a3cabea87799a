# tests/test_reconciler.py

from __future__ import annotations

import asyncio

import pytest

from kanban_client.api.errors import ApiError
from kanban_client.board.models import Board, MoveStatus, Task
from kanban_client.board.reconciler import (
    DragAccepted,
    DragReconciler,
    DragSkipped,
    SkipReason,
)
from kanban_client.board.refetch import RefetchBatcher
from kanban_client.board.task_store import TaskStore

from .fakes import FakeBoardApi, FakeNotifier, ManualClock


class Harness:
    """Reconciler over a plain TaskStore; refetch is only counted."""

    def __init__(self, tasks: list[Task], boards: list[Board], api: FakeBoardApi) -> None:
        self.clock = ManualClock()
        self.notifier = FakeNotifier()
        self.api = api
        self.store = TaskStore(tasks)
        self.boards = boards
        self.refetches = 0
        self.batcher = RefetchBatcher(self._refetch, delay_seconds=1.0, call_later=self.clock.call_later)
        self.reconciler = DragReconciler(
            store=self.store,
            boards=lambda: self.boards,
            api=api,
            notifier=self.notifier,
            batcher=self.batcher,
        )

    async def _refetch(self) -> None:
        self.refetches += 1


def _harness(*tasks: Task) -> Harness:
    api = FakeBoardApi(tasks=[{"_id": t.id, "title": t.title, "board": t.board} for t in tasks])
    boards = [Board(id="b1", title="To do"), Board(id="b2", title="Doing"), Board(id="b3", title="Done")]
    return Harness(list(tasks), boards, api)


@pytest.mark.asyncio
async def test_successful_move_is_optimistic_then_debounced() -> None:
    h = _harness(Task(id="t1", title="Write docs", board="b1"))
    h.api.gate = asyncio.Event()

    outcome = h.reconciler.on_drag_end("t1", "b2")

    assert isinstance(outcome, DragAccepted)
    assert "t1" in h.reconciler.pending
    assert h.store.get("t1").board == "b2"
    assert h.reconciler.move_status("t1") == MoveStatus.PENDING

    h.api.gate.set()
    result = await outcome.future

    assert result.status == MoveStatus.RESOLVED
    assert "t1" not in h.reconciler.pending
    assert h.reconciler.move_status("t1") == MoveStatus.RESOLVED
    assert h.api.update_calls == [("t1", {"board": "b2"})]
    assert h.notifier.successes == ['Task "Write docs" moved to Doing']
    assert h.refetches == 0

    h.clock.advance(1.0)
    await h.batcher.join()
    assert h.refetches == 1


@pytest.mark.asyncio
async def test_second_drag_of_pending_task_is_ignored() -> None:
    h = _harness(Task(id="t1", title="Write docs", board="b1"))
    h.api.gate = asyncio.Event()

    first = h.reconciler.on_drag_end("t1", "b2")
    second = h.reconciler.on_drag_end("t1", "b3")

    assert isinstance(first, DragAccepted)
    assert second == DragSkipped(SkipReason.ALREADY_PENDING)
    assert h.store.get("t1").board == "b2"

    h.api.gate.set()
    await first.future
    assert h.api.update_calls == [("t1", {"board": "b2"})]


@pytest.mark.asyncio
async def test_different_tasks_move_independently() -> None:
    h = _harness(Task(id="t1", title="A", board="b1"), Task(id="t2", title="B", board="b1"))
    h.api.gate = asyncio.Event()

    a = h.reconciler.on_drag_end("t1", "b2")
    b = h.reconciler.on_drag_end("t2", "b3")

    assert isinstance(a, DragAccepted) and isinstance(b, DragAccepted)
    assert h.reconciler.pending.snapshot() == {"t1", "t2"}

    h.api.gate.set()
    await asyncio.gather(a.future, b.future)

    assert len(h.reconciler.pending) == 0
    assert len(h.api.update_calls) == 2
    assert len(h.clock.active) == 1


@pytest.mark.asyncio
async def test_drop_on_same_board_changes_nothing() -> None:
    original = Task(id="t1", title="Write docs", board={"_id": "b1", "title": "To do"})
    h = _harness(original)
    before = h.store.all()

    outcome = h.reconciler.on_drag_end("t1", "b1")

    assert outcome == DragSkipped(SkipReason.SAME_BOARD)
    assert h.store.all() == before
    assert h.store.get("t1") is original
    assert h.api.update_calls == []
    assert h.notifier.successes == [] and h.notifier.errors == []
    assert h.reconciler.move_status("t1") == MoveStatus.IDLE


@pytest.mark.asyncio
async def test_drop_on_task_uses_that_tasks_board() -> None:
    h = _harness(
        Task(id="t1", title="A", board="b1"),
        Task(id="t2", title="B", board={"_id": "b3", "title": "Done"}),
    )

    outcome = h.reconciler.on_drag_end("t1", "t2")

    assert isinstance(outcome, DragAccepted)
    assert outcome.move.destination.id == "b3"
    assert h.store.get("t1").board == "b3"
    await outcome.future


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("active", "over", "reason"),
    [
        (None, "b2", SkipReason.NO_TARGET),
        ("t1", None, SkipReason.NO_TARGET),
        ("nope", "b2", SkipReason.TASK_NOT_FOUND),
        ("t1", "zzz", SkipReason.BOARD_NOT_FOUND),
    ],
)
async def test_unresolvable_drops_are_silent(active, over, reason) -> None:
    h = _harness(Task(id="t1", title="A", board="b1"))

    assert h.reconciler.on_drag_end(active, over) == DragSkipped(reason)
    assert h.store.get("t1").board == "b1"
    assert h.api.update_calls == []
    assert h.notifier.errors == []


@pytest.mark.asyncio
async def test_drop_on_task_whose_board_is_unknown_is_skipped() -> None:
    h = _harness(Task(id="t1", title="A", board="b1"), Task(id="t9", title="Orphan", board="gone"))

    assert h.reconciler.on_drag_end("t1", "t9") == DragSkipped(SkipReason.BOARD_NOT_FOUND)


@pytest.mark.asyncio
async def test_failed_move_refetches_immediately() -> None:
    h = _harness(Task(id="t1", title="Write docs", board="b1"))
    h.api.fail_update = ApiError("Internal Server Error", status_code=500)

    outcome = h.reconciler.on_drag_end("t1", "b2")
    assert isinstance(outcome, DragAccepted)
    result = await outcome.future

    assert result.status == MoveStatus.ROLLED_BACK
    assert h.notifier.errors == ["Failed to move task"]
    assert h.notifier.successes == []
    assert h.refetches == 1
    assert h.clock.active == []
    assert "t1" not in h.reconciler.pending
    # restored locally before the reload lands
    assert h.store.get("t1").board == "b1"


@pytest.mark.asyncio
async def test_failed_move_shows_backend_message() -> None:
    h = _harness(Task(id="t1", title="Write docs", board="b1"))
    h.api.fail_update = ApiError("Forbidden", status_code=403, server_message="Not a board member")

    outcome = h.reconciler.on_drag_end("t1", "b2")
    result = await outcome.future

    assert h.notifier.errors == ["Not a board member"]
    assert result.error == "Not a board member"


@pytest.mark.asyncio
async def test_failure_cancels_waiting_debounced_refetch() -> None:
    h = _harness(Task(id="t1", title="A", board="b1"), Task(id="t2", title="B", board="b1"))

    ok = h.reconciler.on_drag_end("t1", "b2")
    await ok.future
    assert len(h.clock.active) == 1

    h.api.fail_update = ApiError("Server error", status_code=500)
    bad = h.reconciler.on_drag_end("t2", "b2")
    await bad.future

    assert h.refetches == 1
    assert h.clock.active == []
    h.clock.advance(5.0)
    await h.batcher.join()
    assert h.refetches == 1


@pytest.mark.asyncio
async def test_rapid_moves_coalesce_into_one_refetch() -> None:
    h = _harness(
        Task(id="t1", title="A", board="b1"),
        Task(id="t2", title="B", board="b1"),
        Task(id="t3", title="C", board="b1"),
    )

    for task_id in ("t1", "t2", "t3"):
        outcome = h.reconciler.on_drag_end(task_id, "b2")
        await outcome.future
        h.clock.advance(0.5)
        await h.batcher.join()
        assert h.refetches == 0

    # 0.5s already elapsed since the last move
    h.clock.advance(0.4)
    await h.batcher.join()
    assert h.refetches == 0

    h.clock.advance(0.1)
    await h.batcher.join()
    assert h.refetches == 1
    assert h.clock.active == []


@pytest.mark.asyncio
async def test_no_refetch_scheduled_while_other_moves_in_flight() -> None:
    h = _harness(Task(id="t1", title="A", board="b1"), Task(id="t2", title="B", board="b1"))
    slow = asyncio.Event()

    async def update_task(task_id, data, *, attachment=None):
        h.api.update_calls.append((task_id, dict(data)))
        if task_id == "t2":
            await slow.wait()
        return {}

    h.api.update_task = update_task  # type: ignore[method-assign]

    fast = h.reconciler.on_drag_end("t1", "b2")
    pending = h.reconciler.on_drag_end("t2", "b2")
    await fast.future

    assert h.clock.active == []

    slow.set()
    await pending.future
    assert len(h.clock.active) == 1


@pytest.mark.asyncio
async def test_unexpected_error_releases_task_and_rolls_back() -> None:
    h = _harness(Task(id="t1", title="Write docs", board="b1"))

    async def update_task(task_id, data, *, attachment=None):
        raise OSError("socket closed")

    h.api.update_task = update_task  # type: ignore[method-assign]

    outcome = h.reconciler.on_drag_end("t1", "b2")
    result = await outcome.future

    assert result.status == MoveStatus.ROLLED_BACK
    assert h.reconciler.pending.snapshot() == frozenset()
    assert h.store.get("t1").board == "b1"
    assert h.notifier.errors == ["Failed to move task"]
    assert h.refetches == 1

    # the task can be dragged again
    assert isinstance(h.reconciler.on_drag_end("t1", "b2"), DragAccepted)


@pytest.mark.asyncio
async def test_cancelled_move_releases_task() -> None:
    h = _harness(Task(id="t1", title="Write docs", board="b1"))
    h.api.gate = asyncio.Event()

    outcome = h.reconciler.on_drag_end("t1", "b2")
    await asyncio.sleep(0)
    outcome.future.cancel()
    with pytest.raises(asyncio.CancelledError):
        await outcome.future

    assert "t1" not in h.reconciler.pending
    assert h.store.get("t1").board == "b1"
    assert h.reconciler.move_status("t1") == MoveStatus.ROLLED_BACK
    assert h.notifier.errors == []
    assert h.refetches == 0


@pytest.mark.asyncio
async def test_move_cancelled_before_request_starts_releases_task() -> None:
    h = _harness(Task(id="t1", title="Write docs", board="b1"))

    outcome = h.reconciler.on_drag_end("t1", "b2")
    outcome.future.cancel()
    with pytest.raises(asyncio.CancelledError):
        await outcome.future

    assert h.api.update_calls == []
    assert "t1" not in h.reconciler.pending
    assert h.store.get("t1").board == "b1"
