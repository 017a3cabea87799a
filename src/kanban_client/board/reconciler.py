# src/kanban_client/board/reconciler.py

from __future__ import annotations

"""
Drag-and-drop task reassignment.

A drop is turned into a board change in three steps:
- guards (all silent no-ops: nothing is sent, nothing is shown),
- an optimistic rewrite of the task's board in the TaskStore, applied
  synchronously so the next render already shows the move,
- the backend update, run as an asyncio task; its result either confirms the
  move (toast + debounced refetch once nothing else is in flight) or rolls it
  back (toast + immediate refetch).

PendingMoveTracker keeps at most one update per task in flight; moves of
different tasks are independent and may resolve in any order.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum
from functools import partial
from typing import Any

from ..api.errors import ApiError, friendly_error_message
from ..core.ports import BoardApi, Notifier
from .models import Board, MoveStatus, normalize_id
from .pending import PendingMoveTracker
from .refetch import RefetchBatcher
from .task_store import TaskStore

logger = logging.getLogger(__name__)

MOVE_FAILED_MESSAGE = "Failed to move task"


class SkipReason(StrEnum):
    NO_TARGET = "no_target"
    ALREADY_PENDING = "already_pending"
    TASK_NOT_FOUND = "task_not_found"
    BOARD_NOT_FOUND = "board_not_found"
    SAME_BOARD = "same_board"


@dataclass(slots=True, frozen=True)
class MoveRequest:
    task_id: str
    task_title: str
    source_board_id: str
    # Board reference exactly as it was before the optimistic rewrite.
    previous_board_ref: Any
    destination: Board


@dataclass(slots=True, frozen=True)
class MoveResult:
    move: MoveRequest
    status: MoveStatus
    error: str | None = None


@dataclass(slots=True, frozen=True)
class DragSkipped:
    reason: SkipReason


@dataclass(slots=True, frozen=True)
class DragAccepted:
    move: MoveRequest
    future: asyncio.Task[MoveResult]


DragOutcome = DragSkipped | DragAccepted


class DragReconciler:
    def __init__(
        self,
        *,
        store: TaskStore,
        boards: Callable[[], Sequence[Board]],
        api: BoardApi,
        notifier: Notifier,
        batcher: RefetchBatcher,
        pending: PendingMoveTracker | None = None,
    ) -> None:
        self._store = store
        self._boards = boards
        self._api = api
        self._notifier = notifier
        self._batcher = batcher
        self.pending = pending if pending is not None else PendingMoveTracker()
        self._states: dict[str, MoveStatus] = {}

    def move_status(self, task_id: Any) -> MoveStatus:
        return self._states.get(normalize_id(task_id), MoveStatus.IDLE)

    def _board(self, board_id: str) -> Board | None:
        if not board_id:
            return None
        for b in self._boards():
            if b.id == board_id:
                return b
        return None

    def resolve_destination(self, over_id: str) -> Board | None:
        """over_id is either a board (dropped on a column) or a task (dropped on a card)."""
        board = self._board(over_id)
        if board is not None:
            return board
        over_task = self._store.get(over_id)
        if over_task is None:
            return None
        return self._board(over_task.board_id)

    def on_drag_end(self, active_id: Any, over_id: Any) -> DragOutcome:
        """
        Handle a drop of task active_id onto over_id.

        Must be called from the event loop. Everything up to and including the
        optimistic rewrite happens before this returns; the backend update runs
        in DragAccepted.future.
        """
        if active_id is None or over_id is None:
            return DragSkipped(SkipReason.NO_TARGET)

        task_id = normalize_id(active_id)
        target_id = normalize_id(over_id)

        if self.pending.has(task_id):
            logger.debug("Task %s already being moved; ignoring drop", task_id)
            return DragSkipped(SkipReason.ALREADY_PENDING)

        task = self._store.get(task_id)
        if task is None:
            logger.warning("Dropped task %s not in store (%d tasks)", task_id, len(self._store))
            return DragSkipped(SkipReason.TASK_NOT_FOUND)

        destination = self.resolve_destination(target_id)
        if destination is None:
            logger.warning("Drop target %s is neither a board nor a task on a known board", target_id)
            return DragSkipped(SkipReason.BOARD_NOT_FOUND)

        source_id = task.board_id
        if source_id == destination.id:
            return DragSkipped(SkipReason.SAME_BOARD)

        move = MoveRequest(
            task_id=task_id,
            task_title=task.title,
            source_board_id=source_id,
            previous_board_ref=task.board,
            destination=destination,
        )

        self.pending.add(task_id)
        self._states[task_id] = MoveStatus.PENDING
        self._store.set_board(task_id, destination.id)
        logger.info("Task %s: %s -> %s (optimistic)", task_id, source_id or "?", destination.id)

        future = asyncio.ensure_future(self._persist(move))
        future.add_done_callback(partial(self._on_done, move))
        return DragAccepted(move=move, future=future)

    def _on_done(self, move: MoveRequest, future: asyncio.Task[MoveResult]) -> None:
        # A cancelled task may never have entered _persist; undo here, no toast, no reload.
        if not future.cancelled():
            return
        logger.info("Move of task %s to %s cancelled", move.task_id, move.destination.id)
        self.pending.delete(move.task_id)
        self._states[move.task_id] = MoveStatus.ROLLED_BACK
        self._restore(move)

    async def _persist(self, move: MoveRequest) -> MoveResult:
        try:
            await self._api.update_task(move.task_id, {"board": move.destination.id})
        except ApiError as e:
            return await self._roll_back(move, e)
        except Exception as e:
            logger.exception("Unexpected error moving task %s to %s", move.task_id, move.destination.id)
            return await self._roll_back(move, e)
        finally:
            # Released on every exit path.
            self.pending.delete(move.task_id)

        self._states[move.task_id] = MoveStatus.RESOLVED
        logger.info("Task %s moved to %s", move.task_id, move.destination.id)
        self._notifier.success(f'Task "{move.task_title}" moved to {move.destination.title}')

        # Let a burst of drags finish before reloading everything.
        if not len(self.pending):
            self._batcher.schedule()
        return MoveResult(move=move, status=MoveStatus.RESOLVED)

    def _restore(self, move: MoveRequest) -> None:
        # Only if nothing (e.g. a refetch) has replaced the optimistic value since.
        current = self._store.get(move.task_id)
        if current is not None and current.board_id == move.destination.id:
            self._store.set_board(move.task_id, move.previous_board_ref)

    async def _roll_back(self, move: MoveRequest, err: Exception) -> MoveResult:
        self.pending.delete(move.task_id)
        self._states[move.task_id] = MoveStatus.ROLLED_BACK
        logger.warning("Moving task %s to %s failed: %s", move.task_id, move.destination.id, err)

        # Undo locally first so the UI is right even if the reload fails too.
        self._restore(move)

        message = friendly_error_message(err, MOVE_FAILED_MESSAGE)
        self._notifier.error(message)

        await self._batcher.refetch_now()
        return MoveResult(move=move, status=MoveStatus.ROLLED_BACK, error=message)
