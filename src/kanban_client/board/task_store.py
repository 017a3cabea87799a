# src/kanban_client/board/task_store.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace
from typing import Any

from .models import Task, normalize_id

logger = logging.getLogger(__name__)


class TaskStore:
    """
    In-memory, ordered list of the tasks of the open project.

    There is no incremental merge: every (re)load goes through replace_all(),
    so whatever the server returns wins over any local optimistic change.
    Mutated only from the event loop thread; no locking.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._tasks: list[Task] = list(tasks)

    def __len__(self) -> int:
        return len(self._tasks)

    def __iter__(self):
        return iter(self._tasks)

    def all(self) -> list[Task]:
        return list(self._tasks)

    def replace_all(self, tasks: Iterable[Task]) -> None:
        self._tasks = list(tasks)
        logger.debug("TaskStore replaced: %d tasks", len(self._tasks))

    def get(self, task_id: Any) -> Task | None:
        tid = normalize_id(task_id)
        if not tid:
            return None
        for t in self._tasks:
            if t.id == tid:
                return t
        return None

    def for_board(self, board_id: Any) -> list[Task]:
        bid = normalize_id(board_id)
        return [t for t in self._tasks if t.board_id == bid]

    def set_board(self, task_id: Any, board_ref: Any) -> bool:
        """
        Point a task at another board.

        The task is replaced by a copy (never mutated in place) so snapshots
        taken from all() keep their previous value. Returns False if unknown.
        """
        tid = normalize_id(task_id)
        for i, t in enumerate(self._tasks):
            if t.id == tid:
                self._tasks[i] = replace(t, board=board_ref)
                return True
        return False
