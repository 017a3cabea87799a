# src/kanban_client/board/pending.py

from __future__ import annotations

from .models import normalize_id


class PendingMoveTracker:
    """
    Task ids whose board update is currently in flight.

    Works as a per-task mutex: an id is present exactly between issuing the
    update request and receiving its result (success or failure).
    """

    def __init__(self) -> None:
        self._ids: set[str] = set()

    def add(self, task_id: str) -> None:
        self._ids.add(normalize_id(task_id))

    def has(self, task_id: str) -> bool:
        return normalize_id(task_id) in self._ids

    def delete(self, task_id: str) -> None:
        self._ids.discard(normalize_id(task_id))

    def __contains__(self, task_id: object) -> bool:
        return self.has(task_id)  # type: ignore[arg-type]

    def __len__(self) -> int:
        return len(self._ids)

    def snapshot(self) -> frozenset[str]:
        return frozenset(self._ids)
