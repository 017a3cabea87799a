# src/kanban_client/board/view.py

"""
Project board view: everything the board page of one project needs.

Owns the TaskStore, the pending-move tracker, the refetch batcher and the drag
reconciler, and wires them to the injected API, notifier and confirm prompt.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import Any

from ..api.errors import ApiError
from ..core.ports import BoardApi, CallLater, ConfirmPrompt, JsonDict, Notifier
from .feedback import with_toast
from .models import Board, Project, Task, User, normalize_id, sort_boards
from .reconciler import DragOutcome, DragReconciler
from .refetch import RefetchBatcher, loop_call_later
from .task_store import TaskStore

logger = logging.getLogger(__name__)

DELETE_BOARD_PROMPT = "Are you sure you want to delete this board? All tasks in this board will be deleted."
DELETE_TASK_PROMPT = "Are you sure you want to delete this task?"
REMOVE_MEMBER_PROMPT = "Are you sure you want to remove this member?"
PROJECT_ROLES = ("admin", "member")
LOAD_FAILED_MESSAGE = "Failed to load project"


async def _board_tasks_or_empty(api: BoardApi, board_id: str) -> list[JsonDict]:
    # One broken column must not blank the whole project.
    try:
        return await api.list_board_tasks(board_id)
    except ApiError:
        logger.warning("Failed to fetch tasks of board %s; showing it empty", board_id, exc_info=True)
        return []


class ProjectBoardView:
    def __init__(
        self,
        project_id: str,
        *,
        api: BoardApi,
        notifier: Notifier,
        confirm: ConfirmPrompt,
        user: User | None = None,
        refetch_delay_seconds: float = 1.0,
        call_later: CallLater = loop_call_later,
    ) -> None:
        self.project_id = normalize_id(project_id)
        self._api = api
        self._notifier = notifier
        self._confirm = confirm
        self.user = user

        self.project: Project | None = None
        self.boards: list[Board] = []
        self.store = TaskStore()
        self.loaded = False

        self.batcher = RefetchBatcher(
            self.refresh,
            delay_seconds=refetch_delay_seconds,
            call_later=call_later,
        )
        self.reconciler = DragReconciler(
            store=self.store,
            boards=lambda: self.boards,
            api=api,
            notifier=notifier,
            batcher=self.batcher,
        )

    # ---- loading ----

    async def load(self) -> bool:
        return await self.refresh()

    async def refresh(self) -> bool:
        """
        Reload project, boards and all tasks from the backend.

        The TaskStore is replaced wholesale. On failure the previous state is
        kept (stale until the next successful refresh) and False is returned.
        """
        try:
            project_raw, boards_raw = await asyncio.gather(
                self._api.get_project(self.project_id),
                self._api.list_project_boards(self.project_id),
            )
            boards = [Board.from_api(b) for b in boards_raw if isinstance(b, dict)]
            task_lists = await asyncio.gather(
                *(_board_tasks_or_empty(self._api, b.id) for b in boards)
            )
        except ApiError:
            logger.exception("Failed to load project %s", self.project_id)
            self._notifier.error(LOAD_FAILED_MESSAGE)
            return False

        self.project = Project.from_api(project_raw or {})
        self.boards = sort_boards(boards)
        self.store.replace_all(
            Task.from_api(t) for tasks in task_lists for t in tasks if isinstance(t, dict)
        )
        self.loaded = True
        logger.info(
            "Project %s loaded: %d boards, %d tasks",
            self.project_id,
            len(self.boards),
            len(self.store),
        )
        return True

    async def close(self) -> None:
        self.batcher.cancel()
        await self.batcher.join()

    # ---- queries ----

    def board_by_id(self, board_id: Any) -> Board | None:
        bid = normalize_id(board_id)
        for b in self.boards:
            if b.id == bid:
                return b
        return None

    def tasks_for_board(self, board_id: Any) -> list[Task]:
        return self.store.for_board(board_id)

    # ---- drag & drop ----

    def on_drag_end(self, active_id: Any, over_id: Any) -> DragOutcome:
        return self.reconciler.on_drag_end(active_id, over_id)

    # ---- permissions ----

    def is_project_member(self) -> bool:
        if self.project is None or self.user is None:
            return False
        if self.user.is_privileged:
            return True
        return self.project.member(self.user.id) is not None

    def is_project_admin(self) -> bool:
        if self.project is None or self.user is None:
            return False
        if self.user.is_privileged:
            return True
        member = self.project.member(self.user.id)
        return member is not None and member.role == "admin"

    def can_create_board(self) -> bool:
        return self.is_project_admin()

    def can_edit_board(self, board: Board) -> bool:
        if self.user is None:
            return False
        if self.is_project_admin():
            return True
        return bool(board.owner_id) and board.owner_id == self.user.id

    # ---- CRUD ----

    async def _with_toast(self, call: Awaitable[Any], *, success: str, error: str) -> bool:
        ok = await with_toast(call, self._notifier, success=success, error=error)
        if ok:
            await self.refresh()
        return ok

    async def create_board(self, title: str, description: str = "") -> bool:
        data = {"title": title, "description": description, "projectId": self.project_id}
        return await self._with_toast(
            self._api.create_board(data),
            success="Board created successfully",
            error="Operation failed",
        )

    async def update_board(self, board_id: str, *, title: str, description: str = "") -> bool:
        return await self._with_toast(
            self._api.update_board(normalize_id(board_id), {"title": title, "description": description}),
            success="Board updated successfully",
            error="Operation failed",
        )

    async def delete_board(self, board_id: str) -> bool:
        if not await self._confirm.confirm(DELETE_BOARD_PROMPT):
            return False
        return await self._with_toast(
            self._api.delete_board(normalize_id(board_id)),
            success="Board deleted successfully",
            error="Failed to delete board",
        )

    async def create_task(self, board_id: str, data: JsonDict, *, attachment: Any = None) -> bool:
        payload = dict(data)
        payload["board"] = normalize_id(board_id)
        return await self._with_toast(
            self._api.create_task(payload, attachment=attachment),
            success="Task created successfully",
            error="Failed to save task",
        )

    async def update_task(self, task_id: str, data: JsonDict, *, attachment: Any = None) -> bool:
        return await self._with_toast(
            self._api.update_task(normalize_id(task_id), dict(data), attachment=attachment),
            success="Task updated successfully",
            error="Failed to save task",
        )

    async def delete_task(self, task_id: str) -> bool:
        if not await self._confirm.confirm(DELETE_TASK_PROMPT):
            return False
        return await self._with_toast(
            self._api.delete_task(normalize_id(task_id)),
            success="Task deleted successfully",
            error="Failed to delete task",
        )

    # ---- project settings ----

    async def update_project(self, name: str, description: str = "") -> bool:
        return await self._with_toast(
            self._api.update_project(self.project_id, {"name": name, "description": description}),
            success="Project updated successfully",
            error="Failed to update project",
        )

    async def delete_project(self) -> bool:
        """Delete the whole project. Not refreshed afterwards; the caller drops the view."""
        name = self.project.name if self.project is not None else self.project_id
        prompt = (
            f'Are you sure you want to delete "{name}"? '
            "This permanently deletes all boards in this project and all tasks in those boards."
        )
        if not await self._confirm.confirm(prompt):
            return False
        ok = await with_toast(
            self._api.delete_project(self.project_id),
            self._notifier,
            success="Project deleted successfully",
            error="Failed to delete project",
        )
        if ok:
            await self.close()
        return ok

    async def add_member(self, user_id: str) -> bool:
        return await self._with_toast(
            self._api.assign_project(self.project_id, normalize_id(user_id)),
            success="Member added successfully",
            error="Failed to add member",
        )

    async def remove_member(self, user_id: str) -> bool:
        if not await self._confirm.confirm(REMOVE_MEMBER_PROMPT):
            return False
        return await self._with_toast(
            self._api.remove_project_member(self.project_id, normalize_id(user_id)),
            success="Member removed successfully",
            error="Failed to remove member",
        )

    async def update_member_role(self, user_id: str, role: str) -> bool:
        if role not in PROJECT_ROLES:
            raise ValueError(f"role must be one of {PROJECT_ROLES}, got {role!r}")
        return await self._with_toast(
            self._api.update_project_member_role(self.project_id, normalize_id(user_id), role),
            success="Role updated successfully",
            error="Failed to update role",
        )
