# src/kanban_client/board/overview.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from ..api.errors import ApiError
from ..core.ports import BoardApi, JsonDict, Notifier
from .feedback import with_toast
from .models import Board, Project, normalize_id

logger = logging.getLogger(__name__)

COMPLETED_STATUS = "completed"


@dataclass(slots=True, frozen=True)
class ProjectStats:
    project: Project
    boards: int = 0
    tasks: int = 0
    completed: int = 0


async def _project_stats(api: BoardApi, raw: JsonDict) -> ProjectStats:
    project = Project.from_api(raw)
    try:
        boards = [Board.from_api(b) for b in await api.list_project_boards(project.id)]
    except ApiError:
        logger.warning("Failed to list boards of project %s", project.id, exc_info=True)
        return ProjectStats(project=project)

    total = 0
    completed = 0
    for board in boards:
        try:
            tasks = await api.list_board_tasks(board.id)
        except ApiError:
            logger.debug("Skipping board %s in stats", board.id, exc_info=True)
            continue
        total += len(tasks)
        completed += sum(1 for t in tasks if str(t.get("status") or "") == COMPLETED_STATUS)

    return ProjectStats(project=project, boards=len(boards), tasks=total, completed=completed)


async def list_projects_with_stats(api: BoardApi) -> list[ProjectStats]:
    """
    Every visible project with its board/task/completed counts.

    Listing projects failing raises ApiError; a failing board or task fetch
    only zeroes that part of the counts.
    """
    projects = [
        p
        for p in await api.list_projects()
        if isinstance(p, dict) and normalize_id(p.get("_id") or p.get("id"))
    ]
    return list(await asyncio.gather(*(_project_stats(api, p) for p in projects)))


async def create_project(api: BoardApi, notifier: Notifier, name: str, description: str = "") -> bool:
    return await with_toast(
        api.create_project({"name": name, "description": description}),
        notifier,
        success="Project created successfully",
        error="Failed to create project",
    )
