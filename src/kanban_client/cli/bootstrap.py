# src/kanban_client/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (REST client, session, console ports),
- restores a saved session and opens project board views.
"""

from __future__ import annotations

import logging

from ..api.client import KanbanApiClient, make_timeout
from ..api.errors import ApiError
from ..api.session import FileSessionStore
from ..board.view import ProjectBoardView
from ..config import get_settings
from ..connectors.console_ports import ConsoleConfirmPrompt, ConsoleNotifier
from ..core.ports import ConfirmPrompt, Notifier
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.session_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    notifier: Notifier | None = None,
    confirm: ConfirmPrompt | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    session = FileSessionStore(settings.session_path)
    api = KanbanApiClient(
        session,
        base_url=settings.api_url,
        timeout=make_timeout(settings.http_connect_timeout, settings.http_read_timeout),
    )
    return AppState(
        settings=settings,
        api=api,
        session=session,
        notifier=notifier or ConsoleNotifier(),
        confirm=confirm or ConsoleConfirmPrompt(),
    )


async def restore_session(state: AppState) -> bool:
    """
    Re-validate a saved session against /auth/me.

    A rejected token clears the session; the user has to /login again.
    """
    if not state.session.token:
        return False
    try:
        me = await state.api.get_me()
    except ApiError as e:
        logger.info("Saved session rejected (%s); cleared", e)
        state.session.clear()
        return False
    if isinstance(me, dict):
        state.session.set_user(me)
    return True


async def open_project(state: AppState, project_id: str) -> ProjectBoardView | None:
    """Replace the open board view with one for project_id and load it."""
    if state.view is not None:
        await state.view.close()
        state.view = None

    view = ProjectBoardView(
        project_id,
        api=state.api,
        notifier=state.notifier,
        confirm=state.confirm,
        user=state.current_user(),
        refetch_delay_seconds=float(getattr(state.settings, "refetch_delay_seconds", 1.0)),
    )
    if not await view.load():
        return None
    state.view = view
    return view


async def shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    if state.view is not None:
        try:
            await state.view.close()
        except Exception:
            logger.exception("Failed to close board view.")
    try:
        await state.api.aclose()
    except Exception:
        logger.debug("HTTP client close failed.", exc_info=True)
