# src/kanban_client/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..board.models import User
from .ports import ConfirmPrompt, Notifier, SessionStore

if TYPE_CHECKING:
    from ..api.client import KanbanApiClient
    from ..board.view import ProjectBoardView


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    api: KanbanApiClient
    session: SessionStore
    notifier: Notifier
    confirm: ConfirmPrompt

    # Board page of the currently open project (None until /open).
    view: ProjectBoardView | None = None

    def current_user(self) -> User | None:
        raw = self.session.user
        if not self.session.token or not isinstance(raw, dict):
            return None
        return User.from_api(raw)
