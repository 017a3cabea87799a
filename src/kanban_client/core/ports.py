# src/kanban_client/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The board logic depends on Protocols instead of concrete implementations.
This keeps the REST client, the console and the clock swappable and makes
the reconciliation logic testable in isolation (no ambient globals).
"""

from collections.abc import Callable
from typing import Any, Awaitable, Protocol

JsonDict = dict[str, Any]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


CallLater = Callable[[float, Callable[[], None]], TimerHandle]
# Schedules callback after delay seconds; asyncio's loop.call_later fits.


class Notifier(Protocol):
    """User-visible feedback (toasts). Fire-and-forget, must not raise."""

    def success(self, text: str) -> None: ...
    def error(self, text: str) -> None: ...


class ConfirmPrompt(Protocol):
    """Ask the user a yes/no question before a destructive action."""

    def confirm(self, message: str) -> Awaitable[bool]: ...


class SessionStore(Protocol):
    """Where the auth token and the signed-in user live between runs."""

    @property
    def token(self) -> str | None: ...

    @property
    def user(self) -> JsonDict | None: ...

    def save(self, token: str, user: JsonDict | None) -> None: ...
    def set_user(self, user: JsonDict | None) -> None: ...
    def clear(self) -> None: ...


class BoardApi(Protocol):
    """Subset of the backend API the project views need."""

    def get_project(self, project_id: str) -> Awaitable[JsonDict]: ...
    def list_projects(self) -> Awaitable[list[JsonDict]]: ...
    def list_project_boards(self, project_id: str) -> Awaitable[list[JsonDict]]: ...
    def list_board_tasks(self, board_id: str) -> Awaitable[list[JsonDict]]: ...

    def create_board(self, data: JsonDict) -> Awaitable[JsonDict]: ...
    def update_board(self, board_id: str, data: JsonDict) -> Awaitable[JsonDict]: ...
    def delete_board(self, board_id: str) -> Awaitable[Any]: ...

    def create_task(self, data: JsonDict, *, attachment: Any = None) -> Awaitable[JsonDict]: ...
    def update_task(
            self,
            task_id: str,
            data: JsonDict,
            *,
            attachment: Any = None,
    ) -> Awaitable[JsonDict]: ...
    def delete_task(self, task_id: str) -> Awaitable[Any]: ...

    def create_project(self, data: JsonDict) -> Awaitable[JsonDict]: ...
    def update_project(self, project_id: str, data: JsonDict) -> Awaitable[JsonDict]: ...
    def delete_project(self, project_id: str) -> Awaitable[Any]: ...
    def assign_project(self, project_id: str, user_id: str) -> Awaitable[JsonDict]: ...
    def remove_project_member(self, project_id: str, user_id: str) -> Awaitable[Any]: ...
    def update_project_member_role(self, project_id: str, user_id: str, role: str) -> Awaitable[JsonDict]: ...


class OrganizationApi(Protocol):
    """Organization endpoints: the caller's organization, its users, invitations."""

    def get_my_organization(self) -> Awaitable[JsonDict]: ...
    def list_organization_users(self) -> Awaitable[list[JsonDict]]: ...
    def invite_to_organization(self, email: str) -> Awaitable[JsonDict]: ...
