# src/kanban_client/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from ..api.errors import ApiError, friendly_error_message
from ..board.organization import invite_member, load_organization
from ..board.overview import create_project, list_projects_with_stats
from ..board.reconciler import DragAccepted, SkipReason
from ..board.view import PROJECT_ROLES, ProjectBoardView
from ..core.state import AppState
from .bootstrap import open_project

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /move, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        return await handler(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()

_SKIP_REPLIES = {
    SkipReason.NO_TARGET: "Nothing to move.",
    SkipReason.ALREADY_PENDING: "That task is still being moved.",
    SkipReason.TASK_NOT_FOUND: "No such task on this project.",
    SkipReason.BOARD_NOT_FOUND: "Drop target is neither a board nor a task.",
    SkipReason.SAME_BOARD: "Task is already on that board.",
}


def _need_view(state: AppState) -> ProjectBoardView | None:
    return state.view if state.view is not None and state.view.loaded else None


def render_board(view: ProjectBoardView) -> str:
    name = view.project.name if view.project is not None else view.project_id
    lines = [f"Project: {name} ({view.project_id})"]
    if not view.boards:
        lines.append("  (no boards)")
    for board in view.boards:
        tasks = view.tasks_for_board(board.id)
        noun = "task" if len(tasks) == 1 else "tasks"
        lines.append(f"[{board.id}] {board.title} ({len(tasks)} {noun})")
        for t in tasks:
            flag = " (moving)" if t.id in view.reconciler.pending else ""
            status = f" <{t.status}>" if t.status else ""
            lines.append(f"    - {t.id}  {t.title}{status}{flag}")
    return "\n".join(lines)


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str]) -> str:
    user = state.current_user()
    view = state.view
    project = view.project_id if view is not None else "-"
    pending = len(view.reconciler.pending) if view is not None else 0
    refetch = "scheduled" if view is not None and view.batcher.pending else "idle"
    return (
        "Status:\n"
        f"  API: {state.api.base_url}\n"
        f"  User: {user.display_name if user else 'not signed in'}\n"
        f"  Project: {project}\n"
        f"  Moves in flight: {pending}\n"
        f"  Refetch: {refetch}"
    )


async def cmd_login(state: AppState, args: list[str]) -> str:
    if len(args) != 2:
        return "Usage: /login <email> <password>"
    try:
        data = await state.api.login(args[0], args[1])
    except ApiError as e:
        state.notifier.error(friendly_error_message(e, "Login failed"))
        return "Not signed in."
    token = (data or {}).get("token")
    if not token:
        state.notifier.error("Login failed")
        return "Not signed in."
    state.session.save(token, (data or {}).get("user"))
    state.notifier.success("Login successful!")
    user = state.current_user()
    return f"Signed in as {user.display_name if user else args[0]}."


async def cmd_register(state: AppState, args: list[str]) -> str:
    if len(args) < 3:
        return "Usage: /register <name> <email> <password> [organization name]"
    name, email, password = args[0], args[1], args[2]
    org_name = " ".join(args[3:]) or f"{name}'s Organization"
    payload = {"name": name, "email": email, "password": password, "organizationName": org_name}
    try:
        data = await state.api.register(payload)
    except ApiError as e:
        state.notifier.error(friendly_error_message(e, "Registration failed"))
        return "Not registered."
    token = (data or {}).get("token")
    if token:
        state.session.save(token, (data or {}).get("user"))
    state.notifier.success("Registration successful!")
    return f"Registered {email}."


async def cmd_logout(state: AppState, args: list[str]) -> str:
    state.session.clear()
    if state.view is not None:
        await state.view.close()
        state.view = None
    state.notifier.success("Logged out successfully")
    return "Signed out."


async def cmd_projects(state: AppState, args: list[str]) -> str:
    try:
        stats = await list_projects_with_stats(state.api)
    except ApiError as e:
        state.notifier.error(friendly_error_message(e, "Failed to load projects"))
        return "No projects loaded."
    if not stats:
        return "No projects."
    lines = ["Projects:"]
    for s in stats:
        lines.append(
            f"  [{s.project.id}] {s.project.name}: "
            f"{s.boards} boards, {s.completed}/{s.tasks} tasks completed"
        )
    return "\n".join(lines)


async def cmd_open(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /open <project_id>"
    view = await open_project(state, args[0])
    if view is None:
        return "Project not opened."
    return render_board(view)


async def cmd_board(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    return render_board(view)


async def cmd_refresh(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    await view.batcher.refetch_now()
    return render_board(view)


async def cmd_move(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    if len(args) != 2:
        return "Usage: /move <task_id> <board_id | task_id>"
    if not view.is_project_member():
        return "Only project members can move tasks."

    outcome = view.on_drag_end(args[0], args[1])
    if isinstance(outcome, DragAccepted):
        # Result arrives as a toast; the prompt stays responsive meanwhile.
        return f"Moving {outcome.move.task_id} to {outcome.move.destination.title}..."
    return _SKIP_REPLIES[outcome.reason]


async def cmd_board_add(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    if not args:
        return "Usage: /board-add <title> [| description]"
    if not view.can_create_board():
        return "Only project admins can create boards."
    title, _, description = " ".join(args).partition("|")
    ok = await view.create_board(title.strip(), description.strip())
    return render_board(view) if ok else "Board not created."


async def cmd_board_rm(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    if len(args) != 1:
        return "Usage: /board-rm <board_id>"
    board = view.board_by_id(args[0])
    if board is None:
        return "No such board."
    if not view.can_edit_board(board):
        return "You cannot delete this board."
    ok = await view.delete_board(board.id)
    return render_board(view) if ok else "Board kept."


async def cmd_task_add(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    if len(args) < 2:
        return "Usage: /task-add <board_id> <title>"
    if view.board_by_id(args[0]) is None:
        return "No such board."
    if not view.is_project_member():
        return "Only project members can add tasks."
    ok = await view.create_task(args[0], {"title": " ".join(args[1:])})
    return render_board(view) if ok else "Task not created."


async def cmd_task_rm(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    if len(args) != 1:
        return "Usage: /task-rm <task_id>"
    if view.store.get(args[0]) is None:
        return "No such task."
    ok = await view.delete_task(args[0])
    return render_board(view) if ok else "Task kept."


async def cmd_task_edit(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    if len(args) < 2:
        return "Usage: /task-edit <task_id> <title> [| description]"
    if view.store.get(args[0]) is None:
        return "No such task."
    if not view.is_project_member():
        return "Only project members can edit tasks."
    title, sep, description = " ".join(args[1:]).partition("|")
    data = {"title": title.strip()}
    if sep:
        data["description"] = description.strip()
    ok = await view.update_task(args[0], data)
    return render_board(view) if ok else "Task not saved."


async def cmd_project_add(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /project-add <name> [| description]"
    name, _, description = " ".join(args).partition("|")
    if not await create_project(state.api, state.notifier, name.strip(), description.strip()):
        return "Project not created."
    return await cmd_projects(state, [])


async def cmd_project_edit(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    if not args:
        return "Usage: /project-edit <name> [| description]"
    if not view.is_project_admin():
        return "Only project admins can edit the project."
    name, _, description = " ".join(args).partition("|")
    ok = await view.update_project(name.strip(), description.strip())
    return render_board(view) if ok else "Project not saved."


async def cmd_project_rm(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    if not view.is_project_admin():
        return "Only project admins can delete the project."
    if not await view.delete_project():
        return "Project kept."
    state.view = None
    return "Project deleted. Use /projects to pick another one."


def _render_members(view: ProjectBoardView) -> str:
    members = view.project.members if view.project is not None else []
    if not members:
        return "No members."
    lines = ["Members:"]
    for m in members:
        you = " (you)" if view.user is not None and view.user.id == m.user_id else ""
        lines.append(f"  {m.user_id}  {m.role}{you}")
    return "\n".join(lines)


async def cmd_members(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    return _render_members(view)


async def cmd_member_add(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    if len(args) != 1:
        return "Usage: /member-add <user_id>"
    if not view.is_project_admin():
        return "Only project admins can manage members."
    ok = await view.add_member(args[0])
    return _render_members(view) if ok else "Member not added."


async def cmd_member_rm(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    if len(args) != 1:
        return "Usage: /member-rm <user_id>"
    if not view.is_project_admin():
        return "Only project admins can manage members."
    if view.project is None or view.project.member(args[0]) is None:
        return "No such member."
    ok = await view.remove_member(args[0])
    return _render_members(view) if ok else "Member kept."


async def cmd_member_role(state: AppState, args: list[str]) -> str:
    view = _need_view(state)
    if view is None:
        return "No project open. Use /open <project_id>."
    if len(args) != 2 or args[1].lower() not in PROJECT_ROLES:
        return "Usage: /member-role <user_id> <admin|member>"
    if not view.is_project_admin():
        return "Only project admins can manage members."
    if view.project is None or view.project.member(args[0]) is None:
        return "No such member."
    ok = await view.update_member_role(args[0], args[1].lower())
    return _render_members(view) if ok else "Role unchanged."


async def cmd_org(state: AppState, args: list[str]) -> str:
    org = await load_organization(state.api, state.notifier)
    if org is None:
        return "No organization loaded."
    lines = [f"Organization: {org.name or org.id}"]
    for u in org.users:
        email = f" <{u.email}>" if u.email else ""
        lines.append(f"  {u.id}  {u.name or '?'}{email}  {u.role}")
    return "\n".join(lines)


async def cmd_invite(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        return "Usage: /invite <email>"
    result = await invite_member(state.api, state.notifier, args[0])
    if result is None:
        return "No invitation sent."
    if result.email_sent:
        return f"Invited {result.email}."
    if result.link:
        return f"Share this invitation link with {result.email}: {result.link}"
    return f"Invitation for {result.email} created, but not mailed."


registry.register("help", cmd_help, "Show this help", aliases=["h", "?"])
registry.register("status", cmd_status, "Show API, session and board status")
registry.register("login", cmd_login, "Sign in: /login <email> <password>")
registry.register("register", cmd_register, "Create an account: /register <name> <email> <password> [org]")
registry.register("logout", cmd_logout, "Sign out and forget the saved session")
registry.register("projects", cmd_projects, "List projects with task counts")
registry.register("open", cmd_open, "Open a project board: /open <project_id>")
registry.register("board", cmd_board, "Show the open project's boards and tasks", aliases=["b"])
registry.register("refresh", cmd_refresh, "Reload the open project now")
registry.register("move", cmd_move, "Move a task: /move <task_id> <board_id | task_id>", aliases=["mv"])
registry.register("board-add", cmd_board_add, "Create a board: /board-add <title> [| description]")
registry.register("board-rm", cmd_board_rm, "Delete a board (asks first)")
registry.register("task-add", cmd_task_add, "Create a task: /task-add <board_id> <title>")
registry.register("task-rm", cmd_task_rm, "Delete a task (asks first)")
registry.register("task-edit", cmd_task_edit, "Edit a task: /task-edit <task_id> <title> [| description]")
registry.register("project-add", cmd_project_add, "Create a project: /project-add <name> [| description]")
registry.register("project-edit", cmd_project_edit, "Rename the open project: /project-edit <name> [| description]")
registry.register("project-rm", cmd_project_rm, "Delete the open project (asks first)")
registry.register("members", cmd_members, "List the open project's members")
registry.register("member-add", cmd_member_add, "Add a member: /member-add <user_id>")
registry.register("member-rm", cmd_member_rm, "Remove a member (asks first)")
registry.register("member-role", cmd_member_role, "Change a role: /member-role <user_id> <admin|member>")
registry.register("org", cmd_org, "Show your organization and its users")
registry.register("invite", cmd_invite, "Invite someone to your organization: /invite <email>")
