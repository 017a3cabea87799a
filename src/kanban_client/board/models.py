# src/kanban_client/board/models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)

# Global roles that may manage any project/board in the organization.
PRIVILEGED_ROLES = frozenset({"admin", "owner", "manager"})


def normalize_id(value: Any) -> str:
    """
    Coerce a backend reference to a plain string id.

    The API returns references either as raw ids or as embedded documents
    ({"_id": ..., "title": ...}); both must compare equal.
    """
    if value is None or value == "":
        return ""
    if isinstance(value, dict):
        inner = value.get("_id") or value.get("id")
        return normalize_id(inner)
    return str(value)


def parse_timestamp(raw: Any) -> datetime:
    """Parse an ISO-8601 timestamp; anything unparseable sorts as the epoch."""
    if not raw or not isinstance(raw, str):
        return _EPOCH
    s = raw.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return _EPOCH
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


class MoveStatus(StrEnum):
    """
    Per-task lifecycle of a board reassignment.

    idle -> pending -> resolved | rolled_back
    """

    IDLE = "idle"
    PENDING = "pending"
    RESOLVED = "resolved"
    ROLLED_BACK = "rolled_back"


@dataclass(slots=True)
class Task:
    id: str
    title: str
    # Raw reference as the API returned it: an id string or an embedded board object.
    board: Any
    status: str = ""
    assigned_to: list[str] = field(default_factory=list)
    description: str = ""
    attachment: str | None = None
    due_date: str | None = None
    priority: str | None = None
    raw: dict[str, Any] = field(default_factory=dict)

    @property
    def board_id(self) -> str:
        return normalize_id(self.board)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Task:
        assigned = data.get("assignedTo") or []
        if not isinstance(assigned, list):
            assigned = [assigned]
        return cls(
            id=normalize_id(data.get("_id") or data.get("id")),
            title=str(data.get("title") or ""),
            board=data.get("board"),
            status=str(data.get("status") or ""),
            assigned_to=[normalize_id(a) for a in assigned if normalize_id(a)],
            description=str(data.get("description") or ""),
            attachment=data.get("attachment"),
            due_date=data.get("dueDate"),
            priority=data.get("priority"),
            raw=dict(data),
        )


@dataclass(slots=True, frozen=True)
class Board:
    id: str
    title: str
    description: str = ""
    created_at: datetime = _EPOCH
    owner_id: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Board:
        return cls(
            id=normalize_id(data.get("_id") or data.get("id")),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            created_at=parse_timestamp(data.get("createdAt")),
            owner_id=normalize_id(data.get("owner")),
        )


def sort_boards(boards: list[Board]) -> list[Board]:
    """Oldest first (left to right on the board view); stable for equal timestamps."""
    return sorted(boards, key=lambda b: b.created_at)


@dataclass(slots=True, frozen=True)
class ProjectMember:
    user_id: str
    role: str = "member"


@dataclass(slots=True)
class Project:
    id: str
    name: str
    description: str = ""
    members: list[ProjectMember] = field(default_factory=list)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Project:
        members: list[ProjectMember] = []
        for m in data.get("members") or []:
            if isinstance(m, dict):
                user_id = normalize_id(m.get("user"))
                role = str(m.get("role") or "member")
            else:
                user_id, role = normalize_id(m), "member"
            if user_id:
                members.append(ProjectMember(user_id=user_id, role=role))
        return cls(
            id=normalize_id(data.get("_id") or data.get("id")),
            name=str(data.get("name") or data.get("title") or ""),
            description=str(data.get("description") or ""),
            members=members,
        )

    def member(self, user_id: str) -> ProjectMember | None:
        uid = normalize_id(user_id)
        if not uid:
            return None
        for m in self.members:
            if m.user_id == uid:
                return m
        return None


@dataclass(slots=True, frozen=True)
class User:
    id: str
    name: str = ""
    email: str = ""
    role: str = "member"

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id or "?"

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> User:
        return cls(
            id=normalize_id(data.get("_id") or data.get("id")),
            name=str(data.get("name") or ""),
            email=str(data.get("email") or ""),
            role=str(data.get("role") or "member"),
        )
