# src/kanban_client/api/session.py

"""
Session persistence: auth token + signed-in user.

Stands in for browser local storage. Injected into the REST client as the
token provider, so nothing reads credentials from globals.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class MemorySessionStore:
    """Session kept in memory only (tests, one-off runs)."""

    def __init__(self, token: str | None = None, user: dict[str, Any] | None = None) -> None:
        self._token = token
        self._user = user

    @property
    def token(self) -> str | None:
        return self._token

    @property
    def user(self) -> dict[str, Any] | None:
        return self._user

    def save(self, token: str, user: dict[str, Any] | None) -> None:
        self._token = token
        self._user = user

    def set_user(self, user: dict[str, Any] | None) -> None:
        self._user = user

    def clear(self) -> None:
        self._token = None
        self._user = None


class FileSessionStore(MemorySessionStore):
    """
    Session persisted as JSON ({"token": ..., "user": {...}}).

    Writes go through a temp file + os.replace, and the file is made private:
    it holds a bearer token.
    """

    def __init__(self, path: str | Path) -> None:
        super().__init__()
        self._path = Path(path)
        self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> None:
        if not self._path.exists():
            return
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read session from %s", self._path)
            return
        if not isinstance(data, dict):
            return
        token = data.get("token")
        user = data.get("user")
        self._token = token if isinstance(token, str) and token else None
        self._user = user if isinstance(user, dict) else None
        logger.info("Loaded session from %s (signed_in=%s)", self._path, self._token is not None)

    def _write(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(
            json.dumps({"token": self._token, "user": self._user}, ensure_ascii=False, indent=2),
            "utf-8",
        )
        os.replace(tmp, self._path)
        with contextlib.suppress(OSError):
            os.chmod(self._path, 0o600)

    def save(self, token: str, user: dict[str, Any] | None) -> None:
        super().save(token, user)
        self._write()

    def set_user(self, user: dict[str, Any] | None) -> None:
        super().set_user(user)
        self._write()

    def clear(self) -> None:
        super().clear()
        with contextlib.suppress(FileNotFoundError):
            self._path.unlink()
