# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from kanban_client.board.models import User
from kanban_client.board.view import ProjectBoardView

from .fakes import FakeBoardApi, FakeConfirm, FakeNotifier, ManualClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI helpers.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="kanban-test",
        log_level="DEBUG",
        api_url="http://backend.test/api",
        http_connect_timeout=1.0,
        http_read_timeout=1.0,
        refetch_delay_seconds=1.0,
        data_dir=tmp_path,
        session_path=tmp_path / "session.json",
    )


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def confirm() -> FakeConfirm:
    return FakeConfirm()


@pytest.fixture()
def api() -> FakeBoardApi:
    """Project p1 with three boards (created out of order) and three tasks."""
    return FakeBoardApi(
        project={
            "_id": "p1",
            "name": "Demo",
            "members": [
                {"user": {"_id": "u1", "name": "Ada"}, "role": "member"},
                {"user": "u2", "role": "admin"},
            ],
        },
        boards=[
            {"_id": "b2", "title": "Doing", "createdAt": "2024-01-02T00:00:00Z", "owner": "u1"},
            {"_id": "b1", "title": "To do", "createdAt": "2024-01-01T00:00:00Z", "owner": "u2"},
            {"_id": "b3", "title": "Done", "createdAt": "2024-01-03T00:00:00.000Z"},
        ],
        tasks=[
            {"_id": "t1", "title": "Write docs", "board": "b1", "status": "todo"},
            {"_id": "t2", "title": "Fix bug", "board": {"_id": "b2", "title": "Doing"}, "status": "in-progress"},
            {"_id": "t3", "title": "Ship", "board": "b3", "status": "completed"},
        ],
    )


@pytest.fixture()
def view(api: FakeBoardApi, notifier: FakeNotifier, confirm: FakeConfirm, clock: ManualClock) -> ProjectBoardView:
    return ProjectBoardView(
        "p1",
        api=api,
        notifier=notifier,
        confirm=confirm,
        user=User(id="u1", name="Ada", role="member"),
        refetch_delay_seconds=1.0,
        call_later=clock.call_later,
    )
