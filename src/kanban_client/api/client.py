# src/kanban_client/api/client.py

"""
Async REST client for the Kanban backend.

One method per endpoint; every method returns the decoded JSON body.
Failures are raised as ApiError (see errors.py) so callers only ever catch one
exception family:
- non-2xx -> ApiError(status_code, server_message=<body "msg">)
- 401     -> AuthExpiredError, after clearing the session
- network/timeout -> ApiError(status_code=None), chained to the httpx error
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

from ..config import normalize_api_base_url
from ..core.ports import JsonDict, SessionStore
from .errors import ApiError, AuthExpiredError

logger = logging.getLogger(__name__)


def make_timeout(connect_s: float = 5.0, read_s: float = 30.0) -> httpx.Timeout:
    return httpx.Timeout(connect=connect_s, read=read_s, write=10.0, pool=connect_s)


def _server_message(resp: httpx.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        msg = body.get("msg") or body.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
    return None


def _as_list(data: Any, key: str) -> list[JsonDict]:
    """Some list endpoints answer with a bare array, others with {key: [...]}."""
    if isinstance(data, list):
        return data
    if isinstance(data, dict) and isinstance(data.get(key), list):
        return data[key]
    return []


def _form_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _attachment_file(attachment: Any) -> tuple[str, bytes]:
    if isinstance(attachment, tuple):
        name, content = attachment
        return str(name), bytes(content)
    path = Path(attachment)
    return path.name, path.read_bytes()


def task_request_body(data: JsonDict, attachment: Any = None) -> dict[str, Any]:
    """
    httpx keyword arguments for a task create/update.

    None fields are dropped. With an attachment the body is multipart form data
    (assignees as repeated "assignedTo[]" fields); without one it is JSON.
    """
    clean = {k: v for k, v in data.items() if v is not None}
    if attachment is None:
        return {"json": clean}

    form: dict[str, Any] = {}
    for key, value in clean.items():
        if key == "attachment":
            continue
        if key == "assignedTo" and isinstance(value, list):
            form["assignedTo[]"] = [_form_value(v) for v in value]
        else:
            form[key] = _form_value(value)
    return {"data": form, "files": {"attachment": _attachment_file(attachment)}}


class KanbanApiClient:
    def __init__(
        self,
        session: SessionStore,
        *,
        base_url: str | None = None,
        timeout: httpx.Timeout | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._session = session
        self.base_url = normalize_api_base_url(base_url)
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or make_timeout(),
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> KanbanApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # ---- low-level ----

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers: dict[str, str] = {}
        token = self._session.token
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            resp = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.TimeoutException as e:
            raise ApiError(f"Request timed out: {method} {path}") from e
        except httpx.RequestError as e:
            raise ApiError(f"Network error: {e.__class__.__name__}") from e

        logger.debug("%s %s -> %s", method, path, resp.status_code)

        if resp.status_code == 401:
            self._session.clear()
            msg = _server_message(resp)
            logger.warning("Unauthorized response for %s %s; session cleared", method, path)
            raise AuthExpiredError(
                msg or "Session expired. Please log in again.",
                status_code=401,
                server_message=msg,
            )

        if resp.is_error:
            msg = _server_message(resp)
            raise ApiError(
                msg or resp.reason_phrase or "Request failed",
                status_code=resp.status_code,
                server_message=msg,
            )

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError:
            return resp.text

    # ---- auth ----

    async def register(self, data: JsonDict) -> JsonDict:
        return await self._request("POST", "/auth/register", json=data)

    async def login(self, email: str, password: str) -> JsonDict:
        return await self._request("POST", "/auth/login", json={"email": email, "password": password})

    async def get_me(self) -> JsonDict:
        return await self._request("GET", "/auth/me")

    # ---- organizations ----

    async def get_my_organization(self) -> JsonDict:
        return await self._request("GET", "/organizations/me")

    async def list_organization_users(self) -> list[JsonDict]:
        return _as_list(await self._request("GET", "/organizations/users"), "users")

    async def invite_to_organization(self, email: str) -> JsonDict:
        return await self._request("POST", "/organizations/invite", json={"email": email})

    # ---- projects ----

    async def list_projects(self) -> list[JsonDict]:
        return _as_list(await self._request("GET", "/projects"), "projects")

    async def get_project(self, project_id: str) -> JsonDict:
        return await self._request("GET", f"/projects/{project_id}")

    async def create_project(self, data: JsonDict) -> JsonDict:
        return await self._request("POST", "/projects", json=data)

    async def update_project(self, project_id: str, data: JsonDict) -> JsonDict:
        return await self._request("PUT", f"/projects/{project_id}", json=data)

    async def delete_project(self, project_id: str) -> Any:
        return await self._request("DELETE", f"/projects/{project_id}")

    async def assign_project(self, project_id: str, user_id: str) -> JsonDict:
        return await self._request("POST", f"/projects/{project_id}/assign", json={"userId": user_id})

    async def remove_project_member(self, project_id: str, user_id: str) -> Any:
        return await self._request("DELETE", f"/projects/{project_id}/members/{user_id}")

    async def update_project_member_role(self, project_id: str, user_id: str, role: str) -> JsonDict:
        return await self._request(
            "PUT", f"/projects/{project_id}/members/{user_id}/role", json={"role": role}
        )

    # ---- boards ----

    async def list_project_boards(self, project_id: str) -> list[JsonDict]:
        return _as_list(await self._request("GET", f"/boards/project/{project_id}"), "boards")

    async def create_board(self, data: JsonDict) -> JsonDict:
        return await self._request("POST", "/boards", json=data)

    async def update_board(self, board_id: str, data: JsonDict) -> JsonDict:
        return await self._request("PUT", f"/boards/{board_id}", json=data)

    async def delete_board(self, board_id: str) -> Any:
        return await self._request("DELETE", f"/boards/{board_id}")

    # ---- tasks ----

    async def list_board_tasks(self, board_id: str) -> list[JsonDict]:
        return _as_list(await self._request("GET", f"/tasks/board/{board_id}"), "tasks")

    async def create_task(self, data: JsonDict, *, attachment: Any = None) -> JsonDict:
        return await self._request("POST", "/tasks", **task_request_body(data, attachment))

    async def update_task(self, task_id: str, data: JsonDict, *, attachment: Any = None) -> JsonDict:
        return await self._request("PUT", f"/tasks/{task_id}", **task_request_body(data, attachment))

    async def delete_task(self, task_id: str) -> Any:
        return await self._request("DELETE", f"/tasks/{task_id}")
