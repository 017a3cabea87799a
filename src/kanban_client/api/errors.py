# src/kanban_client/api/errors.py

from __future__ import annotations


class ApiError(RuntimeError):
    """
    A backend call failed.

    status_code is None for transport failures (connection refused, timeout).
    server_message is the response body's "msg" field, when the backend sent one.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        server_message: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.server_message = server_message

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"HTTP {self.status_code}: {self.message}"


class AuthExpiredError(ApiError):
    """401 from the backend; the stored session has already been cleared."""


def friendly_error_message(err: BaseException, default: str) -> str:
    """Text for an error toast: the backend's own message if it sent one, else default."""
    if isinstance(err, ApiError) and err.server_message:
        return err.server_message
    return default
