# src/kanban_client/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time (the API token lives in the session store).
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "KANBAN"

DEFAULT_API_URL = "http://localhost:5005/api"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def normalize_api_base_url(raw: str | None) -> str:
    """
    Make sure the base URL ends with exactly one "/api".

    "http://h:5005"          -> "http://h:5005/api"
    "http://h:5005/api/"     -> "http://h:5005/api"
    "http://h:5005/api/api"  -> "http://h:5005/api"
    """
    url = (raw or "").strip() or DEFAULT_API_URL
    url = url.rstrip("/")
    if url.endswith("/api/api"):
        return url[: -len("/api")]
    if not url.endswith("/api"):
        return url + "/api"
    return url


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Backend API ----
    api_url: str
    http_connect_timeout: float
    http_read_timeout: float

    # ---- Board behaviour ----
    refetch_delay_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    session_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "kanban") or "kanban"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        # Accept the frontend-style VITE_API_URL too, handy when sharing one .env.
        api_url = normalize_api_base_url(_first_env(_k("API_URL"), "VITE_API_URL", default=None))

        http_connect_timeout = _env_float(_k("HTTP_CONNECT_TIMEOUT_SECONDS"), 5.0)
        http_read_timeout = _env_float(_k("HTTP_READ_TIMEOUT_SECONDS"), 30.0)

        refetch_delay_seconds = max(0.0, _env_float(_k("REFETCH_DELAY_SECONDS"), 1.0))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/kanban"))
        session_path = _env_path(_k("SESSION_PATH"), data_dir / "session.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_url=api_url,
            http_connect_timeout=http_connect_timeout,
            http_read_timeout=http_read_timeout,
            refetch_delay_seconds=refetch_delay_seconds,
            data_dir=data_dir,
            session_path=session_path,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
