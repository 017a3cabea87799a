# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
The auth token is NOT configuration: /login stores it in the session file.

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "KANBAN_APP_NAME": "App display name (default: kanban).",
    "KANBAN_LOG_LEVEL": "Console logging level (default: INFO).",
    # Backend API
    "KANBAN_API_URL": (
        "Backend base URL; '/api' is appended when missing (default: http://localhost:5005/api). "
        "VITE_API_URL is accepted as a fallback."
    ),
    "KANBAN_HTTP_CONNECT_TIMEOUT_SECONDS": "Connect timeout for API calls (default: 5).",
    "KANBAN_HTTP_READ_TIMEOUT_SECONDS": "Read timeout for API calls (default: 30).",
    # Board behaviour
    "KANBAN_REFETCH_DELAY_SECONDS": "Quiet interval before reloading after task moves (default: 1).",
    # Paths (gitignored)
    "KANBAN_DATA_DIR": "Local data directory for logs and session (default: .local/kanban).",
    "KANBAN_SESSION_PATH": "Saved session JSON (default: <data_dir>/session.json).",
}
