# src/kanban_client/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, restores the saved session, then runs
the console REPL on an asyncio event loop.
"""

from __future__ import annotations

import asyncio
import logging
import sys

from ..cli.bootstrap import create_initial_state, open_project, restore_session, shutdown
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _run(state: AppState, project_id: str | None) -> None:
    try:
        if await restore_session(state):
            user = state.current_user()
            logger.info("Signed in as %s", user.display_name if user else "?")
            if project_id:
                await open_project(state, project_id)
        await run_console_loop(state)
    finally:
        await shutdown(state)


def main(argv: list[str] | None = None) -> None:
    args = list(sys.argv[1:] if argv is None else argv)
    project_id = args[0] if args else None

    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)

    try:
        asyncio.run(_run(state, project_id))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
