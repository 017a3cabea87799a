# src/kanban_client/connectors/console_ports.py

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleNotifier:
    """Toasts for the console: one timestamped line per event."""

    def __init__(self, stream=None) -> None:
        self._stream = stream

    def _print(self, tag: str, text: str) -> None:
        stream = self._stream or sys.stdout
        try:
            print(f"[{_ts_local()}] [{tag}] {text}", file=stream, flush=True)
        except (OSError, ValueError):
            # Closed/broken stdout must not break a move in flight.
            logger.debug("Notifier write failed", exc_info=True)

    def success(self, text: str) -> None:
        logger.info("notify ok: %s", text)
        self._print("OK", text)

    def error(self, text: str) -> None:
        logger.info("notify error: %s", text)
        self._print("ERROR", text)


class ConsoleConfirmPrompt:
    """y/N question on stdin, read off the event loop thread."""

    async def confirm(self, message: str) -> bool:
        try:
            answer = await asyncio.to_thread(input, f"{message} [y/N]: ")
        except EOFError:
            return False
        return answer.strip().lower() in {"y", "yes"}
