# src/kanban_client/board/refetch.py

from __future__ import annotations

"""
Debounced full refetch.

A burst of successful moves should end in ONE reload of the project, fired
after a quiet interval following the last move (reset-on-activity, not a
fixed-rate batch). A failed move bypasses the debounce and reloads at once.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from ..core.ports import CallLater, TimerHandle

logger = logging.getLogger(__name__)

RefetchFn = Callable[[], Awaitable[object]]


def loop_call_later(delay: float, callback: Callable[[], None]) -> TimerHandle:
    """Default timer: the running event loop's call_later."""
    return asyncio.get_running_loop().call_later(delay, callback)


class RefetchBatcher:
    def __init__(
        self,
        refetch: RefetchFn,
        *,
        delay_seconds: float = 1.0,
        call_later: CallLater = loop_call_later,
    ) -> None:
        self._refetch = refetch
        self._delay = max(0.0, float(delay_seconds))
        self._call_later = call_later
        self._handle: TimerHandle | None = None
        self._running: set[asyncio.Task[object]] = set()

    @property
    def pending(self) -> bool:
        """True while a debounced refetch is waiting for its quiet interval."""
        return self._handle is not None

    @property
    def delay_seconds(self) -> float:
        return self._delay

    def schedule(self) -> None:
        """(Re)start the quiet interval; an already waiting refetch is pushed out."""
        self.cancel()
        self._handle = self._call_later(self._delay, self._fire)
        logger.debug("Refetch scheduled in %.2fs", self._delay)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    async def refetch_now(self) -> None:
        """Reload immediately; a waiting debounced refetch would be redundant."""
        self.cancel()
        logger.debug("Refetch forced")
        await self._refetch()

    async def join(self) -> None:
        """Wait until refetches started by the timer have finished."""
        while self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    def _fire(self) -> None:
        self._handle = None
        logger.debug("Refetch quiet interval elapsed")
        task = asyncio.ensure_future(self._refetch())
        self._running.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[object]) -> None:
        self._running.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Debounced refetch failed", exc_info=task.exception())
