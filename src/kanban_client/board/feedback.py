# src/kanban_client/board/feedback.py

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import Any

from ..api.errors import ApiError, friendly_error_message
from ..core.ports import Notifier

logger = logging.getLogger(__name__)


async def with_toast(call: Awaitable[Any], notifier: Notifier, *, success: str, error: str) -> bool:
    """
    Await a backend call and report it as a toast.

    The backend's own message wins over the error fallback. ApiError is
    reported and swallowed (returns False); anything else propagates.
    """
    try:
        await call
    except ApiError as e:
        logger.warning("%s: %s", error, e)
        notifier.error(friendly_error_message(e, error))
        return False
    notifier.success(success)
    return True
