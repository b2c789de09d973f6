"""Per-session tracking of in-flight optimizations.

A newer request for the same session cancels the older one, which then
fails with ``OptimizationCancelled`` instead of producing a stale route.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

from .errors import OptimizationCancelled

T = TypeVar("T")

logger = logging.getLogger(__name__)


class OptimizationRegistry:
    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task] = {}

    def in_flight(self, session_id: str) -> bool:
        task = self._tasks.get(session_id)
        return task is not None and not task.done()

    def cancel(self, session_id: str) -> bool:
        task = self._tasks.get(session_id)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def run(self, session_id: str, work: Awaitable[T]) -> T:
        if self.cancel(session_id):
            logger.info("Superseding in-flight optimization for session %s", session_id)
        task = asyncio.ensure_future(work)
        self._tasks[session_id] = task
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            if task.cancelled() and not _current_task_cancelling():
                raise OptimizationCancelled() from None
            # The caller itself went away: stop the work too.
            task.cancel()
            raise
        finally:
            if self._tasks.get(session_id) is task:
                del self._tasks[session_id]


def _current_task_cancelling() -> bool:
    current = asyncio.current_task()
    return current is not None and current.cancelling() > 0
