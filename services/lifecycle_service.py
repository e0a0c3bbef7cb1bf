from __future__ import annotations
import asyncio
import logging
from typing import Coroutine, Set

logger = logging.getLogger(__name__)


class LifecycleScope:
    """
    Task scope tied to a view's lifetime.
    cancel() stops everything still pending; work launched afterwards is dropped.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()
        self.cancelled = False

    @property
    def active(self) -> int:
        return len(self._tasks)

    def launch(self, coro: Coroutine) -> asyncio.Task | None:
        if self.cancelled:
            coro.close()
            return None
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.debug("Lifecycle task cancelled")
            return
        err = task.exception()
        if err is not None:
            logger.error("Lifecycle task failed", exc_info=err)

    def cancel(self) -> None:
        self.cancelled = True
        for task in list(self._tasks):
            task.cancel()
