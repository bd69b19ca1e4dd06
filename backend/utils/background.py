"""
Fire-and-forget tasks with logged failures.

Tasks are tracked until they finish so they are never garbage collected
mid-flight, and their exceptions are always retrieved and logged. Callers
that own the event loop drain() the set before the invocation ends.

Usage:
    tasks = BackgroundTasks()
    tasks.spawn(storage.delete_object(key), name="delete-photo")
    ...
    await tasks.drain()
"""

import asyncio
import logging
from typing import Coroutine, Any

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Set of spawned tasks plus a done-callback that logs errors."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()
        self.failures = 0

    def __len__(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str = "background") -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Background task {task.get_name()} was cancelled")
            return
        error = task.exception()
        if error is not None:
            self.failures += 1
            logger.error(f"Background task {task.get_name()} failed: {error!r}")

    async def drain(self, timeout: float = 10.0) -> None:
        """Wait for outstanding tasks; cancel whatever is still running after timeout."""
        if not self._tasks:
            return

        pending = list(self._tasks)
        done, not_done = await asyncio.wait(pending, timeout=timeout)
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning(f"Cancelled {len(not_done)} background task(s) still running after {timeout}s")
            await asyncio.gather(*not_done, return_exceptions=True)
