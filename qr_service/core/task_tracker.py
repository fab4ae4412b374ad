"""
Background Task Tracker

Owns detached asyncio tasks that must not block the request that spawned them
(scan logging after a redirect decision).

Design:
- One tracker per application instance, created on startup (app.state)
- Strong references are held until a task finishes so it cannot be
  garbage-collected mid-flight
- Failures are logged from a done callback and never re-raised
- On shutdown, in-flight tasks get a grace period, then are cancelled
"""

import asyncio
import logging
from typing import Any, Coroutine, Optional, Set

logger = logging.getLogger(__name__)


class BackgroundTaskTracker:
    """Spawns fire-and-forget tasks and keeps track of them until they finish."""

    def __init__(self):
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> Optional[asyncio.Task]:
        """
        Schedule ``coro`` as a detached task.

        Returns:
            The created task, or None if the tracker is already draining
            (the coroutine is closed without running).
        """
        if self._closed:
            logger.warning(f"Task tracker closed, dropping background task {name or coro!r}")
            coro.close()
            return None

        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.info(f"Background task {task.get_name()} cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                f"Background task {task.get_name()} failed: {exc}",
                exc_info=(type(exc), exc, exc.__traceback__)
            )

    async def drain(self, timeout: float = 5.0) -> None:
        """
        Wait for in-flight tasks, cancelling whatever is left after ``timeout``.

        Dropped tasks are an accepted loss: scan analytics are best-effort.
        """
        self._closed = True
        if not self._tasks:
            return

        logger.info(f"Draining {len(self._tasks)} background task(s)")
        done, pending = await asyncio.wait(set(self._tasks), timeout=timeout)

        for task in pending:
            task.cancel()
        if pending:
            logger.warning(f"Cancelled {len(pending)} background task(s) still running after {timeout}s")
            await asyncio.gather(*pending, return_exceptions=True)
