"""
Phase-scoped timers and tasks on the asyncio event loop.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set

logger = logging.getLogger("timers")


class PhaseTimers:
    """
    Owns every timer and background task started for one phase.

    cancel_all() must be called on phase exit so nothing scheduled for an
    earlier phase can fire into a later one.
    """

    def __init__(self, name: str = "phase"):
        self.name = name
        self._handles: List[asyncio.TimerHandle] = []
        self._tasks: Set[asyncio.Task] = set()

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> asyncio.TimerHandle:
        """Schedule a single-shot callback."""
        loop = asyncio.get_running_loop()
        handle = loop.call_later(max(0.0, delay), callback, *args)
        self._handles.append(handle)
        return handle

    def every(self, interval: float, callback: Callable[[], Any]) -> asyncio.Task:
        """Call callback every interval seconds until cancelled."""
        async def _ticker():
            while True:
                await asyncio.sleep(interval)
                callback()

        return self.spawn(_ticker())

    def spawn(self, coro: Awaitable[Any]) -> asyncio.Task:
        """Run a coroutine as a task owned by this phase."""
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("[%s] background task failed: %r", self.name, exc)

    def cancel_handle(self, handle: Optional[asyncio.TimerHandle]) -> None:
        if handle is None:
            return
        handle.cancel()
        if handle in self._handles:
            self._handles.remove(handle)

    def cancel_all(self) -> None:
        """Cancel all timers and tasks, except the task currently running this call."""
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()

        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        for task in list(self._tasks):
            if task is not current:
                task.cancel()
                self._tasks.discard(task)
