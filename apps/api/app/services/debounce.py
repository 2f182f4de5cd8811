"""
Debounced single-flight evaluation keyed by name.

Scheduling a key cancels whatever is still pending for that key, so only
the most recent request per key ever produces a result.
"""
from __future__ import annotations

import asyncio
import inspect
from typing import Any, Callable, Dict


class Debouncer:
    def __init__(self, delay: float) -> None:
        self.delay = delay
        self._pending: Dict[str, asyncio.Task] = {}

    def schedule(self, key: str, func: Callable[..., Any], *args: Any) -> asyncio.Task:
        """Run ``func(*args)`` after ``delay`` seconds unless superseded first."""
        self.cancel(key)
        task = asyncio.get_running_loop().create_task(self._run(key, func, args))
        self._pending[key] = task
        return task

    async def _run(self, key: str, func: Callable[..., Any], args: tuple) -> Any:
        try:
            await asyncio.sleep(self.delay)
            result = func(*args)
            if inspect.isawaitable(result):
                result = await result
            return result
        finally:
            if self._pending.get(key) is asyncio.current_task():
                del self._pending[key]

    def cancel(self, key: str) -> bool:
        task = self._pending.pop(key, None)
        if task is None or task.done():
            return False
        task.cancel()
        return True

    def cancel_all(self) -> None:
        for key in list(self._pending):
            self.cancel(key)

    def is_pending(self, key: str) -> bool:
        task = self._pending.get(key)
        return task is not None and not task.done()

    def __contains__(self, key: str) -> bool:
        return self.is_pending(key)
