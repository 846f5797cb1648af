"""
Collapse concurrent calls for the same key into one in-flight coroutine.

Results are not remembered: once the flight lands, the next call starts fresh
and is expected to hit the content store.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict

logger = logging.getLogger(__name__)


def _consume_result(task: "asyncio.Task[Any]") -> None:
    # Mark failures as retrieved when every waiter has gone away.
    if not task.cancelled():
        task.exception()


class SingleFlight:
    """Per-key deduplication of in-flight coroutines within one event loop."""

    def __init__(self) -> None:
        self._calls: Dict[str, "asyncio.Task[Any]"] = {}

    def in_flight(self, key: str) -> bool:
        return key in self._calls

    async def do(self, key: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        """
        Run fn() for key, or join the call already running for key.

        The shared task is shielded: a waiter that gives up does not cancel
        the generation for the others. Errors reach every waiter.
        """
        task = self._calls.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, fn))
            task.add_done_callback(_consume_result)
            self._calls[key] = task
        else:
            logger.info(f"Joining in-flight call for {key}")
        return await asyncio.shield(task)

    async def _run(self, key: str, fn: Callable[[], Awaitable[Any]]) -> Any:
        try:
            return await fn()
        finally:
            self._calls.pop(key, None)
