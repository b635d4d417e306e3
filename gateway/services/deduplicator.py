"""
RequestDeduplicator - coalesces identical concurrent origin reads.

A landing view fires several reads at once and sibling components often
ask for the same collection; only one network call per URL is in flight
and every caller awaits its result.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from loguru import logger

T = TypeVar("T")


@dataclass
class DeduplicatorStats:
    """Statistics for request deduplication."""

    total: int = 0
    deduplicated: int = 0
    in_flight: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_requests": self.total,
            "deduplicated": self.deduplicated,
            "in_flight": self.in_flight,
        }


class RequestDeduplicator:
    """
    Shares one in-flight task between callers asking for the same key.

    Usage:
        dedup = RequestDeduplicator()
        envelope = await dedup.dedupe(url, lambda: transport_get(url))
    """

    def __init__(self, debug: bool = False):
        self._in_flight: dict[str, asyncio.Task[Any]] = {}
        self._debug = debug
        self._stats = DeduplicatorStats()

    async def dedupe(self, key: str, request_fn: Callable[[], Awaitable[T]]) -> T:
        task = self._in_flight.get(key)
        if task is None:
            self._stats.total += 1
            self._log(f"NEW: {key[:80]}")
            task = asyncio.ensure_future(request_fn())
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._release(key, done))
        else:
            self._stats.deduplicated += 1
            self._log(f"JOIN: {key[:80]}")

        # Shield so one cancelled waiter does not cancel the shared read.
        return await asyncio.shield(task)

    def _release(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark the failure retrieved even if every waiter was cancelled.
        if not task.cancelled() and task.exception() is not None:
            self._log(f"FAILED: {key[:80]} ({task.exception()!r})")

    async def cancel_all(self) -> int:
        """Cancel all in-flight requests."""
        tasks = list(self._in_flight.values())
        self._in_flight.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            self._log(f"CANCEL_ALL: {len(tasks)} requests cancelled")
        return len(tasks)

    def get_stats(self) -> DeduplicatorStats:
        self._stats.in_flight = len(self._in_flight)
        return self._stats

    def _log(self, message: str) -> None:
        if self._debug:
            logger.debug(f"[Deduplicator] {message}")
