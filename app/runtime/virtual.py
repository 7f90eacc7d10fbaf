# app/runtime/virtual.py
from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Any, Callable

from app.runtime.base import Predicate, StepJournal, WaiterSet, resolve


class VirtualScheduler:
    """
    Deterministic scheduler on a virtual clock.

    Nothing fires until the driver calls `advance()` / `run_until()`; timers
    fire in deadline order and every woken task runs to its next suspension
    point before the clock moves again. Steps execute inline.
    """

    settle_rounds = 20

    def __init__(self, start: float = 0.0):
        self._now = float(start)
        self._timers: list[tuple[float, int, asyncio.Future, Any]] = []
        self._seq = itertools.count()
        self._waiters = WaiterSet()
        self._journal = StepJournal()

    @property
    def journal(self) -> StepJournal:
        return self._journal

    def now(self) -> float:
        return self._now

    def _schedule(self, delay: float, value: Any) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        heapq.heappush(self._timers, (self._now + max(0.0, delay), next(self._seq), future, value))
        return future

    async def sleep(self, seconds: float) -> None:
        await self._schedule(seconds, None)

    async def wait_condition(self, predicate: Predicate, *, timeout: float | None = None) -> bool:
        if predicate():
            return True
        if timeout is None:
            future = asyncio.get_running_loop().create_future()
        else:
            future = self._schedule(timeout, False)
        waiter = self._waiters.add(predicate, future)
        try:
            return await future
        finally:
            self._waiters.discard(waiter)

    def notify(self) -> None:
        self._waiters.notify()

    async def execute(self, step_id: str, fn: Callable[..., Any], *args: Any) -> Any:
        if step_id in self._journal:
            return self._journal.get(step_id)
        return self._journal.record(step_id, fn(*args))

    def forget_steps(self, prefix: str, *, keep: str | None = None) -> int:
        return self._journal.forget(prefix, keep=keep)

    # --- driver side ---

    def next_deadline(self) -> float | None:
        while self._timers and self._timers[0][2].done():
            heapq.heappop(self._timers)
        return self._timers[0][0] if self._timers else None

    async def settle(self) -> None:
        for _ in range(self.settle_rounds):
            await asyncio.sleep(0)

    async def advance(self, seconds: float) -> None:
        await self.advance_to(self._now + seconds)

    async def advance_to(self, target: float) -> None:
        await self.settle()
        while True:
            deadline = self.next_deadline()
            if deadline is None or deadline > target:
                break
            _, _, future, value = heapq.heappop(self._timers)
            self._now = max(self._now, deadline)
            resolve(future, value)
            await self.settle()
        self._now = max(self._now, target)

    async def run_until(self, predicate: Predicate, *, limit: float = 86400.0) -> bool:
        """Fire timers one by one until `predicate()` holds or `limit` seconds pass."""
        stop = self._now + limit
        await self.settle()
        while not predicate():
            deadline = self.next_deadline()
            if deadline is None or deadline > stop:
                return predicate()
            await self.advance_to(deadline)
        return True
