# app/runtime/asyncio_scheduler.py
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable

from app.runtime.base import Predicate, StepJournal, WaiterSet, resolve

logger = logging.getLogger("billing.runtime")


class AsyncioScheduler:
    """
    Live scheduler: real event-loop time, parked instances cost one pending
    future each. Blocking gateway calls run in the default thread pool.

    All methods except `notify` must be called from the loop's thread.
    """

    def __init__(self, *, time_scale: float = 1.0):
        if time_scale <= 0:
            raise ValueError("time_scale must be positive")
        self._time_scale = float(time_scale)
        self._waiters = WaiterSet()
        self._journal = StepJournal()
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def journal(self) -> StepJournal:
        return self._journal

    def _bind(self) -> asyncio.AbstractEventLoop:
        loop = asyncio.get_running_loop()
        self._loop = loop
        return loop

    def now(self) -> float:
        loop = self._loop
        if loop is None:
            return 0.0
        return loop.time() / self._time_scale

    async def sleep(self, seconds: float) -> None:
        self._bind()
        await asyncio.sleep(max(0.0, seconds) * self._time_scale)

    async def wait_condition(self, predicate: Predicate, *, timeout: float | None = None) -> bool:
        if predicate():
            return True
        loop = self._bind()
        future = loop.create_future()
        waiter = self._waiters.add(predicate, future)
        handle = None
        if timeout is not None:
            handle = loop.call_later(max(0.0, timeout) * self._time_scale, resolve, future, False)
        try:
            return await future
        finally:
            self._waiters.discard(waiter)
            if handle is not None:
                handle.cancel()

    def notify(self) -> None:
        loop = self._loop
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if loop is not None and running is not loop:
            loop.call_soon_threadsafe(self._waiters.notify)
            return
        self._waiters.notify()

    async def execute(self, step_id: str, fn: Callable[..., Any], *args: Any) -> Any:
        if step_id in self._journal:
            logger.info("step %s already executed, replaying recorded result", step_id)
            return self._journal.get(step_id)
        self._bind()
        result = await asyncio.to_thread(fn, *args)
        return self._journal.record(step_id, result)

    def forget_steps(self, prefix: str, *, keep: str | None = None) -> int:
        return self._journal.forget(prefix, keep=keep)
