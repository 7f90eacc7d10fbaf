# app/runtime/base.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Protocol

Predicate = Callable[[], bool]


class DurableScheduler(Protocol):
    """
    What a billing instance needs from its host: time, parking, command
    wake-ups and at-most-once execution of named steps.
    """

    def now(self) -> float: ...

    async def sleep(self, seconds: float) -> None: ...

    async def wait_condition(self, predicate: Predicate, *, timeout: float | None = None) -> bool: ...

    def notify(self) -> None: ...

    async def execute(self, step_id: str, fn: Callable[..., Any], *args: Any) -> Any: ...

    def forget_steps(self, prefix: str, *, keep: str | None = None) -> int: ...


@dataclass(eq=False)
class _Waiter:
    predicate: Predicate
    future: asyncio.Future


class WaiterSet:
    """Parked `wait_condition` callers, re-checked on every notify()."""

    def __init__(self) -> None:
        self._waiters: set[_Waiter] = set()

    def add(self, predicate: Predicate, future: asyncio.Future) -> _Waiter:
        waiter = _Waiter(predicate, future)
        self._waiters.add(waiter)
        return waiter

    def discard(self, waiter: _Waiter) -> None:
        self._waiters.discard(waiter)

    def notify(self) -> None:
        for waiter in list(self._waiters):
            if not waiter.future.done() and waiter.predicate():
                waiter.future.set_result(True)

    def __len__(self) -> int:
        return len(self._waiters)


class StepJournal:
    """step_id -> recorded result; a recorded step is never invoked again."""

    def __init__(self) -> None:
        self._results: dict[str, Any] = {}

    def __len__(self) -> int:
        return len(self._results)

    def __contains__(self, step_id: str) -> bool:
        return step_id in self._results

    def get(self, step_id: str) -> Any:
        return self._results[step_id]

    def record(self, step_id: str, result: Any) -> Any:
        self._results[step_id] = result
        return result

    def forget(self, prefix: str, *, keep: str | None = None) -> int:
        keys = [k for k in self._results if k.startswith(prefix) and k != keep]
        for k in keys:
            del self._results[k]
        return len(keys)


def resolve(future: asyncio.Future, value: Any) -> None:
    if not future.done():
        future.set_result(value)
