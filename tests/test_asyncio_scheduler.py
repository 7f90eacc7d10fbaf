from __future__ import annotations

import asyncio
import threading

import pytest

from app.runtime.asyncio_scheduler import AsyncioScheduler


def test_rejects_non_positive_time_scale():
    with pytest.raises(ValueError):
        AsyncioScheduler(time_scale=0)


def test_wait_condition_times_out_on_scaled_clock():
    sched = AsyncioScheduler(time_scale=0.001)

    async def scenario():
        start = sched.now()
        woke = await sched.wait_condition(lambda: False, timeout=20)
        return woke, sched.now() - start

    woke, elapsed = asyncio.run(scenario())
    assert woke is False
    assert elapsed >= 19


def test_notify_from_another_thread_wakes_waiter():
    sched = AsyncioScheduler(time_scale=0.001)
    flag = threading.Event()

    async def scenario():
        def signal():
            flag.set()
            sched.notify()

        asyncio.get_running_loop().call_later(0.01, lambda: threading.Thread(target=signal).start())
        return await sched.wait_condition(flag.is_set, timeout=60_000)

    assert asyncio.run(scenario()) is True


def test_execute_runs_in_thread_once_per_step():
    sched = AsyncioScheduler()
    threads = []

    def step():
        threads.append(threading.current_thread().name)
        return len(threads)

    async def scenario():
        first = await sched.execute("s:1", step)
        again = await sched.execute("s:1", step)
        return first, again

    assert asyncio.run(scenario()) == (1, 1)
    assert len(threads) == 1
    assert threads[0] != threading.main_thread().name
