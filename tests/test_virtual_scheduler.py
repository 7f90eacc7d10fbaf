import asyncio

from app.runtime.virtual import VirtualScheduler


def test_sleep_fires_in_deadline_order():
    sched = VirtualScheduler()
    fired = []

    async def sleeper(name, seconds):
        await sched.sleep(seconds)
        fired.append((name, sched.now()))

    async def scenario():
        asyncio.get_running_loop().create_task(sleeper("b", 20))
        asyncio.get_running_loop().create_task(sleeper("a", 5))
        await sched.advance(4)
        assert fired == []
        await sched.advance(30)
        assert fired == [("a", 5.0), ("b", 20.0)]
        assert sched.now() == 34.0

    asyncio.run(scenario())


def test_wait_condition_wakes_on_notify_and_times_out():
    sched = VirtualScheduler()
    flag = {"set": False}
    results = []

    async def waiter():
        results.append(await sched.wait_condition(lambda: flag["set"], timeout=10))

    async def scenario():
        loop = asyncio.get_running_loop()
        loop.create_task(waiter())
        await sched.advance(3)
        flag["set"] = True
        sched.notify()
        await sched.settle()
        assert results == [True]
        assert sched.now() == 3.0

        flag["set"] = False
        loop.create_task(waiter())
        await sched.advance(10)
        assert results == [True, False]

        # already true: returns without parking
        flag["set"] = True
        assert await sched.wait_condition(lambda: flag["set"], timeout=1) is True

    asyncio.run(scenario())


def test_execute_runs_each_step_at_most_once():
    sched = VirtualScheduler()
    calls = []

    def charge(sid):
        calls.append(sid)
        return f"charged-{len(calls)}"

    async def scenario():
        first = await sched.execute("sub-1:charge:1:1", charge, "sub-1")
        replay = await sched.execute("sub-1:charge:1:1", charge, "sub-1")
        other = await sched.execute("sub-1:charge:1:2", charge, "sub-1")
        return first, replay, other

    first, replay, other = asyncio.run(scenario())
    assert first == replay == "charged-1"
    assert other == "charged-2"
    assert calls == ["sub-1", "sub-1"]
    assert sched.journal.forget("sub-1:") == 2


def test_run_until_stops_at_limit():
    sched = VirtualScheduler()

    async def scenario():
        asyncio.get_running_loop().create_task(sched.sleep(100))
        reached = await sched.run_until(lambda: False, limit=50)
        assert reached is False
        assert sched.next_deadline() == 100.0

    asyncio.run(scenario())
