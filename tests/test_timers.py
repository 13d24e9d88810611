import asyncio

from vnd_re.engine.script import Instruction
from vnd_re.engine.timers import TimerManager

BODY = [Instruction("INC_VAR", "TICKS")]


def test_interval_clamped_and_ticks_delivered():
    ticks = []

    async def on_tick(timer):
        ticks.append(timer.tick_count)

    async def main():
        manager = TimerManager(on_tick, min_interval=5)
        timer = manager.start("T1", 1, BODY)
        assert timer.interval == 5
        await asyncio.sleep(0.1)
        manager.stop_all()
        return timer

    timer = asyncio.run(main())
    assert ticks[:3] == [1, 2, 3]
    assert timer.stopped


def test_stop_prevents_further_ticks():
    ticks = []

    async def on_tick(timer):
        ticks.append(timer.id)

    async def main():
        manager = TimerManager(on_tick, min_interval=1)
        manager.start("T1", 5, BODY)
        await asyncio.sleep(0.05)
        assert manager.stop("T1")
        assert not manager.stop("T1")
        seen = len(ticks)
        await asyncio.sleep(0.05)
        return seen

    seen = asyncio.run(main())
    assert seen > 0
    assert len(ticks) == seen


def test_pause_and_resume():
    ticks = []

    async def on_tick(timer):
        ticks.append(timer.tick_count)

    async def main():
        manager = TimerManager(on_tick, min_interval=1)
        manager.pause()
        timer = manager.start("T1", 5, BODY)
        assert timer.paused
        await asyncio.sleep(0.05)
        assert ticks == []
        manager.resume()
        await asyncio.sleep(0.05)
        manager.stop_all()

    asyncio.run(main())
    assert ticks


def test_restart_replaces_timer():
    async def on_tick(timer):
        pass

    async def main():
        manager = TimerManager(on_tick, min_interval=1)
        first = manager.start("T1", 1000, BODY)
        second = manager.start("T1", 2000, BODY)
        assert first.stopped
        assert manager.get("T1") is second
        assert len(manager) == 1
        manager.stop_all()

    asyncio.run(main())


def test_failing_tick_keeps_timer_running():
    ticks = []

    async def on_tick(timer):
        ticks.append(timer.tick_count)
        raise RuntimeError("boom")

    async def main():
        manager = TimerManager(on_tick, min_interval=1)
        manager.start("T1", 5, BODY)
        await asyncio.sleep(0.08)
        manager.stop_all()

    asyncio.run(main())
    assert len(ticks) >= 2


def test_state_round_trip():
    async def on_tick(timer):
        pass

    async def main():
        manager = TimerManager(on_tick, min_interval=1)
        manager.start("T1", 1000, BODY, tick_count=4)
        manager.start("T2", 2000, [Instruction("SCENE", "2")])
        manager.pause("T2")
        state = manager.export_state()

        other = TimerManager(on_tick, min_interval=1)
        other.import_state(state)
        restored = other.export_state()
        manager.stop_all()
        other.stop_all()
        return state, restored

    state, restored = asyncio.run(main())
    assert state == [
        {"id": "T1", "interval": 1000, "commands": ["INC_VAR TICKS"], "tick_count": 4, "paused": False},
        {"id": "T2", "interval": 2000, "commands": ["SCENE 2"], "tick_count": 0, "paused": True},
    ]
    assert restored == state
