"""Repeating timers driving command lists.

Each timer is an asyncio task that sleeps for its interval and then hands
itself to ``on_tick``. The interpreter's tick handler goes through the same
lock as every other command list, so a tick that comes due while a list or
scene transition is running waits for it instead of interleaving.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence

from .script import Instruction, parse_instruction

log = logging.getLogger(__name__)

MIN_INTERVAL = 16  # ms


@dataclass(eq=False)
class Timer:
    id: str
    interval: int
    commands: tuple[Instruction, ...]
    tick_count: int = 0
    paused: bool = False
    stopped: bool = False
    running: bool = False
    task: asyncio.Task | None = field(default=None, repr=False)
    resumed: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "interval": self.interval,
            "commands": [str(c) for c in self.commands],
            "tick_count": self.tick_count,
            "paused": self.paused,
        }


class TimerManager:
    """Owns the running timers.

    Parameters
    ----------
    on_tick:
        Coroutine function called with the :class:`Timer` on every tick.
    min_interval:
        Shorter intervals are clamped to this many milliseconds.
    """

    def __init__(
        self,
        on_tick: Callable[[Timer], Awaitable[None]],
        min_interval: int = MIN_INTERVAL,
    ):
        self.on_tick = on_tick
        self.min_interval = min_interval
        self.paused = False
        self._timers: dict[str, Timer] = {}

    def __len__(self) -> int:
        return len(self._timers)

    def __contains__(self, timer_id: str) -> bool:
        return timer_id in self._timers

    def get(self, timer_id: str) -> Timer | None:
        return self._timers.get(timer_id)

    @property
    def timers(self) -> list[Timer]:
        return list(self._timers.values())

    def start(
        self,
        timer_id: str,
        interval: int,
        commands: Sequence[Instruction],
        tick_count: int = 0,
    ) -> Timer:
        """Start (or restart) a timer. Must be called from a running loop."""
        self.stop(timer_id)
        timer = Timer(
            id=timer_id,
            interval=max(self.min_interval, int(interval)),
            commands=tuple(commands),
            tick_count=tick_count,
        )
        if not self.paused:
            timer.resumed.set()
        else:
            timer.paused = True
        timer.task = asyncio.get_running_loop().create_task(self._loop(timer))
        self._timers[timer_id] = timer
        log.debug("Timer %s started (%d ms, %d commands)", timer_id, timer.interval, len(commands))
        return timer

    def stop(self, timer_id: str) -> bool:
        timer = self._timers.pop(timer_id, None)
        if timer is None:
            return False
        timer.stopped = True
        timer.resumed.set()
        # A tick in progress finishes on its own, the loop then exits
        if timer.task is not None and not timer.running:
            timer.task.cancel()
        log.debug("Timer %s stopped after %d ticks", timer_id, timer.tick_count)
        return True

    def stop_all(self) -> None:
        for timer_id in list(self._timers):
            self.stop(timer_id)

    def pause(self, timer_id: str | None = None) -> None:
        """Pause one timer, or all of them when *timer_id* is None."""
        if timer_id is None:
            self.paused = True
            targets = self.timers
        else:
            timer = self._timers.get(timer_id)
            targets = [timer] if timer is not None else []
        for timer in targets:
            timer.paused = True
            timer.resumed.clear()

    def resume(self, timer_id: str | None = None) -> None:
        if timer_id is None:
            self.paused = False
            targets = self.timers
        else:
            timer = self._timers.get(timer_id)
            targets = [timer] if timer is not None else []
        for timer in targets:
            timer.paused = False
            timer.resumed.set()

    async def _loop(self, timer: Timer) -> None:
        while not timer.stopped:
            await asyncio.sleep(timer.interval / 1000)
            await timer.resumed.wait()
            if timer.stopped:
                break
            timer.tick_count += 1
            timer.running = True
            try:
                await self.on_tick(timer)
            except Exception as e:
                log.warning("Timer %s tick %d failed: %s", timer.id, timer.tick_count, e)
            finally:
                timer.running = False

    # -- persistence -------------------------------------------------------

    def export_state(self) -> list[dict[str, Any]]:
        return [t.to_dict() for t in self._timers.values()]

    def import_state(self, entries: Sequence[dict[str, Any]]) -> None:
        """Replace all timers with *entries*. Must be called from a running loop."""
        self.stop_all()
        for entry in entries:
            commands = [parse_instruction(text) for text in entry.get("commands", [])]
            timer = self.start(
                str(entry["id"]),
                int(entry["interval"]),
                commands,
                tick_count=int(entry.get("tick_count", 0)),
            )
            if entry.get("paused"):
                self.pause(timer.id)
