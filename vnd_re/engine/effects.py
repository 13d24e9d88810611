"""Side effect interface between the interpreter and a presentation layer.

The interpreter never renders or plays anything itself. It calls methods on
an :class:`Effects` object; methods that stand for asynchronous work (media
start, scene change, pauses, external programs) are coroutines and the
interpreter awaits them in order.

:class:`Effects` implements every method as a no-op so a presentation layer
only overrides what it supports. :class:`RecordingEffects` keeps a log of
every call for headless runs and tests.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from .script import Instruction


class EventType(str, Enum):
    SCENE_ENTER = "scene_enter"
    SCENE_EXIT = "scene_exit"
    HOTSPOT_CLICK = "hotspot_click"
    HOTSPOT_ENTER = "hotspot_enter"
    HOTSPOT_EXIT = "hotspot_exit"
    TIMER_TICK = "timer_tick"
    COMMAND_EXECUTE = "command_execute"
    VARIABLE_CHANGE = "variable_change"
    MEDIA_START = "media_start"
    MEDIA_END = "media_end"
    MESSAGE = "message"
    LOAD_REQUEST = "load_request"
    SAVE_REQUEST = "save_request"
    ERROR = "error"


@dataclass(frozen=True)
class EngineEvent:
    type: EventType
    data: dict[str, Any] = field(default_factory=dict)


class Effects:
    """No-op effect collaborator."""

    # -- audio -------------------------------------------------------------

    async def play_wave(self, path: str, loop: bool = False, volume: int = 100) -> None:
        pass

    async def play_midi(self, path: str, loop: bool = False) -> None:
        pass

    async def play_cda(self, track: str, loop: bool = False) -> None:
        pass

    def stop_wave(self) -> None:
        pass

    def stop_midi(self) -> None:
        pass

    def stop_all(self) -> None:
        pass

    def pause_media(self) -> None:
        pass

    def resume_media(self) -> None:
        pass

    # -- display -----------------------------------------------------------

    async def play_avi(self, path: str, params: dict[str, Any]) -> None:
        pass

    def stop_avi(self) -> None:
        pass

    async def show_image(self, object_id: str, params: dict[str, Any]) -> None:
        pass

    async def show_text(self, object_id: str, params: dict[str, Any]) -> None:
        pass

    async def show_html(self, object_id: str, params: dict[str, Any]) -> None:
        pass

    def show_object(self, object_id: str) -> None:
        pass

    def hide_object(self, object_id: str) -> None:
        pass

    def invalidate(self) -> None:
        pass

    def set_cursor(self, spec: str | None) -> None:
        pass

    # -- navigation --------------------------------------------------------

    async def go_to_scene(self, index: int) -> None:
        pass

    async def navigate_forward(self) -> None:
        pass

    async def navigate_backward(self) -> None:
        pass

    async def navigate_left(self) -> None:
        pass

    async def navigate_right(self) -> None:
        pass

    # -- timers ------------------------------------------------------------

    def start_timer(self, timer_id: str, interval: int, commands: Sequence[Instruction]) -> None:
        pass

    def stop_timer(self, timer_id: str) -> None:
        pass

    # -- process -----------------------------------------------------------

    async def execute_external(self, program: str, args: str) -> None:
        pass

    async def run_project(self, path: str, args: str) -> None:
        pass

    async def pause(self, duration_ms: int) -> None:
        await asyncio.sleep(duration_ms / 1000)

    def quit(self) -> None:
        pass

    def emit_event(self, event: EngineEvent) -> None:
        pass


class RecordingEffects(Effects):
    """Headless effects that log every call as ``(method, args)``.

    Pauses sleep for ``duration * pause_scale`` so tests can run them
    instantly (the default) or in real time.
    """

    def __init__(self, pause_scale: float = 0.0):
        self.pause_scale = pause_scale
        self.calls: list[tuple[str, tuple]] = []
        self.events: list[EngineEvent] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def find(self, name: str) -> list[tuple]:
        return [args for n, args in self.calls if n == name]

    def events_of(self, event_type: EventType) -> list[EngineEvent]:
        return [e for e in self.events if e.type is event_type]

    async def play_wave(self, path, loop=False, volume=100):
        self._record("play_wave", path, loop, volume)

    async def play_midi(self, path, loop=False):
        self._record("play_midi", path, loop)

    async def play_cda(self, track, loop=False):
        self._record("play_cda", track, loop)

    def stop_wave(self):
        self._record("stop_wave")

    def stop_midi(self):
        self._record("stop_midi")

    def stop_all(self):
        self._record("stop_all")

    def pause_media(self):
        self._record("pause_media")

    def resume_media(self):
        self._record("resume_media")

    async def play_avi(self, path, params):
        self._record("play_avi", path, params)

    def stop_avi(self):
        self._record("stop_avi")

    async def show_image(self, object_id, params):
        self._record("show_image", object_id, params)

    async def show_text(self, object_id, params):
        self._record("show_text", object_id, params)

    async def show_html(self, object_id, params):
        self._record("show_html", object_id, params)

    def show_object(self, object_id):
        self._record("show_object", object_id)

    def hide_object(self, object_id):
        self._record("hide_object", object_id)

    def invalidate(self):
        self._record("invalidate")

    def set_cursor(self, spec):
        self._record("set_cursor", spec)

    async def go_to_scene(self, index):
        self._record("go_to_scene", index)

    async def navigate_forward(self):
        self._record("navigate_forward")

    async def navigate_backward(self):
        self._record("navigate_backward")

    async def navigate_left(self):
        self._record("navigate_left")

    async def navigate_right(self):
        self._record("navigate_right")

    def start_timer(self, timer_id, interval, commands):
        self._record("start_timer", timer_id, interval, tuple(commands))

    def stop_timer(self, timer_id):
        self._record("stop_timer", timer_id)

    async def execute_external(self, program, args):
        self._record("execute_external", program, args)

    async def run_project(self, path, args):
        self._record("run_project", path, args)

    async def pause(self, duration_ms):
        self._record("pause", duration_ms)
        await asyncio.sleep(duration_ms * self.pause_scale / 1000)

    def quit(self):
        self._record("quit")

    def emit_event(self, event):
        self.events.append(event)
