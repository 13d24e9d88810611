"""Engine context: one loaded project and all of its runtime state."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from ..vnd.model import Hotspot, ProjectModel
from .effects import Effects, EventType
from .interpreter import Command, CommandInterpreter
from .scenes import SceneManager
from .timers import MIN_INTERVAL, TimerManager
from .variables import VariableStore

log = logging.getLogger(__name__)


class Engine:
    """Owns the variable store, scene manager, interpreter and timers.

    Nothing is global: two engines over the same project are independent.
    The async methods must run on the event loop that owns the timers.
    """

    def __init__(
        self,
        project: ProjectModel,
        effects: Effects | None = None,
        min_timer_interval: int = MIN_INTERVAL,
    ):
        self.project = project
        self.effects = effects if effects is not None else Effects()
        self.variables = VariableStore()
        self.variables.load(project.variables)
        self.scenes = SceneManager(project.scenes)
        self.interpreter = CommandInterpreter(self.variables, self.scenes, self.effects)
        self.timers = TimerManager(self.interpreter.run_timer, min_timer_interval)
        self.interpreter.timers = self.timers
        self.paused = False
        self._hovered: Hotspot | None = None

    # -- navigation --------------------------------------------------------

    async def start(self, scene: int | str = 0) -> bool:
        """Enter the first scene (or *scene*)."""
        return await self.go_to_scene(scene)

    async def go_to_scene(self, ref: int | str) -> bool:
        index = self.scenes.resolve(ref)
        self._hovered = None
        return await self.interpreter.go_to_scene(index)

    async def execute(self, commands: Iterable[Command]) -> None:
        await self.interpreter.execute(commands)

    # -- hotspots ----------------------------------------------------------

    def hit_test(self, x: int, y: int) -> Hotspot | None:
        """Topmost enabled hotspot of the current scene containing ``(x, y)``."""
        scene = self.scenes.current_scene
        if scene is None:
            return None
        best: Hotspot | None = None
        for hotspot in scene.clickable_hotspots:
            if not self.scenes.is_hotspot_enabled(scene.index, hotspot.id):
                continue
            if hotspot.contains(x, y) and (best is None or hotspot.z >= best.z):
                best = hotspot
        return best

    async def activate(self, hotspot: Hotspot) -> None:
        self.interpreter.emit(EventType.HOTSPOT_CLICK, scene=self.scenes.current_index, hotspot=hotspot.id)
        await self.interpreter.execute(hotspot.trigger_commands)

    async def click(self, x: int, y: int) -> Hotspot | None:
        hotspot = self.hit_test(x, y)
        if hotspot is not None:
            await self.activate(hotspot)
        return hotspot

    async def hover(self, x: int, y: int) -> Hotspot | None:
        """Track the pointer; runs a hotspot's tip-text commands on entry."""
        hotspot = self.hit_test(x, y)
        if hotspot is self._hovered:
            return hotspot
        scene = self.scenes.current_index
        if self._hovered is not None:
            self.interpreter.emit(EventType.HOTSPOT_EXIT, scene=scene, hotspot=self._hovered.id)
        self._hovered = hotspot
        if hotspot is not None:
            self.interpreter.emit(EventType.HOTSPOT_ENTER, scene=scene, hotspot=hotspot.id)
            if hotspot.hover_commands:
                await self.interpreter.execute(hotspot.hover_commands)
        return hotspot

    # -- pause / stop ------------------------------------------------------

    def pause(self) -> None:
        """Stop timer delivery and mark media as paused."""
        if self.paused:
            return
        self.paused = True
        self.timers.pause()
        self.effects.pause_media()

    def resume(self) -> None:
        if not self.paused:
            return
        self.paused = False
        self.timers.resume()
        self.effects.resume_media()

    def stop(self) -> None:
        self.timers.stop_all()
        self.effects.stop_all()

    # -- persistence -------------------------------------------------------

    def save_state(self) -> dict[str, Any]:
        """Runtime state as a JSON-serialisable dict."""
        state = {"variables": self.variables.export_state()}
        state.update(self.scenes.export_state())
        state["active_timers"] = self.timers.export_state()
        return state

    def restore_state(self, state: dict[str, Any]) -> None:
        """Restore :meth:`save_state` output. Restarts timers on the running loop."""
        self.variables.import_state(state.get("variables", {}))
        self.scenes.import_state(state)
        self._hovered = None
        timers = state.get("active_timers", [])
        if timers:
            self.timers.import_state(timers)
        else:
            self.timers.stop_all()
        log.debug(
            "Restored state: scene %d, %d variables, %d timers",
            self.scenes.current_index,
            len(self.variables),
            len(timers),
        )
