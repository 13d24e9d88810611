"""Scene navigation state: current scene, links and history."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Sequence

from ..vnd.model import Scene
from .script import EngineError, parse_int

log = logging.getLogger(__name__)

MAX_HISTORY = 100


class SceneNotFound(EngineError):
    pass


class Direction(str, Enum):
    FORWARD = "forward"
    BACKWARD = "backward"
    LEFT = "left"
    RIGHT = "right"


class SceneManager:
    """Tracks the current scene over a read-only scene list.

    History is browser-like: entering a scene drops any forward entries,
    :meth:`back` and :meth:`forward` move within it. At most *max_history*
    entries are kept.
    """

    def __init__(self, scenes: Sequence[Scene], max_history: int = MAX_HISTORY):
        self.scenes = tuple(scenes)
        self.max_history = max_history
        self.current_index = -1
        self.history: list[int] = []
        self.history_position = -1
        self.disabled_hotspots: set[tuple[int, int]] = set()
        self._transitioning = False

    @property
    def scene_count(self) -> int:
        return len(self.scenes)

    @property
    def current_scene(self) -> Scene | None:
        if 0 <= self.current_index < len(self.scenes):
            return self.scenes[self.current_index]
        return None

    @property
    def transitioning(self) -> bool:
        return self._transitioning

    # -- lookup ------------------------------------------------------------

    def get_scene(self, index: int) -> Scene:
        if not 0 <= index < len(self.scenes):
            raise SceneNotFound(f"No scene {index} (have {len(self.scenes)})")
        return self.scenes[index]

    def find_index(self, name: str) -> int | None:
        wanted = name.strip().lower()
        for scene in self.scenes:
            if scene.name.lower() == wanted:
                return scene.index
        return None

    def resolve(self, ref: str | int) -> int:
        """Resolve a scene reference to an index.

        Integers are 0-based indices. Text is either a 1-based scene number
        or a scene name (case-insensitive).
        """
        if isinstance(ref, int):
            index = ref
        else:
            number = parse_int(ref)
            if number is not None:
                index = number - 1
            else:
                found = self.find_index(ref)
                if found is None:
                    raise SceneNotFound(f"No scene named {ref!r}")
                index = found
        self.get_scene(index)
        return index

    def link_target(self, direction: Direction) -> int | None:
        scene = self.current_scene
        if scene is None:
            return None
        return scene.links.get(direction.value)

    # -- transitions -------------------------------------------------------

    def begin_transition(self) -> bool:
        """Claim the transition slot. Returns False if one is in progress."""
        if self._transitioning:
            return False
        self._transitioning = True
        return True

    def end_transition(self) -> None:
        self._transitioning = False

    def enter(self, index: int, record_history: bool = True) -> Scene:
        scene = self.get_scene(index)
        self.current_index = index
        if record_history:
            del self.history[self.history_position + 1 :]
            self.history.append(index)
            if len(self.history) > self.max_history:
                del self.history[: len(self.history) - self.max_history]
            self.history_position = len(self.history) - 1
        log.debug("Entered scene %d %r", index, scene.name)
        return scene

    # -- history -----------------------------------------------------------

    def can_go_back(self) -> bool:
        return self.history_position > 0

    def can_go_forward(self) -> bool:
        return self.history_position < len(self.history) - 1

    def back(self) -> int | None:
        """Step back in history and return the scene to show."""
        if not self.can_go_back():
            return None
        self.history_position -= 1
        return self.history[self.history_position]

    def forward(self) -> int | None:
        if not self.can_go_forward():
            return None
        self.history_position += 1
        return self.history[self.history_position]

    def reset(self) -> None:
        self.current_index = -1
        self.history.clear()
        self.history_position = -1
        self.disabled_hotspots.clear()
        self._transitioning = False

    # -- hotspot flags -----------------------------------------------------

    def set_hotspot_enabled(self, scene_index: int, hotspot_id: int, enabled: bool) -> None:
        scene = self.get_scene(scene_index)
        if not any(h.id == hotspot_id for h in scene.hotspots):
            raise EngineError(f"Scene {scene_index} has no hotspot {hotspot_id}")
        key = (scene_index, hotspot_id)
        if enabled:
            self.disabled_hotspots.discard(key)
        else:
            self.disabled_hotspots.add(key)

    def is_hotspot_enabled(self, scene_index: int, hotspot_id: int) -> bool:
        return (scene_index, hotspot_id) not in self.disabled_hotspots

    # -- persistence -------------------------------------------------------

    def export_state(self) -> dict[str, Any]:
        return {
            "current_scene_index": self.current_index,
            "navigation_history": list(self.history),
            "history_position": self.history_position,
            "hotspot_enabled_flags": {
                f"{s}:{h}": False for s, h in sorted(self.disabled_hotspots)
            },
        }

    def import_state(self, state: dict[str, Any]) -> None:
        history = [int(i) for i in state.get("navigation_history", []) if 0 <= int(i) < len(self.scenes)]
        self.history = history[-self.max_history :]
        position = int(state.get("history_position", len(self.history) - 1))
        self.history_position = max(-1, min(position, len(self.history) - 1))
        current = int(state.get("current_scene_index", -1))
        self.current_index = current if 0 <= current < len(self.scenes) else -1
        self.disabled_hotspots = set()
        for key, enabled in state.get("hotspot_enabled_flags", {}).items():
            scene, _, hotspot = key.partition(":")
            if not enabled:
                self.disabled_hotspots.add((int(scene), int(hotspot)))
        self._transitioning = False
