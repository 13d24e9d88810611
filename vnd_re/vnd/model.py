"""Decoded project model.

Everything here is frozen: a ProjectModel is built once by the loader and
then only read by the engine and the export tools.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from .tags import COMMAND_TYPE_NAMES, Dialect, RecordTag


# ---------------------------------------------------------------------------
# Header and variables
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Header:
    flags: bytes = b""
    magic: str = ""
    version: str = ""
    format_type: int = 0
    project_name: str = ""
    editor: str = ""
    serial: str = ""
    project_id: str = ""
    registry: str = ""
    width: int = 0
    height: int = 0
    depth: int = 0
    flag: int = 0
    reserved: tuple[int, int, int] = (0, 0, 0)
    dll_path: str = ""
    var_count: int = 0


@dataclass(frozen=True)
class Variable:
    name: str
    value: int
    offset: int = 0


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Point:
    x: int
    y: int


@dataclass(frozen=True)
class Rectangle:
    left: int
    top: int
    right: int
    bottom: int

    @classmethod
    def from_corners(cls, a: Point, b: Point) -> Rectangle:
        return cls(min(a.x, b.x), min(a.y, b.y), max(a.x, b.x), max(a.y, b.y))

    @property
    def points(self) -> tuple[Point, ...]:
        return (Point(self.left, self.top), Point(self.right, self.bottom))

    def contains(self, x: int, y: int) -> bool:
        return self.left <= x <= self.right and self.top <= y <= self.bottom


@dataclass(frozen=True)
class Polygon:
    points: tuple[Point, ...]

    def contains(self, x: int, y: int) -> bool:
        """Even-odd ray casting test."""
        pts = self.points
        if len(pts) < 3:
            return False
        inside = False
        j = len(pts) - 1
        for i in range(len(pts)):
            xi, yi = pts[i].x, pts[i].y
            xj, yj = pts[j].x, pts[j].y
            if (yi > y) != (yj > y):
                cross = (xj - xi) * (y - yi) / (yj - yi) + xi
                if x < cross:
                    inside = not inside
            j = i
        return inside


Shape = Union[Rectangle, Polygon]


def shape_from_points(points: tuple[Point, ...]) -> Shape:
    """Two points describe a rectangle, anything else a polygon."""
    if len(points) == 2:
        return Rectangle.from_corners(points[0], points[1])
    return Polygon(points)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


class Record:
    """Common interface of the command stream record variants."""

    tag: int
    offset: int

    @property
    def command_type(self) -> int | None:
        return None

    @property
    def text(self) -> str:
        return ""

    @property
    def command_name(self) -> str | None:
        ct = self.command_type
        if ct is None:
            return None
        return COMMAND_TYPE_NAMES.get(ct, f"CMD_{ct}")

    def describe(self) -> str:
        name = self.command_name
        if name is None:
            return type(self).__name__
        return f"{name} {self.text}".rstrip()


@dataclass(frozen=True)
class NullRecord(Record):
    offset: int = 0
    tag: ClassVar[int] = RecordTag.NULL


@dataclass(frozen=True)
class MarkerRecord(Record):
    offset: int = 0
    tag: ClassVar[int] = RecordTag.MARKER


@dataclass(frozen=True)
class WrapperRecord(Record):
    sub_type: int
    payload: str
    offset: int = 0
    tag: ClassVar[int] = RecordTag.WRAPPER

    @property
    def command_type(self) -> int | None:
        return self.sub_type

    @property
    def text(self) -> str:
        return self.payload


@dataclass(frozen=True)
class ComplexRecord(Record):
    sub_type: int
    payload: str
    offset: int = 0
    tag: ClassVar[int] = RecordTag.COMPLEX

    @property
    def command_type(self) -> int | None:
        return self.sub_type

    @property
    def text(self) -> str:
        return self.payload


@dataclass(frozen=True)
class SimpleRecord(Record):
    tag: int
    payload: str
    offset: int = 0

    @property
    def command_type(self) -> int | None:
        return self.tag

    @property
    def text(self) -> str:
        return self.payload


@dataclass(frozen=True)
class ShapeRecord(Record):
    tag: int
    points: tuple[Point, ...]
    offset: int = 0

    def to_shape(self) -> Shape:
        return shape_from_points(self.points)

    def describe(self) -> str:
        return f"SHAPE[{self.tag}] {len(self.points)} points"


# ---------------------------------------------------------------------------
# Scenes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Hotspot:
    id: int
    source_image_path: str = ""
    x: int = 0
    y: int = 0
    z: int = 0
    trigger_commands: tuple[Record, ...] = ()
    shape: Shape | None = None
    hover_commands: tuple[Record, ...] = ()
    event_type: int | None = None
    offset: int = 0

    @property
    def position(self) -> tuple[int, int, int]:
        return (self.x, self.y, self.z)

    @property
    def dangling(self) -> bool:
        return self.shape is None

    def contains(self, x: int, y: int) -> bool:
        return self.shape is not None and self.shape.contains(x, y)


@dataclass(frozen=True)
class DirectionalLinks:
    forward: int | None = None
    backward: int | None = None
    left: int | None = None
    right: int | None = None

    def get(self, direction: str) -> int | None:
        return getattr(self, direction.lower(), None)


@dataclass(frozen=True)
class Scene:
    index: int
    name: str = ""
    flag: int = 0
    background_path: str = ""
    hotspots: tuple[Hotspot, ...] = ()
    links: DirectionalLinks = field(default_factory=DirectionalLinks)
    on_enter_commands: tuple[Record, ...] = ()
    on_exit_commands: tuple[Record, ...] = ()
    offset: int = 0
    wave_path: str = ""
    properties: int = 0

    @property
    def number(self) -> int:
        """1-based scene number as shown by the authoring tool."""
        return self.index + 1

    @property
    def clickable_hotspots(self) -> tuple[Hotspot, ...]:
        return tuple(h for h in self.hotspots if not h.dangling)

    @property
    def auto_commands(self) -> tuple[Record, ...]:
        """Commands run on entry: enter list, then dangling hotspot commands."""
        out = list(self.on_enter_commands)
        for h in self.hotspots:
            if h.dangling:
                out.extend(h.trigger_commands)
        return tuple(out)

    def iter_records(self):
        yield from self.on_enter_commands
        for h in self.hotspots:
            yield from h.trigger_commands
            yield from h.hover_commands
        yield from self.on_exit_commands


# ---------------------------------------------------------------------------
# Project
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProjectModel:
    header: Header
    variables: tuple[Variable, ...]
    dialect: Dialect
    scenes: tuple[Scene, ...]
    header_end: int = 0
    variables_end: int = 0
    size: int = 0
    errors: tuple[str, ...] = ()

    @property
    def hotspot_count(self) -> int:
        return sum(len(s.hotspots) for s in self.scenes)

    def scene_by_name(self, name: str) -> Scene | None:
        wanted = name.lower()
        for scene in self.scenes:
            if scene.name.lower() == wanted:
                return scene
        return None

    def summary(self) -> dict[str, Any]:
        """Return a summary dict suitable for JSON export."""
        h = self.header
        return {
            "header": {
                "magic": h.magic,
                "version": h.version,
                "format_type": h.format_type,
                "project_name": h.project_name,
                "editor": h.editor,
                "serial": h.serial,
                "project_id": h.project_id,
                "registry": h.registry,
                "width": h.width,
                "height": h.height,
                "depth": h.depth,
                "dll_path": h.dll_path,
                "var_count": h.var_count,
            },
            "dialect": self.dialect.value,
            "size": self.size,
            "header_end": self.header_end,
            "variables_end": self.variables_end,
            "variables": {v.name: v.value for v in self.variables},
            "scene_count": len(self.scenes),
            "hotspot_count": self.hotspot_count,
            "scenes": [
                {
                    "index": s.index,
                    "name": s.name,
                    "background": s.background_path,
                    "wave": s.wave_path,
                    "hotspots": len(s.hotspots),
                    "offset": s.offset,
                }
                for s in self.scenes
            ],
            "errors": list(self.errors),
        }
