"""Project loader: runs the decode phases over a whole file.

  header -> variables -> dialect -> scene table (A) | scene stream (B)

Only a truncated header is fatal. Later phases are best-effort and their
stopping points are collected in :attr:`ProjectModel.errors`.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

from .cursor import ByteCursor, DecodeError
from .dialect import detect_dialect
from .header import decode_header, decode_variables
from .model import DirectionalLinks, ProjectModel, Scene
from .records import MAX_RESYNC_DISTANCE
from .scene_stream import decode_scene_stream
from .scene_table import decode_scene_table
from .tags import Dialect

log = logging.getLogger(__name__)


def link_sequential(scenes: tuple[Scene, ...]) -> tuple[Scene, ...]:
    """Default directional links: forward to the next scene, back to the previous."""
    last = len(scenes) - 1
    return tuple(
        replace(
            s,
            links=DirectionalLinks(
                forward=i + 1 if i < last else None,
                backward=i - 1 if i > 0 else None,
            ),
        )
        for i, s in enumerate(scenes)
    )


def decode_project(data: bytes, max_resync_distance: int = MAX_RESYNC_DISTANCE) -> ProjectModel:
    """Decode a complete project from *data*.

    Raises :class:`~vnd_re.vnd.cursor.OutOfBounds` if the buffer ends inside
    the header.
    """
    cursor = ByteCursor(data)
    header = decode_header(cursor)
    header_end = cursor.pos

    variables = decode_variables(cursor, header.var_count)
    variables_end = cursor.pos
    errors: list[str] = []
    if len(variables) < header.var_count:
        errors.append(
            f"Variable table truncated: {len(variables)} of {header.var_count} at 0x{variables_end:X}"
        )

    dialect = detect_dialect(cursor, variables_end)
    scenes: tuple[Scene, ...] = ()
    try:
        if dialect is Dialect.A:
            table = decode_scene_table(cursor, max_resync_distance)
            scenes = table.scenes
            if len(scenes) < table.count:
                errors.append(f"Scene table lists {table.count} scenes, decoded {len(scenes)}")
        else:
            stream = decode_scene_stream(cursor, max_resync_distance)
            scenes = stream.scenes
            errors.extend(stream.errors)
    except DecodeError as e:
        log.warning("Scene decoding stopped: %s", e)
        errors.append(str(e))

    log.info(
        "Dialect %s: %d scenes, %d hotspots",
        dialect.value,
        len(scenes),
        sum(len(s.hotspots) for s in scenes),
    )
    return ProjectModel(
        header=header,
        variables=tuple(variables),
        dialect=dialect,
        scenes=link_sequential(scenes),
        header_end=header_end,
        variables_end=variables_end,
        size=len(data),
        errors=tuple(errors),
    )


def load_project(path: str | Path, **kwargs: Any) -> ProjectModel:
    return decode_project(Path(path).read_bytes(), **kwargs)


class VndFile:
    """A project file on disk and its decoded model."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.basename = self.path.name
        self.data = b""
        self.project: ProjectModel | None = None

    def parse(self) -> ProjectModel:
        log.info("Parsing %s", self.basename)
        self.data = self.path.read_bytes()
        self.project = decode_project(self.data)
        return self.project

    def summary(self) -> dict[str, Any]:
        if self.project is None:
            self.parse()
        out = {"file": self.basename}
        out.update(self.project.summary())
        return out
