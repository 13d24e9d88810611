"""Dialect B: unframed scene stream.

  bytes[16]       reserved (zero)
  per scene:
    u32           scene marker (0x01, or 0x81 for scenes with music)
    bytes[12]     reserved
    BS            wave path
    u32           bitmap marker
      2 -> bytes[8] reserved, BS bitmap path
      0 -> BS bitmap path, bytes[8] reserved
    u32           properties
    u32(0)*       padding
    [i32 -12]     optional sentinel, followed by more padding
    event group*  until the plausibility check fails

The stream ends at the first word that is not a scene marker.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PureWindowsPath

from .cursor import ByteCursor, DecodeError, ImplausibleLength
from .hotspots import HotspotAssembler, decode_event_groups, skip_zero_padding
from .model import Record, Scene, SimpleRecord
from .records import MAX_RESYNC_DISTANCE
from .tags import BitmapLayout, CommandType, SceneMarker

log = logging.getLogger(__name__)

RESERVED_PREFIX = 16
SCENE_RESERVED = 12
BITMAP_RESERVED = 8
PADDING_SENTINEL = -12

SCENE_START_MARKERS = frozenset(m.value for m in SceneMarker)


@dataclass(frozen=True)
class SceneStream:
    scenes: tuple[Scene, ...]
    start: int
    end: int
    errors: tuple[str, ...] = ()


def scene_name_from_path(path: str) -> str:
    """Dialect B scenes are known by their background bitmap."""
    if not path:
        return ""
    return PureWindowsPath(path).stem


def _read_path(cursor: ByteCursor, what: str) -> str:
    start = cursor.pos
    text = cursor.read_bs()
    if text is None:
        raise ImplausibleLength(f"Implausible {what} length", start)
    return text


def decode_scene(
    cursor: ByteCursor, index: int, max_distance: int = MAX_RESYNC_DISTANCE
) -> Scene:
    """Decode one scene starting at its marker word."""
    offset = cursor.pos
    marker = cursor.read_u32()
    cursor.skip(SCENE_RESERVED)

    wave_offset = cursor.pos
    wave_path = _read_path(cursor, "wave path")

    layout = cursor.read_u32()
    if layout == BitmapLayout.RESERVED_FIRST:
        cursor.skip(BITMAP_RESERVED)
        bitmap_path = _read_path(cursor, "bitmap path")
    elif layout == BitmapLayout.PATH_FIRST:
        bitmap_path = _read_path(cursor, "bitmap path")
        cursor.skip(BITMAP_RESERVED)
    else:
        raise DecodeError(f"Unknown bitmap marker {layout}", cursor.pos - 4)

    properties = cursor.read_u32()

    skip_zero_padding(cursor)
    if cursor.remaining >= 4 and cursor.peek_i32() == PADDING_SENTINEL:
        cursor.skip(4)
        skip_zero_padding(cursor)

    assembler = HotspotAssembler()
    groups = decode_event_groups(cursor, assembler, max_distance=max_distance)
    hotspots = assembler.finish()

    on_enter: tuple[Record, ...] = ()
    if wave_path:
        on_enter = (SimpleRecord(CommandType.PLAYWAV, wave_path, offset=wave_offset),)

    log.debug(
        "Scene %d at 0x%X: marker 0x%X, bitmap %r, %d groups, %d hotspots",
        index,
        offset,
        marker,
        bitmap_path,
        groups,
        len(hotspots),
    )
    return Scene(
        index=index,
        name=scene_name_from_path(bitmap_path),
        flag=marker,
        background_path=bitmap_path,
        hotspots=tuple(hotspots),
        on_enter_commands=on_enter,
        offset=offset,
        wave_path=wave_path,
        properties=properties,
    )


def decode_scene_stream(
    cursor: ByteCursor, max_distance: int = MAX_RESYNC_DISTANCE
) -> SceneStream:
    """Decode scenes until the stream stops looking like one.

    Never raises for malformed scene data; a scene that cannot be decoded
    ends the list and is reported in :attr:`SceneStream.errors`.
    """
    start = cursor.pos
    scenes: list[Scene] = []
    errors: list[str] = []

    if cursor.remaining < RESERVED_PREFIX:
        errors.append(f"Scene stream at 0x{start:X} shorter than its reserved prefix")
        return SceneStream(scenes=(), start=start, end=start, errors=tuple(errors))
    cursor.skip(RESERVED_PREFIX)

    while True:
        skip_zero_padding(cursor)
        if cursor.remaining < 4:
            break
        marker = cursor.peek_u32()
        if marker not in SCENE_START_MARKERS:
            log.debug("Scene stream ends at 0x%X (word 0x%X)", cursor.pos, marker)
            break
        scene_start = cursor.pos
        try:
            scenes.append(decode_scene(cursor, len(scenes), max_distance))
        except DecodeError as e:
            msg = f"Scene {len(scenes)} at 0x{scene_start:X}: {e}"
            log.warning("Scene stream stopped: %s", msg)
            errors.append(msg)
            cursor.seek(scene_start)
            break

    return SceneStream(scenes=tuple(scenes), start=start, end=cursor.pos, errors=tuple(errors))
