"""Dialect A: count-prefixed scene table.

  u32             scene count (1..99)
  per scene:
    bytes[50]     name, zero padded
    u8            flag
    BS            background resource
    bytes[32]     reserved

Records carry no scene id. Scene ``i`` owns the records between the end of
its descriptor and the start of descriptor ``i + 1`` (the last scene runs to
the end of the buffer). When descriptors are not contiguous the next one is
located by scanning for a plausible descriptor.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass

from .cursor import MAX_STRING_LENGTH, ByteCursor, OutOfBounds
from .hotspots import HotspotAssembler
from .model import Scene
from .records import MAX_RESYNC_DISTANCE, iter_records

log = logging.getLogger(__name__)

SCENE_NAME_SIZE = 50
SCENE_RESERVED_SIZE = 32
MAX_SCENE_FLAG = 3


@dataclass(frozen=True)
class SceneDescriptor:
    index: int
    name: str
    flag: int
    resource: str
    offset: int
    end: int


@dataclass(frozen=True)
class SceneTable:
    count: int
    descriptors: tuple[SceneDescriptor, ...]
    scenes: tuple[Scene, ...]

    @property
    def scene_offsets(self) -> tuple[int, ...]:
        return tuple(d.offset for d in self.descriptors)


def _printable(raw: bytes) -> bool:
    return all(b >= 0x20 and b != 0x7F for b in raw)


def looks_like_descriptor(data: bytes, pos: int) -> bool:
    """Check whether a plausible scene descriptor starts at *pos*."""
    fixed = SCENE_NAME_SIZE + 1 + 4
    if pos < 0 or pos + fixed > len(data):
        return False
    raw = data[pos : pos + SCENE_NAME_SIZE]
    nul = raw.find(0)
    if nul == 0:
        return False
    if nul > 0:
        if any(raw[nul:]):
            return False
        raw = raw[:nul]
    if not _printable(raw):
        return False
    if data[pos + SCENE_NAME_SIZE] > MAX_SCENE_FLAG:
        return False
    (length,) = struct.unpack_from("<I", data, pos + SCENE_NAME_SIZE + 1)
    if length > MAX_STRING_LENGTH:
        return False
    if pos + fixed + length + SCENE_RESERVED_SIZE > len(data):
        return False
    return _printable(data[pos + fixed : pos + fixed + length])


def find_next_descriptor(data: bytes, start: int) -> int | None:
    for pos in range(start, len(data) - SCENE_NAME_SIZE):
        if 0x20 <= data[pos] != 0x7F and looks_like_descriptor(data, pos):
            return pos
    return None


def read_descriptor(cursor: ByteCursor, index: int) -> SceneDescriptor:
    offset = cursor.pos
    name = cursor.read_fixed_string(SCENE_NAME_SIZE)
    flag = cursor.read_u8()
    resource = cursor.read_bs_or_empty()
    cursor.skip(SCENE_RESERVED_SIZE)
    return SceneDescriptor(
        index=index, name=name, flag=flag, resource=resource, offset=offset, end=cursor.pos
    )


def _read_descriptors(cursor: ByteCursor, count: int) -> list[SceneDescriptor]:
    descriptors: list[SceneDescriptor] = []
    while len(descriptors) < count:
        if descriptors and not looks_like_descriptor(cursor.data, cursor.pos):
            nxt = find_next_descriptor(cursor.data, cursor.pos)
            if nxt is None:
                log.warning(
                    "Scene table: found %d of %d scene descriptors", len(descriptors), count
                )
                break
            cursor.seek(nxt)
        try:
            desc = read_descriptor(cursor, len(descriptors))
        except OutOfBounds as e:
            log.warning("Scene descriptor %d truncated: %s", len(descriptors), e)
            break
        log.debug("Scene %d %r at 0x%X", desc.index, desc.name, desc.offset)
        descriptors.append(desc)
    return descriptors


def decode_scene_table(
    cursor: ByteCursor, max_distance: int = MAX_RESYNC_DISTANCE
) -> SceneTable:
    """Decode a dialect A scene table starting at the scene count."""
    count = cursor.read_u32()
    descriptors = _read_descriptors(cursor, count)

    scenes: list[Scene] = []
    for i, desc in enumerate(descriptors):
        end = descriptors[i + 1].offset if i + 1 < len(descriptors) else cursor.size
        cursor.seek(desc.end)
        assembler = HotspotAssembler(flat=True)
        for record in iter_records(cursor, end, max_distance):
            assembler.add(record)
        hotspots = assembler.finish()
        scenes.append(
            Scene(
                index=desc.index,
                name=desc.name,
                flag=desc.flag,
                background_path=desc.resource,
                hotspots=tuple(hotspots),
                on_enter_commands=tuple(assembler.preamble),
                offset=desc.offset,
            )
        )
        log.debug(
            "Scene %d %r: %d hotspots in [0x%X, 0x%X)", desc.index, desc.name, len(hotspots), desc.end, end
        )
    cursor.seek(cursor.size)
    return SceneTable(count=count, descriptors=tuple(descriptors), scenes=tuple(scenes))
