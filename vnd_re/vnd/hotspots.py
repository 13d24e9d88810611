"""Event groups and hotspot assembly.

An event group is::

  u32  event type   (<= 10)
  u32  command count (1..50)
  record[count]

followed by optional zero padding and then, optionally, either a shape
record (100..110) or a tip-text run: FONT (39), PLAYTEXT (38) and a trailing
shape. Each group becomes one hotspot; the shape makes it clickable.

Dialect A has no groups. There the records of a scene form a flat run where
a PLAYBMP command opens the next hotspot and a shape closes it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .cursor import ByteCursor, DecodeError, OutOfBounds
from .model import Hotspot, MarkerRecord, NullRecord, Record, ShapeRecord
from .records import MAX_RESYNC_DISTANCE, decode_record, decode_record_resync, is_kept
from .tags import CommandType, is_shape_tag

log = logging.getLogger(__name__)

MAX_EVENT_TYPE = 10
MAX_GROUP_COMMANDS = 50


def parse_image_payload(text: str) -> tuple[str, int, int, int]:
    """Split a ``"path x y z"`` image payload.

    Up to three trailing integers are taken as the position, missing ones
    default to 0.
    """
    parts = text.split()
    nums: list[int] = []
    while len(parts) > 1 and len(nums) < 3:
        try:
            nums.insert(0, int(parts[-1]))
        except ValueError:
            break
        parts.pop()
    nums += [0] * (3 - len(nums))
    return " ".join(parts), nums[0], nums[1], nums[2]


@dataclass
class _PendingHotspot:
    id: int
    offset: int
    event_type: int | None = None
    image_path: str = ""
    x: int = 0
    y: int = 0
    z: int = 0
    commands: list[Record] = field(default_factory=list)
    hover: list[Record] = field(default_factory=list)

    def has_content(self) -> bool:
        return bool(self.commands or self.hover or self.image_path)

    def set_image(self, record: Record) -> None:
        self.image_path, self.x, self.y, self.z = parse_image_payload(record.text)


class HotspotAssembler:
    """Collects records into hotspots.

    Parameters
    ----------
    flat:
        Dialect A mode. PLAYBMP records open a new hotspot instead of being
        kept as commands, and commands seen before the first hotspot are
        collected in :attr:`preamble`.
    """

    def __init__(self, flat: bool = False):
        self.flat = flat
        self.hotspots: list[Hotspot] = []
        self.preamble: list[Record] = []
        self._current: _PendingHotspot | None = None

    @property
    def pending(self) -> bool:
        return self._current is not None

    def _open(self, offset: int, event_type: int | None = None) -> _PendingHotspot:
        self._finalize(None)
        self._current = _PendingHotspot(
            id=len(self.hotspots), offset=offset, event_type=event_type
        )
        return self._current

    def _finalize(self, shape: ShapeRecord | None) -> None:
        cur = self._current
        if cur is None:
            return
        self._current = None
        if shape is None and not cur.has_content():
            return
        self.hotspots.append(
            Hotspot(
                id=cur.id,
                source_image_path=cur.image_path,
                x=cur.x,
                y=cur.y,
                z=cur.z,
                trigger_commands=tuple(cur.commands),
                shape=shape.to_shape() if shape is not None else None,
                hover_commands=tuple(cur.hover),
                event_type=cur.event_type,
                offset=cur.offset,
            )
        )
        if shape is None:
            log.debug("Dangling hotspot %d at 0x%X", cur.id, cur.offset)

    def begin(self, event_type: int | None, offset: int) -> None:
        """Start a hotspot for a new event group."""
        self._open(offset, event_type)

    def add(self, record: Record) -> None:
        if isinstance(record, (NullRecord, MarkerRecord)):
            return
        if isinstance(record, ShapeRecord):
            self.close(record)
            return

        is_image = record.command_type == CommandType.PLAYBMP
        if self.flat and is_image:
            cur = self._current
            if cur is None or cur.image_path or cur.commands:
                cur = self._open(record.offset)
            cur.set_image(record)
            return

        cur = self._current
        if cur is None:
            if self.flat:
                self.preamble.append(record)
                return
            cur = self._open(record.offset)
        if is_image and not cur.image_path:
            cur.set_image(record)
        cur.commands.append(record)

    def add_hover(self, record: Record) -> None:
        cur = self._current
        if cur is None:
            cur = self._open(record.offset)
        cur.hover.append(record)

    def close(self, shape: ShapeRecord) -> None:
        """Terminate the current hotspot with *shape*."""
        if self._current is None:
            log.debug("Shape at 0x%X without a hotspot, ignored", shape.offset)
            return
        self._finalize(shape)

    def finish(self) -> list[Hotspot]:
        """Finalize any pending hotspot as dangling and return all hotspots."""
        self._finalize(None)
        return self.hotspots


# ---------------------------------------------------------------------------
# Event groups
# ---------------------------------------------------------------------------


def looks_like_event_group(cursor: ByteCursor, offset: int = 0) -> bool:
    """Plausibility check for an event group at ``pos + offset``.

    Besides the two bounded header words, the first record must decode as
    a command.
    """
    saved = cursor.pos
    try:
        event_type = cursor.peek_u32(offset)
        count = cursor.peek_u32(offset + 4)
        if event_type > MAX_EVENT_TYPE or not 0 < count <= MAX_GROUP_COMMANDS:
            return False
        cursor.seek(saved + offset + 8)
        first = decode_record(cursor)
        return first.command_type is not None
    except DecodeError:
        return False
    finally:
        cursor.seek(saved)


def skip_zero_padding(cursor: ByteCursor, end: int | None = None) -> int:
    """Skip u32 zero words, stopping at a zero that starts an event group.

    Returns the number of bytes skipped.
    """
    limit = cursor.size if end is None else end
    start = cursor.pos
    while cursor.pos + 4 <= limit and cursor.peek_u32() == 0:
        # Event type 0 is legal, prefer the later alignment when both fit
        if looks_like_event_group(cursor) and not looks_like_event_group(cursor, 4):
            break
        cursor.skip(4)
    return cursor.pos - start


def _read_tip_text(cursor: ByteCursor, assembler: HotspotAssembler, end: int) -> None:
    try:
        assembler.add_hover(decode_record(cursor))
        if cursor.pos + 4 <= end and cursor.peek_u32() == CommandType.PLAYTEXT:
            assembler.add_hover(decode_record(cursor))
        skip_zero_padding(cursor, end)
        if cursor.pos + 4 <= end and is_shape_tag(cursor.peek_u32()):
            record = decode_record(cursor)
            assembler.close(record)
    except DecodeError as e:
        log.debug("Tip text sequence cut short: %s", e)


def read_event_group(
    cursor: ByteCursor,
    assembler: HotspotAssembler,
    end: int | None = None,
    max_distance: int = MAX_RESYNC_DISTANCE,
) -> None:
    """Read one event group and its terminator into *assembler*."""
    limit = cursor.size if end is None else end
    start = cursor.pos
    event_type = cursor.read_u32()
    count = cursor.read_u32()
    assembler.begin(event_type, start)

    for i in range(count):
        record = decode_record_resync(cursor, limit, max_distance)
        if record is None:
            log.warning(
                "Event group at 0x%X: command %d/%d undecodable", start, i + 1, count
            )
            return
        if isinstance(record, ShapeRecord):
            assembler.close(record)
            return
        if is_kept(record):
            assembler.add(record)
        else:
            log.debug("Dropped complex sub type %d at 0x%X", record.command_type, record.offset)

    skip_zero_padding(cursor, limit)
    if cursor.pos + 4 > limit:
        return
    tag = cursor.peek_u32()
    if is_shape_tag(tag):
        try:
            assembler.close(decode_record(cursor))
        except DecodeError as e:
            log.debug("Group terminator at 0x%X unreadable: %s", cursor.pos, e)
    elif tag == CommandType.FONT:
        _read_tip_text(cursor, assembler, limit)


def decode_event_groups(
    cursor: ByteCursor,
    assembler: HotspotAssembler,
    end: int | None = None,
    max_distance: int = MAX_RESYNC_DISTANCE,
) -> int:
    """Read event groups until the plausibility check fails.

    Returns the number of groups read.
    """
    limit = cursor.size if end is None else end
    groups = 0
    while cursor.pos + 8 <= limit:
        skip_zero_padding(cursor, limit)
        if not looks_like_event_group(cursor):
            break
        try:
            read_event_group(cursor, assembler, limit, max_distance)
        except OutOfBounds as e:
            log.warning("Event group cut short: %s", e)
            break
        groups += 1
    return groups
