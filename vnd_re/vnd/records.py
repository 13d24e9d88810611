"""Tag-dispatched record decoder shared by both scene dialects.

Record layouts (tag is a u32):

  0          Null      -
  1          Wrapper   u32 sub type, BS text
  2          Marker    -
  3          Complex   u32 sub type, BS text
  4..48      Simple    BS text
  100..110   Shape     u32 count (<= 100), count * (i32 x, i32 y)

Any other tag is unrecognized. Callers resynchronize by retrying one byte
further on, up to a maximum distance.
"""

from __future__ import annotations

import logging
from typing import Iterator

from .cursor import ByteCursor, DecodeError, ImplausibleLength, OutOfBounds
from .model import (
    ComplexRecord,
    MarkerRecord,
    NullRecord,
    Point,
    Record,
    ShapeRecord,
    SimpleRecord,
    WrapperRecord,
)
from .tags import COMPLEX_SUBTYPES, RecordTag, is_shape_tag, is_simple_tag

log = logging.getLogger(__name__)

MAX_SHAPE_POINTS = 100
MAX_RESYNC_DISTANCE = 4096


class UnrecognizedTag(DecodeError):
    def __init__(self, tag: int, position: int):
        super().__init__(f"Unrecognized record tag {tag}", position)
        self.tag = tag


def _read_text(cursor: ByteCursor, start: int) -> str:
    text = cursor.read_bs()
    if text is None:
        raise ImplausibleLength("Record string length out of range", start)
    return text


def decode_record(cursor: ByteCursor) -> Record:
    """Decode one record at the cursor.

    Raises :class:`UnrecognizedTag`, :class:`ImplausibleLength` or
    :class:`OutOfBounds`. On failure the cursor is restored to where it was.
    """
    start = cursor.pos
    try:
        return _decode_record(cursor, start)
    except DecodeError:
        cursor.seek(start)
        raise


def _decode_record(cursor: ByteCursor, start: int) -> Record:
    tag = cursor.read_u32()

    if tag == RecordTag.NULL:
        return NullRecord(offset=start)
    if tag == RecordTag.MARKER:
        return MarkerRecord(offset=start)
    if tag == RecordTag.WRAPPER:
        sub_type = cursor.read_u32()
        return WrapperRecord(sub_type, _read_text(cursor, start), offset=start)
    if tag == RecordTag.COMPLEX:
        sub_type = cursor.read_u32()
        return ComplexRecord(sub_type, _read_text(cursor, start), offset=start)
    if is_simple_tag(tag):
        return SimpleRecord(tag, _read_text(cursor, start), offset=start)
    if is_shape_tag(tag):
        count = cursor.read_u32()
        if count > MAX_SHAPE_POINTS:
            raise ImplausibleLength(f"Shape with {count} points", start)
        points = []
        for _ in range(count):
            x = cursor.read_i32()
            y = cursor.read_i32()
            points.append(Point(x, y))
        return ShapeRecord(tag, tuple(points), offset=start)

    raise UnrecognizedTag(tag, start)


def is_kept(record: Record) -> bool:
    """Complex records are only kept for whitelisted sub types."""
    if isinstance(record, ComplexRecord):
        return record.sub_type in COMPLEX_SUBTYPES
    return True


def decode_record_resync(
    cursor: ByteCursor,
    end: int | None = None,
    max_distance: int = MAX_RESYNC_DISTANCE,
) -> Record | None:
    """Decode the next record, skipping unrecognizable bytes one at a time.

    Gives up (returning ``None`` with the cursor back at its start) after
    *max_distance* bytes, at *end*, or when the buffer runs out.
    """
    start = cursor.pos
    limit = cursor.size if end is None else min(end, cursor.size)
    pos = start
    while pos + 4 <= limit and pos - start <= max_distance:
        cursor.seek(pos)
        try:
            record = decode_record(cursor)
        except (UnrecognizedTag, ImplausibleLength, OutOfBounds):
            pos += 1
            continue
        if cursor.pos > limit:
            # Runs past the region, not a record of this region
            pos += 1
            continue
        if pos != start:
            log.debug("Resynchronized after %d bytes at 0x%X", pos - start, pos)
        return record
    cursor.seek(start)
    return None


def iter_records(
    cursor: ByteCursor,
    end: int | None = None,
    max_distance: int = MAX_RESYNC_DISTANCE,
) -> Iterator[Record]:
    """Yield every record up to *end*, resynchronizing over bad bytes.

    Dropped complex records are not yielded.
    """
    limit = cursor.size if end is None else min(end, cursor.size)
    while cursor.pos + 4 <= limit:
        record = decode_record_resync(cursor, limit, max_distance)
        if record is None:
            break
        if not is_kept(record):
            log.debug("Dropped complex record sub type %d at 0x%X", record.command_type, record.offset)
            continue
        yield record
