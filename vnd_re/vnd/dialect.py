"""Scene encoding dialect detection."""

from __future__ import annotations

import logging

from .cursor import ByteCursor, OutOfBounds
from .tags import Dialect

log = logging.getLogger(__name__)

# A u32 in (0, DIALECT_A_MAX_SCENES) after the variables is a scene count
DIALECT_A_MAX_SCENES = 100


def detect_dialect(data: bytes | ByteCursor, offset: int) -> Dialect:
    """Choose the scene dialect from the u32 at *offset*.

    Pure function of that single value: scene table (A) when it lies in
    ``(0, 100)``, scene stream (B) otherwise, including when the buffer
    ends before it.
    """
    cursor = data if isinstance(data, ByteCursor) else ByteCursor(data)
    saved = cursor.pos
    try:
        cursor.seek(offset)
        value = cursor.peek_u32()
    except OutOfBounds:
        log.debug("No dialect word at 0x%X, assuming dialect B", offset)
        return Dialect.B
    finally:
        cursor.seek(saved)
    dialect = Dialect.A if 0 < value < DIALECT_A_MAX_SCENES else Dialect.B
    log.debug("Dialect word 0x%X at 0x%X -> %s", value, offset, dialect.value)
    return dialect
