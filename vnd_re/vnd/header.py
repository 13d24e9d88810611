"""Project header and variable table.

Header layout (all integers little-endian, BS = length-prefixed string):

  bytes[5]  flags
  BS        magic          ("VNFILE")
  BS        version        ("2.13")
  u32       format type
  BS        project name
  BS        editor
  BS        serial
  BS        project id
  BS        registry path
  u32       width
  u32       height
  u32       depth
  u32       flag
  u32       reserved x3
  BS        auxiliary DLL path
  u32       variable count

The variable table follows immediately: ``count * (BS name, i32 value)``.
"""

from __future__ import annotations

import logging

from .cursor import ByteCursor
from .model import Header, Variable

log = logging.getLogger(__name__)

HEADER_FLAGS_SIZE = 5
VNFILE_MAGIC = "VNFILE"


def decode_header(cursor: ByteCursor) -> Header:
    """Decode the header at the cursor position.

    Absent strings decode as empty. A buffer that ends inside the header
    raises :class:`~vnd_re.vnd.cursor.OutOfBounds`. On return the cursor
    sits right after the variable count.
    """
    flags = cursor.read_bytes(HEADER_FLAGS_SIZE)
    magic = cursor.read_bs_or_empty()
    version = cursor.read_bs_or_empty()
    format_type = cursor.read_u32()

    project_name = cursor.read_bs_or_empty()
    editor = cursor.read_bs_or_empty()
    serial = cursor.read_bs_or_empty()
    project_id = cursor.read_bs_or_empty()
    registry = cursor.read_bs_or_empty()

    width = cursor.read_u32()
    height = cursor.read_u32()
    depth = cursor.read_u32()

    flag = cursor.read_u32()
    reserved = (cursor.read_u32(), cursor.read_u32(), cursor.read_u32())

    dll_path = cursor.read_bs_or_empty()
    var_count = cursor.read_u32()

    if magic != VNFILE_MAGIC:
        log.warning("Unexpected magic %r (expected %r)", magic, VNFILE_MAGIC)

    header = Header(
        flags=flags,
        magic=magic,
        version=version,
        format_type=format_type,
        project_name=project_name,
        editor=editor,
        serial=serial,
        project_id=project_id,
        registry=registry,
        width=width,
        height=height,
        depth=depth,
        flag=flag,
        reserved=reserved,
        dll_path=dll_path,
        var_count=var_count,
    )
    log.info(
        "Header: %s v%s %r %dx%dx%d, %d variables (ends at 0x%X)",
        magic,
        version,
        project_name,
        width,
        height,
        depth,
        var_count,
        cursor.pos,
    )
    return header


def decode_variables(cursor: ByteCursor, count: int) -> list[Variable]:
    """Decode up to *count* ``(name, value)`` pairs.

    Stops early, without raising, at the first absent name or when the value
    would run past the buffer. The cursor is left after the last complete
    pair.
    """
    variables: list[Variable] = []
    for i in range(count):
        start = cursor.pos
        name = cursor.read_bs()
        if name is None or cursor.remaining < 4:
            log.warning(
                "Variable table stopped at entry %d/%d (offset 0x%X)", i, count, start
            )
            cursor.seek(start)
            break
        value = cursor.read_i32()
        variables.append(Variable(name=name, value=value, offset=start))
    log.debug("Decoded %d variables, table ends at 0x%X", len(variables), cursor.pos)
    return variables
