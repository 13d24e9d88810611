"""Record tags and command types for Virtual Navigator project files."""

from __future__ import annotations

from enum import Enum, IntEnum


class RecordTag(IntEnum):
    """Record tags with a fixed payload shape in the command stream."""

    NULL = 0  # no payload
    WRAPPER = 1  # u32 sub type + BS
    MARKER = 2  # no payload
    COMPLEX = 3  # u32 sub type + BS


SIMPLE_TAG_MIN = 4  # BS payload
SIMPLE_TAG_MAX = 48
SHAPE_TAG_MIN = 100  # u32 count + count * (i32, i32)
SHAPE_TAG_MAX = 110

# Complex records outside this set are read and discarded
COMPLEX_SUBTYPES = frozenset({6, 9, 16, 22})


def is_simple_tag(tag: int) -> bool:
    return SIMPLE_TAG_MIN <= tag <= SIMPLE_TAG_MAX


def is_shape_tag(tag: int) -> bool:
    return SHAPE_TAG_MIN <= tag <= SHAPE_TAG_MAX


def is_known_tag(tag: int) -> bool:
    return tag <= SIMPLE_TAG_MAX or is_shape_tag(tag)


class CommandType(IntEnum):
    """Semantic command types.

    A Simple record's tag is its command type; Wrapper and Complex records
    carry the command type in their sub type.
    """

    QUIT = 0
    ABOUT = 1
    PREFS = 2
    PREV = 3
    NEXT = 4
    ZOOM = 5
    SCENE = 6
    HOTSPOT = 7
    TIPTEXT = 8
    PLAYAVI = 9
    PLAYBMP = 10
    PLAYWAV = 11
    PLAYMID = 12
    PLAYHTML = 13
    ZOOMIN = 14
    ZOOMOUT = 15
    PAUSE = 16
    EXEC = 17
    EXPLORE = 18
    PLAYCDA = 19
    PLAYSEQ = 20
    IF = 21
    SET_VAR = 22
    INC_VAR = 23
    DEC_VAR = 24
    INVALIDATE = 25
    DEFCURSOR = 26
    ADDBMP = 27
    DELBMP = 28
    SHOWBMP = 29
    HIDEBMP = 30
    RUNPRJ = 31
    UPDATE = 32
    RUNDLL = 33
    MSGBOX = 34
    PLAYCMD = 35
    CLOSEWAV = 36
    CLOSEDLL = 37
    PLAYTEXT = 38
    FONT = 39
    REM = 40
    ADDTEXT = 41
    DELOBJ = 42
    SHOWOBJ = 43
    HIDEOBJ = 44
    LOAD = 45
    SAVE = 46
    CLOSEAVI = 47
    CLOSEMID = 48


COMMAND_TYPE_NAMES: dict[int, str] = {t.value: t.name for t in CommandType}


class ShapeTag(IntEnum):
    """Shape tags seen in practice. Any tag in 100..110 decodes as a shape."""

    RECT = 100
    POLYGON = 105


class SceneMarker(IntEnum):
    """First u32 of a dialect B scene."""

    SCENE = 0x01
    MUSIC_SCENE = 0x81


class BitmapLayout(IntEnum):
    """Dialect B bitmap marker selecting the layout of the bitmap block."""

    PATH_FIRST = 0  # BS path, then 8 reserved bytes
    RESERVED_FIRST = 2  # 8 reserved bytes, then BS path


class Dialect(str, Enum):
    """Scene encoding layout of a project file."""

    A = "A"  # count-prefixed scene table
    B = "B"  # unframed scene stream
