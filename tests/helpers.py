"""Byte builders for synthetic project files."""

from __future__ import annotations

import struct


def u32(value: int) -> bytes:
    return struct.pack("<I", value & 0xFFFFFFFF)


def i32(value: int) -> bytes:
    return struct.pack("<i", value)


def bs(text: str) -> bytes:
    raw = text.encode("latin-1")
    return u32(len(raw)) + raw


def fixed(text: str, size: int) -> bytes:
    raw = text.encode("latin-1")
    return raw + b"\x00" * (size - len(raw))


# -- records ---------------------------------------------------------------


def null() -> bytes:
    return u32(0)


def marker() -> bytes:
    return u32(2)


def simple(tag: int, text: str) -> bytes:
    return u32(tag) + bs(text)


def wrapper(sub_type: int, text: str) -> bytes:
    return u32(1) + u32(sub_type) + bs(text)


def complex_(sub_type: int, text: str) -> bytes:
    return u32(3) + u32(sub_type) + bs(text)


def shape(points: list[tuple[int, int]], tag: int = 105) -> bytes:
    out = u32(tag) + u32(len(points))
    for x, y in points:
        out += i32(x) + i32(y)
    return out


def event_group(event_type: int, commands: list[bytes]) -> bytes:
    return u32(event_type) + u32(len(commands)) + b"".join(commands)


# -- header ----------------------------------------------------------------

HEADER_DEFAULTS = dict(
    magic="VNFILE",
    version="2.13",
    format_type=54,
    project_name="Test project",
    editor="Sopra",
    serial="0000-0000",
    project_id="TEST",
    registry="Software\\Sopra\\Test",
    width=640,
    height=480,
    depth=16,
    dll_path="",
)


def header(var_count: int, **overrides) -> bytes:
    f = dict(HEADER_DEFAULTS, **overrides)
    return (
        b"\x01\x02\x03\x04\x05"
        + bs(f["magic"])
        + bs(f["version"])
        + u32(f["format_type"])
        + bs(f["project_name"])
        + bs(f["editor"])
        + bs(f["serial"])
        + bs(f["project_id"])
        + bs(f["registry"])
        + u32(f["width"])
        + u32(f["height"])
        + u32(f["depth"])
        + u32(1)
        + u32(0)
        + u32(0)
        + u32(0)
        + bs(f["dll_path"])
        + u32(var_count)
    )


def variables(pairs: list[tuple[str, int]]) -> bytes:
    return b"".join(bs(name) + i32(value) for name, value in pairs)


def preamble(pairs: list[tuple[str, int]] | None = None, **overrides) -> bytes:
    pairs = pairs or []
    return header(len(pairs), **overrides) + variables(pairs)


# -- dialect A -------------------------------------------------------------


def descriptor(name: str, flag: int = 0, resource: str = "") -> bytes:
    return fixed(name, 50) + bytes([flag]) + bs(resource) + b"\x00" * 32


def project_a(scenes: list[tuple[str, bytes]], pairs=None, resource: str = "bg.bmp") -> bytes:
    """Scenes as ``(name, records)``: each descriptor is followed by its records."""
    body = u32(len(scenes))
    for name, records in scenes:
        body += descriptor(name, 1, resource) + records
    return preamble(pairs) + body


# -- dialect B -------------------------------------------------------------


def scene_b(
    groups: bytes = b"",
    wave: str = "",
    bitmap: str = "",
    layout: int = 2,
    marker_value: int = 1,
    properties: int = 0,
    padding: int = 2,
    sentinel: bool = False,
) -> bytes:
    out = u32(marker_value) + b"\x00" * 12 + bs(wave) + u32(layout)
    if layout == 2:
        out += b"\x00" * 8 + bs(bitmap)
    else:
        out += bs(bitmap) + b"\x00" * 8
    out += u32(properties) + u32(0) * padding
    if sentinel:
        out += i32(-12) + u32(0)
    return out + groups


def project_b(scenes: list[bytes], pairs=None) -> bytes:
    return preamble(pairs) + b"\x00" * 16 + b"".join(scenes)
