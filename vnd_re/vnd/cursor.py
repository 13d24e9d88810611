"""Bounds-checked little-endian reader over an immutable byte buffer.

Also hosts the format's two string encodings:

  Length-prefixed ("BS") string:
    u32 length
    bytes[length]  - single byte per character (latin-1)

  Fixed-width string:
    bytes[N]       - zero padded on the right
"""

from __future__ import annotations

import struct

MAX_STRING_LENGTH = 10000


class DecodeError(Exception):
    """Base class for decode failures at a known buffer position."""

    def __init__(self, message: str, position: int):
        super().__init__(f"{message} at 0x{position:X}")
        self.position = position


class OutOfBounds(DecodeError):
    pass


class ImplausibleLength(DecodeError):
    pass


class ByteCursor:
    """Reads little-endian primitives from a byte buffer.

    Every read checks the remaining length first and raises
    :class:`OutOfBounds` instead of returning short data.
    """

    def __init__(self, data: bytes, pos: int = 0):
        self.data = bytes(data)
        self.size = len(self.data)
        self._pos = 0
        self.seek(pos)

    @property
    def pos(self) -> int:
        return self._pos

    @property
    def remaining(self) -> int:
        return self.size - self._pos

    def at_end(self) -> bool:
        return self._pos >= self.size

    def can_read(self, n: int) -> bool:
        return 0 <= n <= self.remaining

    def seek(self, offset: int) -> None:
        if offset < 0 or offset > self.size:
            raise OutOfBounds(f"Seek to {offset} outside buffer of {self.size}", self._pos)
        self._pos = offset

    def skip(self, n: int) -> None:
        self._require(n)
        self._pos += n

    def _require(self, n: int) -> None:
        if n < 0 or n > self.remaining:
            raise OutOfBounds(f"Read of {n} bytes with {self.remaining} remaining", self._pos)

    def read_bytes(self, n: int) -> bytes:
        self._require(n)
        out = self.data[self._pos : self._pos + n]
        self._pos += n
        return out

    def _unpack(self, fmt: str, size: int) -> int:
        self._require(size)
        value = struct.unpack_from(fmt, self.data, self._pos)[0]
        self._pos += size
        return value

    def read_u8(self) -> int:
        return self._unpack("<B", 1)

    def read_u16(self) -> int:
        return self._unpack("<H", 2)

    def read_u32(self) -> int:
        return self._unpack("<I", 4)

    def read_i32(self) -> int:
        return self._unpack("<i", 4)

    def peek_u32(self, offset: int = 0) -> int:
        """Read a u32 at ``pos + offset`` without advancing."""
        at = self._pos + offset
        if at < 0 or at + 4 > self.size:
            raise OutOfBounds("Peek past end of buffer", at)
        return struct.unpack_from("<I", self.data, at)[0]

    def peek_i32(self, offset: int = 0) -> int:
        at = self._pos + offset
        if at < 0 or at + 4 > self.size:
            raise OutOfBounds("Peek past end of buffer", at)
        return struct.unpack_from("<i", self.data, at)[0]

    # -- strings -----------------------------------------------------------

    def read_bs(self) -> str | None:
        """Read a length-prefixed string.

        Returns ``""`` for a zero length (consuming only the length field) and
        ``None`` when the length is implausible or runs past the buffer, in
        which case nothing is consumed. Never raises.
        """
        if self.remaining < 4:
            return None
        length = struct.unpack_from("<I", self.data, self._pos)[0]
        if length == 0:
            self._pos += 4
            return ""
        if length > MAX_STRING_LENGTH or length > self.remaining - 4:
            return None
        start = self._pos + 4
        self._pos = start + length
        return self.data[start : start + length].decode("latin-1")

    def read_bs_or_empty(self) -> str:
        """Read a length-prefixed string, treating an absent one as empty.

        An absent field still consumes its 4-byte length so that the fixed
        layout after it stays aligned.
        """
        text = self.read_bs()
        if text is None:
            self.skip(4)
            return ""
        return text

    def read_fixed_string(self, n: int) -> str:
        """Read exactly *n* bytes and strip the trailing zero padding."""
        return self.read_bytes(n).rstrip(b"\x00").decode("latin-1")

    def __repr__(self) -> str:
        return f"ByteCursor(pos=0x{self._pos:X}, size={self.size})"
