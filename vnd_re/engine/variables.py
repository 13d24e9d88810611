"""Runtime variable table.

Names are case-insensitive (stored upper-cased, at most 255 characters) and
values behave like native 32-bit signed integers.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator

from ..vnd.model import Variable

log = logging.getLogger(__name__)

MAX_NAME_LENGTH = 255


def to_int32(value: int) -> int:
    """Wrap *value* to the signed 32-bit range."""
    return ((int(value) + 0x80000000) & 0xFFFFFFFF) - 0x80000000


def normalize_name(name: str) -> str:
    return name.strip().upper()[:MAX_NAME_LENGTH]


class VariableStore:
    """Case-insensitive int32 variable table.

    Reading a variable that was never written returns 0. ``on_change`` is
    called as ``on_change(name, old, new)`` after each effective write.
    """

    def __init__(self, on_change: Callable[[str, int, int], None] | None = None):
        self._values: dict[str, int] = {}
        self.on_change = on_change

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, name: str) -> bool:
        return self.exists(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def load(self, variables: Iterable[Variable]) -> None:
        """Seed from decoded variables. Later duplicates shadow earlier ones."""
        for var in variables:
            key = normalize_name(var.name)
            if key:
                self._values[key] = to_int32(var.value)

    def get(self, name: str) -> int:
        return self._values.get(normalize_name(name), 0)

    def find(self, name: str) -> int | None:
        return self._values.get(normalize_name(name))

    def exists(self, name: str) -> bool:
        return normalize_name(name) in self._values

    def set(self, name: str, value: int) -> int:
        key = normalize_name(name)
        if not key:
            raise ValueError("Variable name must not be empty")
        new = to_int32(value)
        old = self._values.get(key, 0)
        self._values[key] = new
        log.debug("%s = %d", key, new)
        if self.on_change is not None and old != new:
            self.on_change(key, old, new)
        return new

    def increment(self, name: str, amount: int = 1) -> int:
        return self.set(name, self.get(name) + amount)

    def decrement(self, name: str, amount: int = 1) -> int:
        return self.set(name, self.get(name) - amount)

    def delete(self, name: str) -> bool:
        return self._values.pop(normalize_name(name), None) is not None

    def clear(self) -> None:
        self._values.clear()

    def items(self) -> list[tuple[str, int]]:
        return sorted(self._values.items())

    def export_state(self) -> dict[str, int]:
        return dict(self._values)

    def import_state(self, state: dict[str, int]) -> None:
        self._values = {}
        for name, value in state.items():
            key = normalize_name(name)
            if key:
                self._values[key] = to_int32(value)
