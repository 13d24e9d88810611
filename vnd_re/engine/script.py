"""Command payload parsing.

Decoded records carry their arguments as free text. This module turns that
text into instructions the interpreter can dispatch, and parses the small
mini-languages used by some commands::

  SET_VAR / INC_VAR / DEC_VAR   "NAME [VALUE]"
  IF                            "[if] VAR OP VALUE then CMD [else CMD]"
  PLAYWAV / PLAYMID / PLAYCDA   "PATH [LOOP] [VOLUME]"
  TIMERSTART                    "ID INTERVAL CMD"

A nested command (IF branch, PLAYCMD payload, timer body) is written as
``VERB ARGS`` or ``VERB:ARGS``, e.g. ``scene:Win`` or ``playwav intro.wav``.
"""

from __future__ import annotations

import operator
import re
from dataclasses import dataclass
from typing import Callable

from ..vnd.model import Record
from ..vnd.tags import COMMAND_TYPE_NAMES

MAX_VOLUME = 100


class EngineError(Exception):
    pass


class MalformedCondition(EngineError):
    pass


# ---------------------------------------------------------------------------
# Instructions
# ---------------------------------------------------------------------------

# Script verbs accepted in nested commands, mapped to the canonical verb
VERB_ALIASES: dict[str, str] = {
    "GOTO": "SCENE",
    "SETVAR": "SET_VAR",
    "INCVAR": "INC_VAR",
    "DECVAR": "DEC_VAR",
    "WAVE": "PLAYWAV",
    "MIDI": "PLAYMID",
    "AVI": "PLAYAVI",
    "IMAGE": "ADDBMP",
    "TEXT": "ADDTEXT",
    "HIDE": "HIDEOBJ",
    "WAIT": "PAUSE",
    "STOPSOUND": "CLOSEWAV",
    "STOPMIDI": "CLOSEMID",
    "CURSOR": "DEFCURSOR",
}

# Verbs that only exist in script text, never as record tags
SCRIPT_VERBS = frozenset(
    {"FORWARD", "BACKWARD", "LEFT", "RIGHT", "STOPALL", "ENABLE", "DISABLE", "TIMERSTART", "TIMERSTOP"}
)

_INSTRUCTION_RE = re.compile(r"^\s*([A-Za-z_]+)\s*(?::\s*|\s+|$)(.*)$", re.S)


@dataclass(frozen=True)
class Instruction:
    verb: str
    args: str = ""
    source: Record | None = None

    def __str__(self) -> str:
        return f"{self.verb} {self.args}".rstrip()


def canonical_verb(word: str) -> str:
    verb = word.upper()
    return VERB_ALIASES.get(verb, verb)


def instruction_from_record(record: Record) -> Instruction | None:
    """Instruction for a command record, ``None`` for structural records."""
    ct = record.command_type
    if ct is None:
        return None
    verb = COMMAND_TYPE_NAMES.get(ct, f"CMD_{ct}")
    return Instruction(verb, record.text.strip(), record)


def parse_instruction(text: str) -> Instruction:
    """Parse ``VERB ARGS`` / ``VERB:ARGS``."""
    m = _INSTRUCTION_RE.match(text)
    if m is None:
        raise EngineError(f"Not a command: {text!r}")
    return Instruction(canonical_verb(m.group(1)), m.group(2).strip())


# ---------------------------------------------------------------------------
# Integers and variables
# ---------------------------------------------------------------------------


def parse_int(token: str) -> int | None:
    try:
        return int(token.strip())
    except ValueError:
        return None


def parse_var_payload(text: str) -> tuple[str, int | None]:
    """Split ``"NAME [VALUE]"``. The value is ``None`` if missing or not numeric."""
    parts = text.split()
    if not parts:
        raise EngineError("Variable command without a name")
    value = parse_int(parts[1]) if len(parts) > 1 else None
    return parts[0], value


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

OPERATORS: dict[str, Callable[[int, int], bool]] = {
    "==": operator.eq,
    "=": operator.eq,
    "!=": operator.ne,
    "<>": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_CONDITION_RE = re.compile(
    r"""^\s*(?:if\s+)?
    (?P<var>\w+)\s*
    (?P<op>[^\w\s-]+)\s*
    (?P<value>-?\w+)\s+
    then\s+(?P<then>.+?)
    (?:\s+else\s+(?P<else>.+?))?\s*$""",
    re.I | re.X | re.S,
)


def compare(left: int, op: str, right: int) -> bool:
    fn = OPERATORS.get(op)
    if fn is None:
        raise MalformedCondition(f"Unknown comparison operator {op!r}")
    return fn(left, right)


@dataclass(frozen=True)
class Condition:
    variable: str
    operator: str
    value: str
    then_branch: str
    else_branch: str | None = None

    def evaluate(self, lookup: Callable[[str], int]) -> bool:
        """Compare against *lookup* (usually ``VariableStore.get``).

        A non-numeric right-hand side names another variable.
        """
        right = parse_int(self.value)
        if right is None:
            right = lookup(self.value)
        return compare(lookup(self.variable), self.operator, right)

    def select(self, lookup: Callable[[str], int]) -> str | None:
        """Return the branch to run, ``None`` when false without ``else``."""
        if self.evaluate(lookup):
            return self.then_branch
        return self.else_branch


def parse_condition(text: str) -> Condition:
    m = _CONDITION_RE.match(text)
    if m is None:
        raise MalformedCondition(f"Unparseable condition {text!r}")
    op = m.group("op")
    if op not in OPERATORS:
        raise MalformedCondition(f"Unknown comparison operator {op!r} in {text!r}")
    return Condition(
        variable=m.group("var"),
        operator=op,
        value=m.group("value"),
        then_branch=m.group("then").strip(),
        else_branch=m.group("else").strip() if m.group("else") else None,
    )


# ---------------------------------------------------------------------------
# Media and timers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MediaArgs:
    path: str
    loop: bool = False
    volume: int = MAX_VOLUME


def parse_media_args(text: str) -> MediaArgs:
    """Parse ``"PATH [LOOP] [VOLUME]"``.

    LOOP is an integer (non-zero loops) or the word ``loop``.
    """
    parts = text.split()
    if not parts:
        raise EngineError("Media command without a path")
    loop = False
    volume = MAX_VOLUME
    if len(parts) > 1:
        flag = parts[1]
        n = parse_int(flag)
        loop = flag.lower() == "loop" if n is None else n != 0
    if len(parts) > 2:
        v = parse_int(parts[2])
        if v is not None:
            volume = max(0, min(MAX_VOLUME, v))
    return MediaArgs(parts[0], loop, volume)


def parse_timer_args(text: str) -> tuple[str, int, str]:
    """Parse ``"ID INTERVAL CMD"`` for TIMERSTART."""
    parts = text.split(None, 2)
    if len(parts) < 3:
        raise EngineError(f"TIMERSTART needs id, interval and command: {text!r}")
    interval = parse_int(parts[1])
    if interval is None or interval <= 0:
        raise EngineError(f"Bad timer interval {parts[1]!r}")
    return parts[0], interval, parts[2]
