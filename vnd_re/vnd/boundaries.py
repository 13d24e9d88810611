"""Heuristic scene boundary scan.

Finds scene starts without structural decoding, from four byte patterns:

  delimiter  >= 12 zero bytes followed by u32 1
  music      u32 0x81 followed within 50 bytes by BS "music.wav"
  empty      >= 50 zero bytes followed by BS "Empty"
  named      BS with a known scene name after a minimum zero run

Each candidate is given a content string (the first image or video file
name in a window after it) and two known false positive shapes are
dropped. The thresholds were tuned on a single reference project, so the
result is best-effort: the 1-based rank of a boundary is its scene number.
"""

from __future__ import annotations

import logging
import re
import struct
from dataclasses import dataclass
from enum import Enum

log = logging.getLogger(__name__)

DEFAULT_START_OFFSET = 4400

_AVI_RE = re.compile(r"^(\S+\.avi)")


class BoundaryKind(str, Enum):
    DELIMITER = "delim"
    MUSIC = "music"
    EMPTY = "empty"
    NAMED = "named"


@dataclass(frozen=True)
class BoundaryProfile:
    delimiter_min_zeros: int = 12
    delimiter_skip: int = 10
    music_marker: int = 0x81
    music_sentinel: str = "music.wav"
    music_window: int = 50
    music_min_distance: int = 100
    empty_sentinel: str = "Empty"
    empty_min_zeros: int = 50
    named_scenes: tuple[tuple[str, int], ...] = (("Toolbar", 5), ("Fin Perdu", 5))
    content_window: int = 300
    content_min_length: int = 5
    content_max_length: int = 79
    echo_zeros: tuple[int, int] = (19, 21)
    echo_min_gap: int = 250
    end_game_min_zeros: int = 90
    end_game_video: str = "fin2.avi"


DEFAULT_PROFILE = BoundaryProfile()

EXTENDED_PROFILE = BoundaryProfile(
    music_min_distance=50,
    named_scenes=(
        ("Village", 4),
        ("Le bureau du banquier", 4),
        ("La banque", 4),
        ("Toolbar", 5),
        ("Fin Perdu", 5),
    ),
)


@dataclass(frozen=True)
class BoundaryCandidate:
    position: int
    kind: BoundaryKind
    zeros: int
    content: str | None = None


@dataclass(frozen=True)
class SceneBoundary:
    index: int  # 1-based
    position: int
    kind: BoundaryKind
    zeros: int
    content: str


def zero_runs(data: bytes) -> list[int]:
    """``runs[i]`` is the number of consecutive zero bytes just before ``i``."""
    runs = [0] * (len(data) + 1)
    for i, b in enumerate(data):
        runs[i + 1] = runs[i] + 1 if b == 0 else 0
    return runs


def _u32(data: bytes, pos: int) -> int:
    return struct.unpack_from("<I", data, pos)[0]


def _has_bs(data: bytes, pos: int, text: str) -> bool:
    raw = text.encode("latin-1")
    return (
        pos + 4 + len(raw) <= len(data)
        and _u32(data, pos) == len(raw)
        and data[pos + 4 : pos + 4 + len(raw)] == raw
    )


def find_content(data: bytes, start: int, profile: BoundaryProfile = DEFAULT_PROFILE) -> str | None:
    """First plausible ``.bmp`` / ``.avi`` string in the window after *start*."""
    stop = min(start + profile.content_window, len(data) - 4)
    for j in range(start, stop):
        length = _u32(data, j)
        if not profile.content_min_length <= length <= profile.content_max_length:
            continue
        text = data[j + 4 : j + 4 + length].decode("latin-1")
        if text.endswith(".bmp"):
            return text
        if ".avi" in text:
            if text.endswith(".avi"):
                return text
            m = _AVI_RE.match(text)
            return m.group(1) if m else text
    return None


def _scan_delimiters(data, runs, start, profile, found):
    i = start
    while i < len(data) - 20:
        if runs[i] >= profile.delimiter_min_zeros and _u32(data, i) == 1:
            found[i] = BoundaryCandidate(i, BoundaryKind.DELIMITER, runs[i])
            i += profile.delimiter_skip
        i += 1


def _scan_music(data, start, profile, found):
    sentinel_len = len(profile.music_sentinel)
    for i in range(start, len(data) - 100):
        if _u32(data, i) != profile.music_marker:
            continue
        for j in range(i, i + profile.music_window):
            if _u32(data, j) == sentinel_len and _has_bs(data, j, profile.music_sentinel):
                if not any(abs(p - i) < profile.music_min_distance for p in found):
                    found[i] = BoundaryCandidate(i, BoundaryKind.MUSIC, 0)
                break


def _scan_strings(data, runs, start, text, min_zeros, kind, found):
    raw = text.encode("latin-1")
    for i in range(start, len(data) - len(raw) - 4):
        if data[i + 4 : i + 4 + len(raw)] != raw or _u32(data, i) != len(raw):
            continue
        if runs[i] >= min_zeros:
            found[i] = BoundaryCandidate(i, kind, runs[i], text)


def find_candidates(
    data: bytes,
    start_offset: int = DEFAULT_START_OFFSET,
    profile: BoundaryProfile = DEFAULT_PROFILE,
) -> list[BoundaryCandidate]:
    """Run the four pattern scans and attribute content, sorted by position.

    Candidates without any content are discarded.
    """
    runs = zero_runs(data)
    found: dict[int, BoundaryCandidate] = {}

    _scan_delimiters(data, runs, start_offset, profile, found)
    _scan_music(data, start_offset, profile, found)
    _scan_strings(
        data, runs, start_offset, profile.empty_sentinel, profile.empty_min_zeros,
        BoundaryKind.EMPTY, found,
    )
    for name, min_zeros in profile.named_scenes:
        _scan_strings(data, runs, start_offset, name, min_zeros, BoundaryKind.NAMED, found)

    out = []
    for pos in sorted(found):
        cand = found[pos]
        if cand.content is None:
            content = find_content(data, pos, profile)
            if content is None:
                continue
            cand = BoundaryCandidate(cand.position, cand.kind, cand.zeros, content)
        out.append(cand)
    return out


def _is_false_positive(
    cand: BoundaryCandidate, nxt: BoundaryCandidate | None, profile: BoundaryProfile
) -> bool:
    lo, hi = profile.echo_zeros
    if (
        nxt is not None
        and lo <= cand.zeros <= hi
        and cand.content == nxt.content
        and nxt.position - cand.position >= profile.echo_min_gap
    ):
        # Hotspot command echoing the next scene's image
        return True
    if cand.zeros >= profile.end_game_min_zeros and cand.content == profile.end_game_video:
        # End-game command sequence
        return True
    return False


def scan_boundaries(
    data: bytes,
    start_offset: int = DEFAULT_START_OFFSET,
    profile: BoundaryProfile = DEFAULT_PROFILE,
) -> list[SceneBoundary]:
    """Return the detected scene boundaries in position order."""
    candidates = find_candidates(data, start_offset, profile)
    kept: list[BoundaryCandidate] = []
    for i, cand in enumerate(candidates):
        nxt = candidates[i + 1] if i + 1 < len(candidates) else None
        if _is_false_positive(cand, nxt, profile):
            log.debug(
                "Dropped ambiguous boundary at 0x%X (%d zeros, %r)",
                cand.position,
                cand.zeros,
                cand.content,
            )
            continue
        kept.append(cand)

    log.info("Boundary scan: %d candidates, %d scenes", len(candidates), len(kept))
    return [
        SceneBoundary(
            index=n + 1,
            position=c.position,
            kind=c.kind,
            zeros=c.zeros,
            content=c.content or "",
        )
        for n, c in enumerate(kept)
    ]
