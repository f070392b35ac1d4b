"""
Atlas Manifest Parser

Reads the text manifest written next to the packed atlas image. The layout is
the legacy libGDX one: a 6-line page preamble followed by fixed 7-line region
records (name, rotate, xy, size, orig, offset, index).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from config import debug_print

PREAMBLE_LINES = 6
RECORD_LINES = 7


@dataclass(frozen=True)
class AtlasEntry:
    """One packed sprite placement. Identity is (name, index)."""
    name: str
    rotated: bool
    x: int
    y: int
    w: int
    h: int
    origin_x: int
    origin_y: int
    offset_x: int
    offset_y: int
    index: int

    def __str__(self) -> str:
        return f'[AtlasEntry "{self.name}:{self.index}"]'


def _value(line: str) -> str:
    return line.rpartition(":")[2].strip()


def _pair(line: str) -> Tuple[int, int]:
    tokens = _value(line).split(",")
    return int(tokens[0].strip()), int(tokens[1].strip())


def parse_record(lines: List[str]) -> AtlasEntry:
    """
    Parse one 7-line region record.

    Raises:
        ValueError: If the record is truncated or a numeric field is malformed.
    """
    if len(lines) < RECORD_LINES:
        raise ValueError(f"Truncated atlas record ({len(lines)} of {RECORD_LINES} lines)")

    name = lines[0]
    rotated = _value(lines[1]).lower() == "true"
    x, y = _pair(lines[2])
    w, h = _pair(lines[3])
    origin_x, origin_y = _pair(lines[4])
    offset_x, offset_y = _pair(lines[5])
    index = int(_value(lines[6]))
    return AtlasEntry(
        name=name,
        rotated=rotated,
        x=x,
        y=y,
        w=w,
        h=h,
        origin_x=origin_x,
        origin_y=origin_y,
        offset_x=offset_x,
        offset_y=offset_y,
        index=index,
    )


def parse_manifest_lines(lines: Iterable[str]) -> List[AtlasEntry]:
    """
    Parse manifest lines into atlas entries, preserving manifest order.

    A record that fails to parse is skipped as a whole block of 7 lines and
    parsing resumes at the next record boundary.
    """
    body = [line.rstrip("\r\n") for line in lines][PREAMBLE_LINES:]

    entries: List[AtlasEntry] = []
    skipped = 0
    for start in range(0, len(body), RECORD_LINES):
        block = body[start:start + RECORD_LINES]
        if not any(line.strip() for line in block):
            continue
        try:
            entries.append(parse_record(block))
        except (ValueError, IndexError) as e:
            skipped += 1
            debug_print(f"atlas: skipping record at line {start + PREAMBLE_LINES + 1}: {e}")

    if skipped:
        print(f"Warning: skipped {skipped} malformed atlas record(s)")
    debug_print(f"atlas: parsed {len(entries)} entries")
    return entries


def read_manifest(path: Union[str, Path]) -> List[AtlasEntry]:
    """Read and parse an atlas manifest file."""
    with open(path, "r", encoding="utf-8") as f:
        return parse_manifest_lines(f.readlines())
