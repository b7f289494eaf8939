"""Reader for Go ``coverprofile`` files.

A profile starts with a mode line followed by one record per block::

    mode: set
    github.com/org/repo/pkg/file.go:12.43,14.2 1 1

Records are ``<file>:<startLine>.<startCol>,<endLine>.<endCol> <numStmt> <count>``.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from covdelta import logger
from covdelta.errors import InvalidProfileError
from covdelta.model.profile import Block, Coverage, Profile

if TYPE_CHECKING:
    from collections.abc import Iterable

MODES = frozenset({"set", "count", "atomic"})

_MODE_PREFIX = "mode: "
_RECORD_RE = re.compile(
    r"^(?P<file>.+):(?P<sl>\d+)\.(?P<sc>\d+),(?P<el>\d+)\.(?P<ec>\d+) (?P<stmts>\d+) (?P<count>\d+)$"
)


def _parse_mode(line: str, *, source: str | None, lineno: int) -> str:
    if not line.startswith(_MODE_PREFIX):
        msg = f"bad mode line: {line!r}"
        raise InvalidProfileError(msg, source=source, line=lineno)
    mode = line[len(_MODE_PREFIX) :].strip()
    if mode not in MODES:
        msg = f"unknown coverage mode {mode!r} (expected one of {', '.join(sorted(MODES))})"
        raise InvalidProfileError(msg, source=source, line=lineno)
    return mode


def _merge_blocks(
    file_name: str,
    blocks: list[Block],
    *,
    mode: str,
    source: str | None,
) -> tuple[Block, ...]:
    """Sort *blocks* and merge records of the same block.

    The same block is reported once per test binary that exercised the
    package; counts are summed, or OR-ed in ``set`` mode.
    """
    blocks.sort(key=lambda b: (b.start_line, b.start_col))
    merged: list[Block] = []
    for block in blocks:
        if merged and merged[-1].start_line == block.start_line and merged[-1].start_col == block.start_col:
            last = merged[-1]
            if last.end_line != block.end_line or last.end_col != block.end_col:
                msg = f"{file_name}: overlapping blocks starting at {block.start_line}.{block.start_col}"
                raise InvalidProfileError(msg, source=source)
            if last.num_stmt != block.num_stmt:
                msg = (
                    f"{file_name}: inconsistent statement count for block "
                    f"{block.start_line}.{block.start_col} ({last.num_stmt} != {block.num_stmt})"
                )
                raise InvalidProfileError(msg, source=source)
            count = max(last.count, block.count) if mode == "set" else last.count + block.count
            merged[-1] = Block(
                start_line=last.start_line,
                start_col=last.start_col,
                end_line=last.end_line,
                end_col=last.end_col,
                num_stmt=last.num_stmt,
                count=count,
            )
            continue
        merged.append(block)
    return tuple(merged)


def parse_profiles_lines(lines: Iterable[str], *, source: str | None = None) -> list[Profile]:
    """Parse coverprofile *lines* into profiles sorted by file name."""
    mode: str | None = None
    by_file: dict[str, list[Block]] = {}

    for lineno, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n").strip()
        if not line:
            continue
        if mode is None:
            mode = _parse_mode(line, source=source, lineno=lineno)
            continue
        if line.startswith(_MODE_PREFIX):
            # concatenated profiles repeat the header
            if _parse_mode(line, source=source, lineno=lineno) != mode:
                msg = f"mixed coverage modes ({mode!r} and {line[len(_MODE_PREFIX) :]!r})"
                raise InvalidProfileError(msg, source=source, line=lineno)
            continue

        m = _RECORD_RE.match(line)
        if m is None:
            msg = f"line {line!r} does not match the coverprofile record format"
            raise InvalidProfileError(msg, source=source, line=lineno)
        try:
            block = Block(
                start_line=int(m["sl"]),
                start_col=int(m["sc"]),
                end_line=int(m["el"]),
                end_col=int(m["ec"]),
                num_stmt=int(m["stmts"]),
                count=int(m["count"]),
            )
        except ValueError as exc:
            raise InvalidProfileError(str(exc), source=source, line=lineno) from exc
        by_file.setdefault(m["file"], []).append(block)

    if mode is None:
        msg = "empty coverage profile (missing mode line)"
        raise InvalidProfileError(msg, source=source)

    profiles = [
        Profile(file_name=name, blocks=_merge_blocks(name, blocks, mode=mode, source=source), mode=mode)
        for name, blocks in sorted(by_file.items())
    ]
    logger.debug("parsed %d file profiles (%s mode) from %s", len(profiles), mode, source or "<text>")
    return profiles


def parse_profiles_text(text: str, *, source: str | None = None) -> list[Profile]:
    return parse_profiles_lines(text.splitlines(), source=source)


def parse_profiles(path: Path) -> list[Profile]:
    """Read the coverprofile at *path*.

    ``OSError`` is propagated; malformed content raises
    :class:`~covdelta.errors.InvalidProfileError`.
    """
    with Path(path).open(encoding="utf-8") as f:
        return parse_profiles_lines(f, source=str(path))


def read_coverage(path: Path) -> Coverage:
    """Read *path* into a :class:`Coverage`."""
    return Coverage.from_profiles(parse_profiles(path))


__all__ = [
    "MODES",
    "parse_profiles",
    "parse_profiles_lines",
    "parse_profiles_text",
    "read_coverage",
]
