"""Readers that build a :class:`~covdelta.model.changeset.ChangeSet`.

Two input formats are supported:

* a structured JSON document mapping each file to its added and modified
  line numbers::

      {"pkg/file.go": {"added_lines": [1, 2, 3], "modified_lines": [5, 6]}}

* a textual unified diff as produced by ``git diff``.
"""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from covdelta import logger
from covdelta.errors import InvalidChangeSetError
from covdelta.model.changeset import ChangeSet, FileChange

if TYPE_CHECKING:
    from collections.abc import Iterable


class DiffFormat(StrEnum):
    """Supported change-set input formats."""

    AUTO = "auto"
    JSON = "json"
    UNIFIED = "unified"


_FILE_HEADER = "+++ "
_NEW_FILE_PREFIX = "+++ b/"
_HUNK_PREFIX = "@@"


# ---------------------------------------------------------------------------
# Structured change sets
# ---------------------------------------------------------------------------


def _line_numbers(file_name: str, key: str, raw: object) -> set[int]:
    if raw is None:
        return set()
    if not isinstance(raw, list) or not all(isinstance(n, int) and not isinstance(n, bool) for n in raw):
        msg = f"{file_name}: {key} must be a list of integers"
        raise InvalidChangeSetError(msg)
    return set(raw)


def change_set_from_mapping(data: Any) -> ChangeSet:
    """Build a change set from an already decoded JSON document."""
    if not isinstance(data, dict):
        msg = f"change set must be a JSON object, got {type(data).__name__}"
        raise InvalidChangeSetError(msg)

    change_set = ChangeSet()
    for file_name, entry in data.items():
        if not isinstance(entry, dict):
            msg = f"{file_name}: expected an object with added_lines/modified_lines"
            raise InvalidChangeSetError(msg)
        change_set.add(
            FileChange(
                file_name=file_name,
                added=_line_numbers(file_name, "added_lines", entry.get("added_lines")),
                modified=_line_numbers(file_name, "modified_lines", entry.get("modified_lines")),
            )
        )
    return change_set


def parse_change_set_json(path: Path | None) -> ChangeSet | None:
    """Read a structured change-set file.

    ``None`` for *path* means no line-level information was requested and is
    returned as ``None``.
    """
    if path is None:
        return None
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"{path}: invalid JSON: {exc}"
        raise InvalidChangeSetError(msg) from exc
    change_set = change_set_from_mapping(data)
    logger.debug("read structured change set for %d files from %s", len(change_set), path)
    return change_set


# ---------------------------------------------------------------------------
# Unified diffs
# ---------------------------------------------------------------------------


def _hunk_new_start(line: str) -> int | None:
    """Return ``c`` from ``@@ -a,b +c,d @@``, or None if the header is malformed."""
    parts = line.split(" ")
    if len(parts) < 3 or not parts[2].startswith("+"):  # noqa: PLR2004
        return None
    start, _, _count = parts[2][1:].partition(",")
    try:
        return int(start)
    except ValueError:
        return None


def parse_unified_diff_lines(lines: Iterable[str]) -> ChangeSet:
    """Scan unified diff *lines* and record the added lines of each file.

    Line numbers refer to the new version of each file.  Removed lines do not
    advance the counter.  A malformed hunk header is skipped and the running
    counter keeps its previous value.
    """
    change_set = ChangeSet()
    current: FileChange | None = None
    line_no = 0

    for raw in lines:
        line = raw.rstrip("\r\n")

        if line.startswith(_FILE_HEADER):
            if line.startswith(_NEW_FILE_PREFIX):
                name = line[len(_NEW_FILE_PREFIX) :]
                current = FileChange(file_name=name)
                change_set.add(current)
            else:
                # "+++ /dev/null": the file was deleted
                current = None
            continue

        if line.startswith(_HUNK_PREFIX):
            start = _hunk_new_start(line)
            if start is None:
                logger.debug("skipping malformed hunk header %r", line)
            else:
                line_no = start
            continue

        if current is None:
            continue

        if line.startswith("+"):
            current.added.add(line_no)
            line_no += 1
        elif line.startswith(" "):
            line_no += 1

    return change_set


def parse_unified_diff_text(text: str) -> ChangeSet:
    return parse_unified_diff_lines(text.splitlines())


def parse_unified_diff(path: Path | None) -> ChangeSet | None:
    """Read the unified diff at *path*; ``None`` when no path is given."""
    if path is None:
        return None
    with Path(path).open(encoding="utf-8", errors="replace") as f:
        change_set = parse_unified_diff_lines(f)
    logger.debug("read unified diff for %d files from %s", len(change_set), path)
    return change_set


def load_change_set(path: Path | None, fmt: DiffFormat | str = DiffFormat.AUTO) -> ChangeSet | None:
    """Read *path* with the reader selected by *fmt*.

    ``auto`` uses the structured reader for ``.json`` files and the unified
    diff reader for everything else.
    """
    if path is None:
        return None
    if isinstance(fmt, str):
        try:
            fmt = DiffFormat(fmt.lower())
        except ValueError as exc:
            choices = ", ".join(f.value for f in DiffFormat)
            msg = f"diff format must be one of [{choices}], got {fmt!r}"
            raise ValueError(msg) from exc

    if fmt is DiffFormat.AUTO:
        fmt = DiffFormat.JSON if Path(path).suffix.lower() == ".json" else DiffFormat.UNIFIED

    if fmt is DiffFormat.JSON:
        return parse_change_set_json(path)
    return parse_unified_diff(path)


__all__ = [
    "DiffFormat",
    "change_set_from_mapping",
    "load_change_set",
    "parse_change_set_json",
    "parse_unified_diff",
    "parse_unified_diff_lines",
    "parse_unified_diff_text",
]
