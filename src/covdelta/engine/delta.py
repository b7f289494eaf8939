"""Attribute coverage blocks of a change to new code.

For every changed file the calculator decides which blocks of the new
profile hold new statements and how many:

1. a file missing from the new profile contributes nothing (deleted or
   untested);
2. a file missing from the old profile is new in its entirety;
3. without a change set at all, blocks are compared by exact position with
   the old profile (block-identity mode);
4. with a change set but no changed lines for the file, the whole new profile
   counts as new (fallback mode);
5. otherwise each block is checked against the changed lines: the number of
   changed lines that begin a statement when the source can be parsed, a
   proportional estimate when it cannot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from covdelta import logger
from covdelta.engine.statements import count_statements_in_lines
from covdelta.model.metrics import pct
from covdelta.model.paths import locate_source

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from pathlib import Path

    from covdelta.engine.statements import StatementIndexCache
    from covdelta.model.changeset import ChangeSet, FileChange
    from covdelta.model.profile import Block, Coverage, Profile


class Attribution(StrEnum):
    """How the new statements of a file were determined."""

    WHOLE_FILE = "whole-file"
    BLOCK_IDENTITY = "block-identity"
    FALLBACK = "fallback"
    LINE_AWARE = "line-aware"


@dataclass(frozen=True, slots=True)
class NewCodeCoverage:
    """Statement totals of the code introduced by a change."""

    total: int = 0
    covered: int = 0

    @property
    def missed(self) -> int:
        return self.total - self.covered

    @property
    def percent(self) -> float:
        return pct(self.covered, self.total)

    def below(self, threshold: float) -> bool:
        """Return True if a nonzero *threshold* is not met by nonzero new code."""
        return threshold > 0 and self.total > 0 and self.percent < threshold


@dataclass(frozen=True, slots=True)
class NewCodeBlock:
    """A coverage block that holds new statements."""

    file_name: str
    start_line: int
    end_line: int
    num_stmt: int
    new_statements: int
    covered: bool
    attribution: Attribution
    lines: tuple[str, ...] = ()


def read_source_lines(path: Path) -> tuple[str, ...]:
    """Return the lines of *path* without line terminators.

    Unreadable files yield an empty tuple.
    """
    try:
        with path.open(encoding="utf-8", errors="replace") as f:
            return tuple(ln.rstrip("\r\n") for ln in f)
    except OSError:
        return ()


@dataclass(slots=True)
class SourceLineCache:
    """Per-report cache of source file lines, keyed by the resolved path."""

    _lines: dict[Path, tuple[str, ...]] = field(default_factory=dict, repr=False)

    def get(self, path: Path) -> tuple[str, ...]:
        key = path.resolve()
        if key not in self._lines:
            self._lines[key] = read_source_lines(key)
        return self._lines[key]

    def __len__(self) -> int:
        return len(self._lines)


class DeltaCalculator:
    """Compute new-code coverage for one report."""

    def __init__(
        self,
        *,
        old: Coverage,
        new: Coverage,
        changed_files: Sequence[str],
        change_set: ChangeSet | None,
        statements: StatementIndexCache,
        sources: SourceLineCache | None = None,
        source_root: Path | None = None,
    ) -> None:
        self.old = old
        self.new = new
        self.changed_files = tuple(changed_files)
        self.change_set = change_set
        self.statements = statements
        self.sources = sources if sources is not None else SourceLineCache()
        self.source_root = source_root

    # ------------------------------------------------------------------ #
    # Per-block attribution                                              #
    # ------------------------------------------------------------------ #

    def _line_aware_statements(self, file_name: str, block: Block, change: FileChange) -> int:
        changed = change.changed_in_range(block.start_line, block.end_line)
        if not changed:
            return 0

        index = self.statements.get(file_name)
        if index is not None:
            exact = count_statements_in_lines(index, changed)
            if exact >= 1:
                return exact

        # never report zero new statements for a block with changed lines
        return max(1, block.num_stmt * len(changed) // block.line_count)

    def iter_file_blocks(self, file_name: str) -> Iterator[tuple[Block, int, Attribution]]:
        """Yield ``(block, new_statements, attribution)`` for the new blocks of a file."""
        new_profile = self.new.get(file_name)
        if new_profile is None:
            logger.debug("%s: not in new coverage, skipped", file_name)
            return

        old_profile = self.old.get(file_name)
        if old_profile is None:
            for block in new_profile.blocks:
                yield block, block.num_stmt, Attribution.WHOLE_FILE
            return

        if self.change_set is None:
            yield from self._block_identity(old_profile, new_profile)
            return

        change = self.change_set.find(file_name)
        if change is None or change.is_empty:
            logger.debug("%s: no changed lines recorded, counting the whole profile as new", file_name)
            for block in new_profile.blocks:
                yield block, block.num_stmt, Attribution.FALLBACK
            return

        for block in new_profile.blocks:
            count = self._line_aware_statements(file_name, block, change)
            if count > 0:
                yield block, count, Attribution.LINE_AWARE

    @staticmethod
    def _block_identity(old_profile: Profile, new_profile: Profile) -> Iterator[tuple[Block, int, Attribution]]:
        known = old_profile.block_keys()
        for block in new_profile.blocks:
            if block.key not in known:
                yield block, block.num_stmt, Attribution.BLOCK_IDENTITY

    # ------------------------------------------------------------------ #
    # Aggregates                                                         #
    # ------------------------------------------------------------------ #

    def new_code_coverage(self) -> NewCodeCoverage:
        total = covered = 0
        for file_name in self.changed_files:
            for block, count, _attribution in self.iter_file_blocks(file_name):
                total += count
                if block.covered:
                    covered += count
        return NewCodeCoverage(total=total, covered=covered)

    def _changed_source_lines(self, file_name: str, block: Block, source: Sequence[str]) -> tuple[str, ...]:
        change = self.change_set.find(file_name) if self.change_set is not None else None
        out: list[str] = []
        for line_no in block.lines():
            if change is not None and not change.is_changed(line_no):
                continue
            if 1 <= line_no <= len(source):
                out.append(source[line_no - 1])
        return tuple(out)

    def new_code_blocks(self) -> list[NewCodeBlock]:
        """Return the new blocks of every changed file, with their source lines.

        Source lines are limited to changed lines when the change set has an
        entry for the file.  When the source cannot be located the block has
        no lines.
        """
        blocks: list[NewCodeBlock] = []
        for file_name in self.changed_files:
            source: tuple[str, ...] | None = None
            for block, count, attribution in self.iter_file_blocks(file_name):
                if source is None:
                    path = locate_source(file_name, self.source_root)
                    source = self.sources.get(path) if path is not None else ()
                blocks.append(
                    NewCodeBlock(
                        file_name=file_name,
                        start_line=block.start_line,
                        end_line=block.end_line,
                        num_stmt=block.num_stmt,
                        new_statements=count,
                        covered=block.covered,
                        attribution=attribution,
                        lines=self._changed_source_lines(file_name, block, source),
                    )
                )
        return blocks


__all__ = [
    "Attribution",
    "DeltaCalculator",
    "NewCodeBlock",
    "NewCodeCoverage",
    "SourceLineCache",
    "read_source_lines",
]
