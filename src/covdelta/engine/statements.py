"""Locate the lines on which Go statements begin.

Coverage blocks span ranges of lines; a changed line inside a block only adds
a statement when a statement actually starts there.  The source is parsed
with tree-sitter's Go grammar and every statement node contributes the line
of its own start position (for compound statements that is the line carrying
the ``if``/``for``/``switch``/``select`` keyword, not the body).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cache
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tree_sitter
import tree_sitter_go

from covdelta import logger
from covdelta.errors import StatementParseError
from covdelta.model.paths import iter_existing_sources

if TYPE_CHECKING:
    from collections.abc import Iterable

StatementIndex = frozenset[int]

# Simple statements and the introductory line of compound statements.
STATEMENT_NODES = frozenset({
    "assignment_statement",
    "short_var_declaration",
    "expression_statement",
    "return_statement",
    "if_statement",
    "for_statement",
    "expression_switch_statement",
    "type_switch_statement",
    "select_statement",
    "send_statement",
    "inc_statement",
    "dec_statement",
    "go_statement",
    "defer_statement",
    "break_statement",
    "continue_statement",
    "goto_statement",
    "fallthrough_statement",
})

# case/default labels of switch and select statements.
CASE_NODES = frozenset({
    "expression_case",
    "type_case",
    "default_case",
    "communication_case",
})

# Declarations only count as statements inside a function body.
DECLARATION_NODES = frozenset({
    "var_declaration",
    "const_declaration",
    "type_declaration",
})


@cache
def _go_language() -> tree_sitter.Language:
    return tree_sitter.Language(tree_sitter_go.language())


def _is_statement(node: Any) -> bool:
    kind = node.type
    if kind in STATEMENT_NODES or kind in CASE_NODES:
        return True
    if kind in DECLARATION_NODES:
        parent = node.parent
        return parent is not None and parent.type != "source_file"
    return False


def statement_lines(source: bytes | str) -> StatementIndex:
    """Return the 1-based line numbers on which a statement begins.

    Raises :class:`~covdelta.errors.StatementParseError` when the source
    contains syntax errors.
    """
    if isinstance(source, str):
        source = source.encode("utf-8")

    parser = tree_sitter.Parser(_go_language())
    tree = parser.parse(source)
    root = tree.root_node
    if root.has_error:
        msg = "source contains syntax errors"
        raise StatementParseError(msg)

    lines: set[int] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if _is_statement(node):
            lines.add(node.start_point[0] + 1)
        stack.extend(node.children)
    return frozenset(lines)


def count_statements_in_lines(index: StatementIndex, lines: Iterable[int]) -> int:
    """Count how many of *lines* begin a statement."""
    return sum(1 for ln in set(lines) if ln in index)


def statement_lines_for_path(path: Path) -> StatementIndex:
    """Parse the Go file at *path*; ``OSError`` propagates."""
    source = Path(path).read_bytes()
    try:
        return statement_lines(source)
    except StatementParseError as exc:
        msg = f"{path}: {exc}"
        raise StatementParseError(msg) from exc


@dataclass(slots=True)
class StatementIndexCache:
    """Per-report cache of statement indexes.

    Indexes are keyed by the resolved source path, populated on first access
    and never invalidated.  A coverage file name that cannot be resolved or
    parsed is remembered as unavailable (``None``).

    The cache is not synchronised; it belongs to a single report computation.
    """

    source_root: Path | None = None
    _by_path: dict[Path, StatementIndex | None] = field(default_factory=dict, repr=False)
    _by_name: dict[str, StatementIndex | None] = field(default_factory=dict, repr=False)

    def _index_for_path(self, path: Path) -> StatementIndex | None:
        key = path.resolve()
        if key in self._by_path:
            return self._by_path[key]
        try:
            index: StatementIndex | None = statement_lines_for_path(key)
        except (OSError, StatementParseError) as exc:
            logger.debug("statement index unavailable for %s: %s", key, exc)
            index = None
        self._by_path[key] = index
        return index

    def get(self, file_name: str) -> StatementIndex | None:
        """Return the statement index for a coverage *file_name*, if any.

        Every existing candidate path is tried in order; the first one that
        parses wins.
        """
        if file_name in self._by_name:
            return self._by_name[file_name]

        index: StatementIndex | None = None
        for path in iter_existing_sources(file_name, self.source_root):
            index = self._index_for_path(path)
            if index is not None:
                break
        if index is None:
            logger.debug("no statement index for %s; using proportional estimates", file_name)
        self._by_name[file_name] = index
        return index

    def __len__(self) -> int:
        return len(self._by_path)


__all__ = [
    "CASE_NODES",
    "DECLARATION_NODES",
    "STATEMENT_NODES",
    "StatementIndex",
    "StatementIndexCache",
    "count_statements_in_lines",
    "statement_lines",
    "statement_lines_for_path",
]
