from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from covdelta.engine.statements import (
    StatementIndexCache,
    count_statements_in_lines,
    statement_lines,
    statement_lines_for_path,
)
from covdelta.errors import StatementParseError

RUN_GO = """\
package demo

var top = 1

func Run(ch chan int, xs []int) (n int) {
\tvar local = 2
\tfor _, x := range xs {
\t\tn += x
\t}
\tif n > local {
\t\tn++
\t}
\tswitch n {
\tcase 1:
\t\tn--
\tdefault:
\t\tch <- n
\t}
\tdefer close(ch)
\tgo func() {}()
\treturn n
}
"""


def test_statement_lines() -> None:
    assert statement_lines(RUN_GO) == {6, 7, 8, 10, 11, 13, 14, 15, 16, 17, 19, 20, 21}


def test_compound_statements_mark_their_keyword_line_only() -> None:
    source = "package demo\n\nfunc F(ok bool) {\n\tif ok {\n\t}\n}\n"
    assert statement_lines(source) == {4}


def test_comments_and_blank_lines_are_not_statements(compute_project: dict[str, Path]) -> None:
    index = statement_lines_for_path(compute_project["source"])
    assert index == {4, 5, 7, 8}
    assert count_statements_in_lines(index, [5, 6, 7]) == 2


def test_syntax_error_raises() -> None:
    with pytest.raises(StatementParseError):
        statement_lines("package demo\n\nfunc {\n")


def test_cache_resolves_candidates_once(
    compute_project: dict[str, Path], statements: StatementIndexCache
) -> None:
    index = statements.get("example.com/demo/compute.go")
    assert index == {4, 5, 7, 8}
    assert statements.get("example.com/demo/compute.go") is index
    assert len(statements) == 1


def test_cache_remembers_unavailable_sources(
    write_file: Callable[[str, str], Path], statements: StatementIndexCache
) -> None:
    write_file("broken/broken.go", "package broken\n\nfunc {\n")

    assert statements.get("example.com/broken/broken.go") is None
    assert statements.get("example.com/missing/missing.go") is None
