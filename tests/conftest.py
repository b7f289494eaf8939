from __future__ import annotations

import json
import textwrap
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path

import pytest
from typer.testing import CliRunner

from covdelta.engine.statements import StatementIndexCache
from covdelta.model.profile import Block, Coverage, Profile

PRIOQUEUE = "github.com/fgrosse/prioqueue"

OLD_01 = f"""\
mode: set
{PRIOQUEUE}/min_heap.go:10.40,14.2 20 1
{PRIOQUEUE}/min_heap.go:16.38,25.2 22 1
{PRIOQUEUE}/min_heap.go:27.30,31.3 7 1
{PRIOQUEUE}/min_heap.go:31.3,33.2 1 1
{PRIOQUEUE}/max_heap.go:10.40,20.2 50 1
"""

NEW_01 = f"""\
mode: set
{PRIOQUEUE}/min_heap.go:10.40,14.2 20 1
{PRIOQUEUE}/min_heap.go:16.38,25.2 22 1
{PRIOQUEUE}/min_heap.go:27.30,31.3 7 0
{PRIOQUEUE}/min_heap.go:31.3,33.2 1 0
{PRIOQUEUE}/min_heap.go:35.31,36.16 2 0
{PRIOQUEUE}/max_heap.go:10.40,20.2 50 1
"""

NEW_02 = f"""\
mode: set
{PRIOQUEUE}/min_heap.go:10.40,14.2 20 1
{PRIOQUEUE}/min_heap.go:16.38,25.2 22 1
{PRIOQUEUE}/min_heap.go:27.30,31.3 7 1
{PRIOQUEUE}/min_heap.go:31.3,33.2 1 0
{PRIOQUEUE}/min_heap.go:35.31,36.16 2 1
{PRIOQUEUE}/max_heap.go:10.40,20.2 50 1
"""

COMPUTE_GO = """\
package demo

func Compute(a, b int) int {
\tx := a + b
\ty := x * 2
\t// scale the result
\tz := y - a
\treturn x + y + z
}
"""

COMPUTE_DIFF = """\
diff --git a/demo/compute.go b/demo/compute.go
index 3f2a1c0..9b8e7d4 100644
--- a/demo/compute.go
+++ b/demo/compute.go
@@ -3,4 +3,7 @@ package demo
 func Compute(a, b int) int {
 \tx := a + b
+\ty := x * 2
+\t// scale the result
+\tz := y - a
 \treturn x + y + z
 }
"""


def make_profile(file_name: str, blocks: Iterable[tuple[int, int, int, int]]) -> Profile:
    """Build a profile from ``(start_line, end_line, num_stmt, count)`` tuples."""
    return Profile(
        file_name=file_name,
        blocks=tuple(
            Block(start_line=sl, start_col=1, end_line=el, end_col=2, num_stmt=n, count=c)
            for sl, el, n, c in blocks
        ),
    )


def make_coverage(mapping: Mapping[str, Iterable[tuple[int, int, int, int]]]) -> Coverage:
    return Coverage.from_profiles(make_profile(name, blocks) for name, blocks in mapping.items())


@pytest.fixture
def runner() -> CliRunner:
    """Return a Typer CLI runner for invoking the command-line interface."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("ROOT_PACKAGE", "TRIM_PACKAGE", "MIN_COVERAGE_NEW_CODE"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def write_file(tmp_path: Path) -> Callable[[str, str], Path]:
    def write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return path

    return write


@pytest.fixture
def write_changed_files(tmp_path: Path) -> Callable[..., Path]:
    def write(files: list[str], *, filename: str = "changed-files.json") -> Path:
        path = tmp_path / filename
        path.write_text(json.dumps(files), encoding="utf-8")
        return path

    return write


@pytest.fixture
def prioqueue(write_file: Callable[[str, str], Path], write_changed_files: Callable[..., Path]) -> dict[str, Path]:
    """Coverage profiles and changed-file lists of two consecutive pull requests."""
    return {
        "old_01": write_file("01-old-coverage.txt", OLD_01),
        "new_01": write_file("01-new-coverage.txt", NEW_01),
        "changed_01": write_changed_files(["min_heap.go", "foo/bar/baz.go"], filename="01-changed-files.json"),
        "new_02": write_file("02-new-coverage.txt", NEW_02),
        "changed_02": write_changed_files(["min_heap_test.go"], filename="02-changed-files.json"),
    }


@pytest.fixture
def compute_project(write_file: Callable[[str, str], Path]) -> dict[str, Path]:
    """A Go source file together with a diff that adds three lines to it."""
    return {
        "source": write_file("demo/compute.go", COMPUTE_GO),
        "diff": write_file("compute.diff", COMPUTE_DIFF),
    }


@pytest.fixture
def statements(tmp_path: Path) -> StatementIndexCache:
    return StatementIndexCache(source_root=tmp_path)


@pytest.fixture(name="make_coverage")
def make_coverage_fixture() -> Callable[..., Coverage]:
    return make_coverage
