from __future__ import annotations

from pathlib import Path

import pytest

from covdelta.coverage.parse import read_coverage
from covdelta.engine.report import Report
from covdelta.inputs.changed_files import parse_changed_files
from covdelta.render.render import RenderOptions, render
from covdelta.render.tty_summary import render_tty_summary


@pytest.fixture
def report(prioqueue: dict[str, Path], tmp_path: Path) -> Report:
    return Report(
        old=read_coverage(prioqueue["old_01"]),
        new=read_coverage(prioqueue["new_01"]),
        changed_files=parse_changed_files(prioqueue["changed_01"], "github.com/fgrosse/prioqueue"),
        min_coverage=50.0,
        source_root=tmp_path,
    )


def test_plain_summary(report: Report) -> None:
    text = render_tty_summary(report, color=False)

    assert "\x1b[" not in text
    assert "Coverage Delta" in text
    assert "min_heap.go" in text
    assert "80.77%" in text
    assert "-19.23%" in text
    assert "Overall" in text
    assert "New code" in text
    assert "below the required 50.00%" in text


def test_colored_summary(report: Report) -> None:
    assert "\x1b[" in render_tty_summary(report, color=True)


def test_render_dispatch(report: Report) -> None:
    assert render(report, fmt="markdown").startswith("### Coverage Report")
    assert render(report, fmt="JSON").lstrip().startswith("{")
    assert "Coverage Delta" in render(report, fmt="human", options=RenderOptions(color=False))

    with pytest.raises(ValueError, match="Unsupported format"):
        render(report, fmt="html")
