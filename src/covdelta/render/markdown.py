"""Markdown rendering of a :class:`~covdelta.engine.report.Report`.

The output is posted as a pull request comment and later re-fetched and
compared by tooling, so the text is fully deterministic: identical inputs
always produce identical bytes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from covdelta.model.profile import profile_counts
from covdelta.render.severity import new_code_marker, severity

if TYPE_CHECKING:
    from covdelta.engine.delta import NewCodeBlock, NewCodeCoverage
    from covdelta.engine.report import Report

FILE_TABLE_NOTE = (
    '_Please note that the "Total", "Covered", and "Missed" counts above refer to '
    "***code statements*** instead of lines of code. The value in brackets refers to "
    "the test coverage of that file in the old version of the code._"
)


def _signed_change(change: int) -> str:
    if change > 0:
        return f" (+{change})"
    if change < 0:
        return f" ({change})"
    return ""


def _value_with_delta(old: int, new: int) -> str:
    diff = old - new
    if diff < 0:
        return f"{new} (+{-diff})"
    if diff > 0:
        return f"{new} (-{diff})"
    return f"{new}"


def title(report: Report) -> str:
    old_pct = report.old.percent()
    new_pct = report.new.percent()
    _marker, delta_text = severity(new_pct, old_pct)
    delta = report.overall_delta()
    if delta == 0:
        return f"### Coverage Report - {new_pct:.2f}% (no change)"
    if delta > 0:
        return f"### Coverage Report - {new_pct:.2f}% ({delta_text}) - **increase**"
    return f"### Coverage Report - {new_pct:.2f}% ({delta_text}) - **decrease**"


def _overall_summary(report: Report, new_code: NewCodeCoverage) -> list[str]:
    old_pct = report.old.percent()
    new_pct = report.new.percent()
    marker, delta_text = severity(new_pct, old_pct)

    out = [
        "",
        "#### Overall Coverage Summary",
        "",
        "| Metric | Old Coverage | New Coverage | Change | :robot: |",
        "|--------|-------------|-------------|--------|---------|",
        f"| **Total** | {old_pct:.2f}% | {new_pct:.2f}% | {delta_text} | {marker} |",
    ]
    if new_code.total > 0:
        out.append(
            f"| **New Code** | N/A | {new_code.percent:.2f}% | "
            f"{new_code.covered}/{new_code.total} statements | {new_code_marker(new_code.percent)} |"
        )
    out.append("")

    if new_code.below(report.min_coverage):
        out.extend([
            "> [!WARNING]",
            f"> **Coverage threshold not met:** New code coverage is **{new_code.percent:.2f}%**, "
            f"which is below the required threshold of **{report.min_coverage:.2f}%**.",
            "",
        ])

    old, new = report.old, report.new
    out.extend([
        "| **Statements** | Total | Covered | Missed |",
        "|---|---|---|---|",
        f"| **Old** | {old.total} | {old.covered} | {old.missed} |",
        f"| **New** | {new.total}{_signed_change(new.total - old.total)} | "
        f"{new.covered}{_signed_change(new.covered - old.covered)} | {new.missed} |",
        "",
    ])
    return out


def _package_details(report: Report) -> list[str]:
    out = [
        "---",
        "",
        "<details>",
        "",
        "<summary>Impacted Packages</summary>",
        "",
        "| Impacted Packages | Coverage Δ | :robot: |",
        "|-------------------|------------|---------|",
    ]
    old_pkgs = report.old.by_package()
    new_pkgs = report.new.by_package()
    for pkg in report.changed_packages:
        old_pct = old_pkgs[pkg].percent() if pkg in old_pkgs else 0.0
        new_pct = new_pkgs[pkg].percent() if pkg in new_pkgs else 0.0
        marker, delta_text = severity(new_pct, old_pct)
        out.append(f"| {pkg} | {new_pct:.2f}% ({delta_text}) | {marker} |")
    out.extend(["", "</details>", ""])
    return out


def _code_file_details(report: Report, files: list[str]) -> list[str]:
    out = [
        "### Changed files (no unit tests)",
        "",
        "| Changed File | Coverage Δ | Total | Covered | Missed | :robot: |",
        "|--------------|------------|-------|---------|--------|---------|",
    ]
    for name in files:
        old_profile = report.old.get(name)
        new_profile = report.new.get(name)
        old_pct = old_profile.coverage_percent() if old_profile is not None else 0.0
        new_pct = new_profile.coverage_percent() if new_profile is not None else 0.0
        old_counts = profile_counts(old_profile)
        new_counts = profile_counts(new_profile)

        marker, delta_text = severity(new_pct, old_pct)
        cells = " | ".join(_value_with_delta(o, n) for o, n in zip(old_counts, new_counts, strict=True))
        out.append(f"| {name} | {new_pct:.2f}% ({delta_text}) | {cells} | {marker} |")
    out.extend(["", FILE_TABLE_NOTE, ""])
    return out


def _test_file_details(files: list[str]) -> list[str]:
    out = ["### Changed unit test files", ""]
    out.extend(f"- {name}" for name in files)
    out.append("")
    return out


def _file_details(report: Report) -> list[str]:
    out = ["<details>", "", "<summary>Coverage by file</summary>", ""]
    code_files = report.code_files()
    test_files = report.test_files()
    if code_files:
        out.extend(_code_file_details(report, code_files))
    if test_files:
        out.extend(_test_file_details(test_files))
    out.append("</details>")
    return out


def _block_lines(block: NewCodeBlock) -> list[str]:
    if block.lines:
        prefix = "+" if block.covered else "-"
        return [f"{prefix} {line}" for line in block.lines]

    if block.start_line == block.end_line:
        line_range = f"Line {block.start_line}"
    else:
        line_range = f"Lines {block.start_line}-{block.end_line}"
    stmt_text = "statement" if block.num_stmt == 1 else "statements"
    if block.covered:
        return [f"+ {line_range} ({block.num_stmt} {stmt_text}) - COVERED ✓"]
    return [f"- {line_range} ({block.num_stmt} {stmt_text}) - NOT COVERED ✗"]


def _new_code_details(blocks: list[NewCodeBlock]) -> list[str]:
    by_file: dict[str, list[NewCodeBlock]] = {}
    for block in blocks:
        by_file.setdefault(block.file_name, []).append(block)

    out = [
        "<details>",
        "",
        "<summary>New Code Coverage Details</summary>",
        "",
        "This section shows the coverage status of each new code block added in this PR.",
        "",
    ]
    for file_name in sorted(by_file):
        out.extend([f"#### {file_name}", "", "```diff"])
        for block in by_file[file_name]:
            out.extend(_block_lines(block))
        out.extend(["```", ""])
    out.extend(["</details>", "", ""])
    return out


def render_markdown(report: Report) -> str:
    """Render *report* as the Markdown body of a pull request comment.

    The file details end without a newline.  The new-code details, when
    present, follow directly on the same line and end with a blank line.
    """
    new_code = report.new_code_coverage()

    lines = [title(report)]
    lines.extend(_overall_summary(report, new_code))
    lines.extend(_package_details(report))
    lines.extend(_file_details(report))

    if new_code.total > 0:
        blocks = report.new_code_blocks()
        if blocks:
            details = _new_code_details(blocks)
            lines[-1] += details[0]
            lines.extend(details[1:])

    return "\n".join(lines)


__all__ = ["FILE_TABLE_NOTE", "render_markdown", "title"]
