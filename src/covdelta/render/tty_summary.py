from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING

from rich import box
from rich.console import Console
from rich.table import Table

from covdelta.model.profile import profile_counts

if TYPE_CHECKING:
    from covdelta.engine.report import Report


def _style_delta(delta: float) -> str:
    if delta > 0:
        return f"[green]{delta:+.2f}%[/green]"
    if delta < 0:
        return f"[red]{delta:+.2f}%[/red]"
    return "ø"


def _style_percent(pct: float, threshold: float) -> str:
    if threshold <= 0:
        return f"{pct:.2f}%"
    if pct >= threshold:
        return f"[green]{pct:.2f}%[/green]"
    return f"[red]{pct:.2f}%[/red]"


def render_tty_summary(report: Report, *, color: bool = True) -> str:
    """Render a Rich table of the changed files and the new-code totals."""
    table = Table(title="Coverage Delta", box=box.SIMPLE_HEAVY, header_style="bold", expand=True)

    table.add_column("File", overflow="fold")
    table.add_column("Old", justify="right")
    table.add_column("New", justify="right")
    table.add_column("Δ", justify="right")
    table.add_column("Stmt\nTot.", justify="right")
    table.add_column("Stmt\nHit", justify="right")
    table.add_column("Stmt\nMiss", justify="right")

    for name in report.code_files():
        old_profile = report.old.get(name)
        new_profile = report.new.get(name)
        old_pct = old_profile.coverage_percent() if old_profile is not None else 0.0
        new_pct = new_profile.coverage_percent() if new_profile is not None else 0.0
        total, covered, missed = profile_counts(new_profile)
        table.add_row(
            name,
            f"{old_pct:.2f}%",
            f"{new_pct:.2f}%",
            _style_delta(new_pct - old_pct),
            str(total),
            str(covered),
            f"[red]{missed}[/red]" if missed else f"[green]{missed}[/green]",
        )

    table.add_section()

    old_pct = report.old.percent()
    new_pct = report.new.percent()
    table.add_row(
        "[bold]Overall[/bold]",
        f"{old_pct:.2f}%",
        f"[bold]{new_pct:.2f}%[/bold]",
        _style_delta(new_pct - old_pct),
        f"[bold]{report.new.total}[/bold]",
        f"[bold]{report.new.covered}[/bold]",
        f"[bold]{report.new.missed}[/bold]",
    )

    new_code = report.new_code_coverage()
    if new_code.total > 0:
        table.add_row(
            "[bold]New code[/bold]",
            "",
            _style_percent(new_code.percent, report.min_coverage),
            "",
            str(new_code.total),
            str(new_code.covered),
            str(new_code.missed),
        )

    buf = StringIO()
    console = Console(
        file=buf,
        force_terminal=color,
        no_color=not color,
        color_system="standard" if color else None,
        width=120,
    )
    console.print()
    console.print(table)
    if new_code.below(report.min_coverage):
        console.print(
            f"[red]New code coverage {new_code.percent:.2f}% is below the required "
            f"{report.min_coverage:.2f}%[/red]"
        )
    console.print()
    return buf.getvalue().rstrip()


__all__ = ["render_tty_summary"]
