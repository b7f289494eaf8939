from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from covdelta import logger
from covdelta.render.json import render_json
from covdelta.render.markdown import render_markdown
from covdelta.render.tty_summary import render_tty_summary

if TYPE_CHECKING:
    from covdelta.engine.report import Report


class OutputFormat(StrEnum):
    MARKDOWN = "markdown"
    JSON = "json"
    HUMAN = "human"


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Presentation options; they never change the report content."""

    color: bool = False


def render(report: Report, *, fmt: str, options: RenderOptions | None = None) -> str:
    """Render *report* to text.

    Parameters
    ----------
    report:
        Report to render.
    fmt:
        One of: "markdown", "json", "human".
    options:
        Presentation options, used by the human renderer only.
    """
    options = options or RenderOptions()
    try:
        resolved = OutputFormat((fmt or "").strip().lower())
    except ValueError as exc:
        choices = ", ".join(f.value for f in OutputFormat)
        msg = f"Unsupported format: {fmt!r}. Expected one of: {choices}."
        raise ValueError(msg) from exc

    logger.debug("rendering report as %s", resolved.value)
    if resolved is OutputFormat.JSON:
        return render_json(report)
    if resolved is OutputFormat.HUMAN:
        return render_tty_summary(report, color=options.color)
    return render_markdown(report)


__all__ = ["OutputFormat", "RenderOptions", "render"]
