"""Emoji markers for coverage changes, shared by the Markdown renderer."""

from __future__ import annotations

SKULL = ":skull: "
NO_CHANGE = "ø"


def format_delta(delta: float) -> str:
    """Return the bold signed percentage for a nonzero *delta*."""
    return f"**{delta:+.2f}%**"


def severity(new_percent: float, old_percent: float) -> tuple[str, str]:
    """Return ``(marker, delta_text)`` for a change from *old_percent* to *new_percent*."""
    delta = new_percent - old_percent
    if delta < -50:  # noqa: PLR2004
        return SKULL * 5, format_delta(delta)
    if delta < -10:  # noqa: PLR2004
        return SKULL * int(-delta / 10), format_delta(delta)
    if delta < 0:
        return ":thumbsdown:", format_delta(delta)
    if delta == 0:
        return "", NO_CHANGE
    if delta > 20:  # noqa: PLR2004
        return ":star2:", format_delta(delta)
    if delta > 10:  # noqa: PLR2004
        return ":tada:", format_delta(delta)
    return ":thumbsup:", format_delta(delta)


def new_code_marker(percent: float) -> str:
    """Return the marker for the coverage percentage of new code."""
    bands = (
        (90.0, ":star2:"),
        (80.0, ":tada:"),
        (70.0, ":thumbsup:"),
        (50.0, ":neutral_face:"),
        (30.0, ":thumbsdown:"),
    )
    for floor, marker in bands:
        if percent >= floor:
            return marker
    return ":skull:"


__all__ = ["NO_CHANGE", "format_delta", "new_code_marker", "severity"]
