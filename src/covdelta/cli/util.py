"""Helpers shared by the command implementations."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click.utils as click_utils

from covdelta import logger
from covdelta.config import LOG_FORMAT


def _configure_runtime(*, quiet: bool, verbose: bool) -> None:
    """Configure logging based on *quiet*/*verbose*."""
    level = logging.ERROR if quiet else (logging.DEBUG if verbose else logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)
    logger.setLevel(level)


def is_tty_output(destination: Path | None) -> bool:
    if destination not in {None, Path("-")}:
        return False
    try:
        stdout_is_tty = bool(getattr(sys.stdout, "isatty", lambda: False)())
    except OSError:
        return False
    return stdout_is_tty and not click_utils.should_strip_ansi(sys.stdout)


def resolve_use_color(*, color: bool, no_color: bool, color_allowed: bool) -> bool:
    # CLI flags take precedence over terminal detection.
    if no_color:
        return False
    if color:
        return True
    return color_allowed


def write_output(text: str, destination: Path | None) -> None:
    """Write output to stdout or a file (PATH or '-' for stdout)."""
    if destination is None or destination == Path("-"):
        print(text)
        return
    destination.parent.mkdir(parents=True, exist_ok=True)
    destination.write_text(text, encoding="utf-8")


__all__ = ["_configure_runtime", "is_tty_output", "resolve_use_color", "write_output"]
