"""Central configuration and constants for ``covdelta``."""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from functools import cache
from importlib import resources
from pathlib import Path
from typing import Any

from covdelta import logger

# Default logging format used by the CLI entry point.
LOG_FORMAT = "%(levelname)s: %(message)s"

# Go test files are listed separately in the report.
TEST_FILE_SUFFIX = "_test.go"
GO_SOURCE_SUFFIX = ".go"

# Replacement for a file or package key that trims down to nothing.
ROOT_SENTINEL = "."

CONFIG_FILE_NAME = "covdelta.toml"

_SCHEMA_FILES: dict[str, str] = {
    "v1": "report.schema.json",
}


@cache
def get_schema(version: str = "v1") -> dict[str, object]:
    """Load and cache the JSON schema for structured output."""
    try:
        filename = _SCHEMA_FILES[version]
    except KeyError as exc:
        choices = ", ".join(sorted(_SCHEMA_FILES))
        msg = f"Unsupported schema version: {version!r}. Available versions: {choices}"
        raise ValueError(msg) from exc
    return json.loads(resources.files("covdelta.data").joinpath(filename).read_text(encoding="utf-8"))


@dataclass(frozen=True, slots=True)
class Settings:
    """Defaults read from a configuration file.

    Every field is optional; command line flags and environment variables
    take precedence over anything set here.
    """

    root: str | None = None
    trim: str | None = None
    min_coverage: float | None = None
    diff_format: str | None = None
    source_root: Path | None = None
    config_path: Path | None = None


def _find_project_root(start: Path) -> Path:
    """Walk upward looking for a config file, pyproject.toml or .git."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if (p / CONFIG_FILE_NAME).exists() or (p / "pyproject.toml").exists():
            return p
        if (p / ".git").exists():
            return p
    return cur


def _read_table(root: Path) -> tuple[dict[str, Any], Path | None]:
    dedicated = root / CONFIG_FILE_NAME
    if dedicated.exists():
        data = tomllib.loads(dedicated.read_text(encoding="utf-8"))
        return data, dedicated

    pyproject = root / "pyproject.toml"
    if pyproject.exists():
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        table = data.get("tool", {}).get("covdelta", {})
        if table:
            return table, pyproject
    return {}, None


def load_settings(cwd: Path) -> Settings:
    """Return the settings of the project containing *cwd*.

    ``covdelta.toml`` is read as a whole; in ``pyproject.toml`` only the
    ``[tool.covdelta]`` table is considered.  Invalid TOML raises
    :class:`tomllib.TOMLDecodeError`, unknown keys are ignored.
    """
    root = _find_project_root(cwd)
    table, path = _read_table(root)
    if path is None:
        return Settings()

    logger.debug("loaded settings from %s", path)

    min_coverage = table.get("min-coverage", table.get("min_coverage"))
    if min_coverage is not None:
        try:
            min_coverage = float(min_coverage)
        except (TypeError, ValueError) as exc:
            msg = f"{path}: min-coverage must be a number, got {min_coverage!r}"
            raise ValueError(msg) from exc

    source_root = table.get("source-root", table.get("source_root"))
    return Settings(
        root=_opt_str(table.get("root")),
        trim=_opt_str(table.get("trim")),
        min_coverage=min_coverage,
        diff_format=_opt_str(table.get("diff-format", table.get("diff_format"))),
        source_root=(root / source_root).resolve() if isinstance(source_root, str) and source_root else None,
        config_path=path,
    )


def _opt_str(value: object) -> str | None:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


__all__ = [
    "CONFIG_FILE_NAME",
    "GO_SOURCE_SUFFIX",
    "LOG_FORMAT",
    "ROOT_SENTINEL",
    "TEST_FILE_SUFFIX",
    "Settings",
    "get_schema",
    "load_settings",
]
