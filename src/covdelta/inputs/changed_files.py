from __future__ import annotations

import json
import posixpath
from pathlib import Path

from covdelta import logger
from covdelta.config import GO_SOURCE_SUFFIX
from covdelta.errors import InvalidChangedFilesError


def qualify(file_name: str, root: str) -> str:
    """Prefix a repository-relative *file_name* with the import *root*."""
    if not root:
        return file_name
    return posixpath.normpath(posixpath.join(root, file_name))


def changed_files_from_list(data: object, root: str = "") -> list[str]:
    """Validate a decoded changed-files list and qualify its entries.

    Only Go source files are kept since nothing else can appear in a
    coverage profile.
    """
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        msg = "changed files must be a JSON array of strings"
        raise InvalidChangedFilesError(msg)

    files: list[str] = []
    for item in data:
        if not item.endswith(GO_SOURCE_SUFFIX):
            logger.debug("ignoring changed non-Go file %s", item)
            continue
        files.append(qualify(item, root))
    return files


def parse_changed_files(path: Path, root: str = "") -> list[str]:
    """Read the JSON array of changed files at *path*."""
    text = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"{path}: invalid JSON: {exc}"
        raise InvalidChangedFilesError(msg) from exc
    return changed_files_from_list(data, root)


__all__ = ["changed_files_from_list", "parse_changed_files", "qualify"]
