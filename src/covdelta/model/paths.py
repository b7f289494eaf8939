"""Reconcile file names coming from different data sources.

Coverage profiles name files by import path
(``github.com/org/repo/pkg/file.go``), diffs and changed-file lists use
repository-relative paths (``pkg/file.go``) and the source tree may be checked
out anywhere.  The helpers here bridge those representations on a best-effort
basis: a failed lookup means "no information", never an error.
"""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

from covdelta import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Mapping

T = TypeVar("T")


def _is_path_suffix(path: str, suffix: str) -> bool:
    """Return True if *suffix* names the trailing segments of *path*."""
    if not suffix:
        return False
    return path == suffix or path.endswith("/" + suffix.lstrip("/"))


def find_entry(name: str, mapping: Mapping[str, T]) -> T | None:
    """Find the entry of *mapping* that refers to the same file as *name*.

    Matching is tried in order: exact key, a stored key that is a path suffix
    of *name* (``pkg/file.go`` for ``github.com/org/repo/pkg/file.go``), then
    *name* being a path suffix of a stored key.

    When several stored keys satisfy the same rule the first one in the
    mapping's iteration order wins.  Such ties are equally acceptable answers;
    no further ordering is imposed.
    """
    if name in mapping:
        return mapping[name]

    for key, value in mapping.items():
        if _is_path_suffix(name, key):
            return value

    for key, value in mapping.items():
        if _is_path_suffix(key, name):
            return value

    return None


# ---------------------------------------------------------------------------
# Candidate paths for locating source files on disk
# ---------------------------------------------------------------------------


def _as_given(name: str) -> Iterator[str]:
    yield name


def _stripped_prefixes(name: str) -> Iterator[str]:
    # a/b/c.go -> b/c.go -> c.go
    parts = [p for p in name.split("/") if p]
    for i in range(1, len(parts)):
        yield posixpath.join(*parts[i:])


def _testdata(name: str) -> Iterator[str]:
    yield posixpath.join("testdata", name)


CANDIDATE_GENERATORS: tuple[Callable[[str], Iterator[str]], ...] = (
    _as_given,
    _stripped_prefixes,
    _testdata,
)


def candidate_paths(name: str) -> list[str]:
    """Return the relative paths to try, in order, when looking for *name*."""
    seen: set[str] = set()
    out: list[str] = []
    for generate in CANDIDATE_GENERATORS:
        for candidate in generate(name):
            if candidate and candidate not in seen:
                seen.add(candidate)
                out.append(candidate)
    return out


def iter_existing_sources(name: str, root: Path | None = None) -> Iterator[Path]:
    """Yield every candidate for *name* that exists as a file under *root*."""
    base = root if root is not None else Path.cwd()
    for candidate in candidate_paths(name):
        path = Path(candidate) if Path(candidate).is_absolute() else base / candidate
        try:
            if path.is_file():
                yield path
        except OSError:
            continue


def locate_source(name: str, root: Path | None = None) -> Path | None:
    """Return the first existing source file for *name*, or ``None``."""
    for path in iter_existing_sources(name, root):
        return path
    logger.debug("could not locate source for %s", name)
    return None


__all__ = [
    "CANDIDATE_GENERATORS",
    "candidate_paths",
    "find_entry",
    "iter_existing_sources",
    "locate_source",
]
