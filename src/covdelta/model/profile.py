"""In-memory model of a Go coverage run."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covdelta.config import ROOT_SENTINEL
from covdelta.model.metrics import pct

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

BlockKey = tuple[int, int, int, int]


@dataclass(frozen=True, slots=True)
class Block:
    """A contiguous source range instrumented as one unit."""

    start_line: int
    start_col: int
    end_line: int
    end_col: int
    num_stmt: int
    count: int

    def __post_init__(self) -> None:
        """Validate that the range and counters are sane."""
        if self.start_line < 1 or self.end_line < self.start_line:
            msg = f"invalid block range {self.start_line}-{self.end_line}"
            raise ValueError(msg)
        if self.num_stmt < 0 or self.count < 0:
            msg = "Block.num_stmt/count must be >= 0"
            raise ValueError(msg)

    @property
    def key(self) -> BlockKey:
        return (self.start_line, self.start_col, self.end_line, self.end_col)

    @property
    def covered(self) -> bool:
        return self.count > 0

    @property
    def line_count(self) -> int:
        return self.end_line - self.start_line + 1

    def lines(self) -> range:
        return range(self.start_line, self.end_line + 1)


@dataclass(slots=True)
class Profile:
    """Coverage blocks of a single source file, in source order."""

    file_name: str
    blocks: tuple[Block, ...] = ()
    mode: str = "set"

    @property
    def total(self) -> int:
        return sum(b.num_stmt for b in self.blocks)

    @property
    def covered(self) -> int:
        return sum(b.num_stmt for b in self.blocks if b.covered)

    @property
    def missed(self) -> int:
        return self.total - self.covered

    def coverage_percent(self) -> float:
        return pct(self.covered, self.total)

    def block_keys(self) -> set[BlockKey]:
        return {b.key for b in self.blocks}


def profile_counts(profile: Profile | None) -> tuple[int, int, int]:
    """Return ``(total, covered, missed)`` treating a missing profile as empty."""
    if profile is None:
        return 0, 0, 0
    return profile.total, profile.covered, profile.missed


def trim_name(name: str, prefix: str) -> str:
    """Strip the leading path segments *prefix* from *name*.

    Only whole segments are removed: ``repo/x.go`` loses the prefix ``repo``
    but ``repox.go`` does not.  A name equal to the prefix becomes ``.``.
    """
    prefix = prefix.rstrip("/")
    if not prefix:
        return name
    if name == prefix:
        return ROOT_SENTINEL
    if name.startswith(prefix + "/"):
        return name[len(prefix) + 1 :] or ROOT_SENTINEL
    return name


def package_of(file_name: str) -> str:
    """Return the package (directory) a file belongs to."""
    return posixpath.dirname(file_name) or ROOT_SENTINEL


@dataclass(slots=True)
class Coverage:
    """All profiles of one coverage run.

    Repository totals are derived from the current file mapping on every
    access so they cannot drift from the per-file numbers.
    """

    files: dict[str, Profile] = field(default_factory=dict)

    @classmethod
    def from_profiles(cls, profiles: Iterable[Profile]) -> Coverage:
        return cls(files={p.file_name: p for p in profiles})

    @property
    def total(self) -> int:
        return sum(p.total for p in self.files.values())

    @property
    def covered(self) -> int:
        return sum(p.covered for p in self.files.values())

    @property
    def missed(self) -> int:
        return self.total - self.covered

    def percent(self) -> float:
        return pct(self.covered, self.total)

    def get(self, file_name: str) -> Profile | None:
        return self.files.get(file_name)

    def __contains__(self, file_name: object) -> bool:
        return file_name in self.files

    def __iter__(self) -> Iterator[Profile]:
        for name in sorted(self.files):
            yield self.files[name]

    def __len__(self) -> int:
        return len(self.files)

    def by_package(self) -> dict[str, Coverage]:
        """Group the profiles by the directory of their file name."""
        grouped: dict[str, list[Profile]] = {}
        for name, profile in self.files.items():
            grouped.setdefault(package_of(name), []).append(profile)
        return {pkg: Coverage.from_profiles(profiles) for pkg, profiles in grouped.items()}

    def trimmed_names(self, prefix: str) -> dict[str, str]:
        """Map every file key to its name with *prefix* removed.

        Raises :class:`ValueError` if two keys would end up with the same
        name.
        """
        names: dict[str, str] = {}
        owners: dict[str, str] = {}
        for name in self.files:
            new_name = trim_name(name, prefix)
            if new_name in owners:
                msg = f"trimming {prefix!r} maps both {owners[new_name]!r} and {name!r} to {new_name!r}"
                raise ValueError(msg)
            owners[new_name] = name
            names[name] = new_name
        return names

    def trim_prefix(self, prefix: str) -> None:
        """Rewrite every file key in place with *prefix* removed.

        This is a destructive, one-time normalisation step applied before
        rendering.  Blocks are untouched, so totals are preserved exactly.
        Nothing is changed when the rename would collide.
        """
        names = self.trimmed_names(prefix)
        renamed: dict[str, Profile] = {}
        for name, profile in self.files.items():
            profile.file_name = names[name]
            renamed[names[name]] = profile
        self.files.clear()
        self.files.update(renamed)


__all__ = [
    "Block",
    "BlockKey",
    "Coverage",
    "Profile",
    "package_of",
    "profile_counts",
    "trim_name",
]
