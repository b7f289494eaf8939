"""Lines added or modified by a change, per file."""

from __future__ import annotations

from dataclasses import dataclass, field

from covdelta.model.paths import find_entry


@dataclass(slots=True)
class FileChange:
    """Changed lines of one file.

    ``added`` and ``modified`` are disjoint by convention; the delta engine
    treats both as "changed".
    """

    file_name: str
    added: set[int] = field(default_factory=set)
    modified: set[int] = field(default_factory=set)

    @property
    def changed(self) -> set[int]:
        return self.added | self.modified

    @property
    def is_empty(self) -> bool:
        return not self.added and not self.modified

    def is_changed(self, line: int) -> bool:
        return line in self.added or line in self.modified

    def changed_in_range(self, start: int, end: int) -> list[int]:
        """Return the changed lines within the inclusive range, ascending."""
        return [ln for ln in range(start, end + 1) if self.is_changed(ln)]


@dataclass(slots=True)
class ChangeSet:
    """Mapping of file name to :class:`FileChange`.

    An absent change set (``None`` where one is expected) means no line-level
    information exists at all, which is different from a change set that has
    no entry, or an empty entry, for a given file.
    """

    files: dict[str, FileChange] = field(default_factory=dict)

    def add(self, change: FileChange) -> None:
        self.files[change.file_name] = change

    def find(self, file_name: str) -> FileChange | None:
        """Return the change for *file_name*, tolerating path prefix mismatches."""
        return find_entry(file_name, self.files)

    def __len__(self) -> int:
        return len(self.files)


__all__ = ["ChangeSet", "FileChange"]
