"""The report value handed to the renderers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covdelta import logger
from covdelta.config import TEST_FILE_SUFFIX
from covdelta.engine.delta import DeltaCalculator, NewCodeBlock, NewCodeCoverage, SourceLineCache
from covdelta.engine.statements import StatementIndexCache
from covdelta.model.profile import package_of, trim_name

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from covdelta.model.changeset import ChangeSet
    from covdelta.model.profile import Coverage


def changed_packages(changed_files: Iterable[str]) -> list[str]:
    """Return the sorted, distinct packages of *changed_files*."""
    return sorted({package_of(f) for f in changed_files})


def is_test_file(file_name: str) -> bool:
    return file_name.endswith(TEST_FILE_SUFFIX)


@dataclass(slots=True)
class Report:
    """Comparison of a baseline and a candidate coverage run for one change.

    The report owns everything derived from its inputs, including the
    statement index and source line caches.  Apart from :meth:`trim_prefix`
    it never mutates the coverage or change-set values it was given.
    """

    old: Coverage
    new: Coverage
    changed_files: list[str]
    change_set: ChangeSet | None = None
    min_coverage: float = 0.0
    source_root: Path | None = None
    changed_packages: list[str] = field(init=False)
    statements: StatementIndexCache = field(init=False, repr=False)
    sources: SourceLineCache = field(init=False, repr=False)
    _trimmed: bool = field(default=False, init=False, repr=False)

    def __post_init__(self) -> None:
        self.changed_files = sorted(self.changed_files)
        self.changed_packages = changed_packages(self.changed_files)
        self.statements = StatementIndexCache(source_root=self.source_root)
        self.sources = SourceLineCache()

    # ------------------------------------------------------------------ #
    # Overall numbers                                                    #
    # ------------------------------------------------------------------ #

    def overall_delta(self) -> float:
        return self.new.percent() - self.old.percent()

    @property
    def calculator(self) -> DeltaCalculator:
        return DeltaCalculator(
            old=self.old,
            new=self.new,
            changed_files=self.changed_files,
            change_set=self.change_set,
            statements=self.statements,
            sources=self.sources,
            source_root=self.source_root,
        )

    def new_code_coverage(self) -> NewCodeCoverage:
        return self.calculator.new_code_coverage()

    def new_code_blocks(self) -> list[NewCodeBlock]:
        return self.calculator.new_code_blocks()

    def threshold_failed(self) -> bool:
        """Return True if new code misses the configured minimum coverage."""
        return self.new_code_coverage().below(self.min_coverage)

    # ------------------------------------------------------------------ #
    # File partitions                                                    #
    # ------------------------------------------------------------------ #

    def code_files(self) -> list[str]:
        return [f for f in self.changed_files if not is_test_file(f)]

    def test_files(self) -> list[str]:
        return [f for f in self.changed_files if is_test_file(f)]

    # ------------------------------------------------------------------ #
    # Normalisation                                                      #
    # ------------------------------------------------------------------ #

    def trim_prefix(self, prefix: str) -> None:
        """Remove *prefix* from changed files, packages and coverage keys.

        Destructive and meant to run once, right before rendering.  Raises
        :class:`ValueError`, leaving the report untouched, when two files of
        either coverage run would be trimmed to the same name.
        """
        if self._trimmed:
            msg = "Report.trim_prefix() may only be applied once"
            raise RuntimeError(msg)
        if not prefix:
            self._trimmed = True
            return

        self.old.trimmed_names(prefix)
        self.new.trimmed_names(prefix)
        self._trimmed = True

        logger.debug("trimming prefix %r from report paths", prefix)
        self.changed_packages = [trim_name(p, prefix) for p in self.changed_packages]
        self.changed_files = [trim_name(f, prefix) for f in self.changed_files]
        self.old.trim_prefix(prefix)
        self.new.trim_prefix(prefix)


__all__ = ["Report", "changed_packages", "is_test_file"]
