"""Centralised exception hierarchy for covdelta."""

from __future__ import annotations


class CovdeltaError(Exception):
    """Base class for all custom covdelta exceptions."""


class InputError(CovdeltaError):
    """Base class for errors caused by malformed input files."""


class InvalidProfileError(InputError):
    """A coverage profile could not be parsed."""

    def __init__(self, message: str, *, source: str | None = None, line: int | None = None) -> None:
        self.source = source
        self.line = line
        where = source or "<profile>"
        if line is not None:
            where = f"{where}:{line}"
        super().__init__(f"{where}: {message}")


class InvalidChangeSetError(InputError):
    """A structured change-set file does not have the expected shape."""


class InvalidChangedFilesError(InputError):
    """The changed-files list is not a JSON array of paths."""


class StatementParseError(CovdeltaError):
    """A source file could not be parsed into statements.

    This error is local: callers fall back to estimating new statements
    from line proportions instead of aborting the report.
    """


__all__ = [
    "CovdeltaError",
    "InputError",
    "InvalidChangeSetError",
    "InvalidChangedFilesError",
    "InvalidProfileError",
    "StatementParseError",
]
