from covdelta.model.changeset import ChangeSet, FileChange
from covdelta.model.metrics import FULL_COVERAGE, pct
from covdelta.model.paths import candidate_paths, find_entry, locate_source
from covdelta.model.profile import (
    Block,
    Coverage,
    Profile,
    package_of,
    profile_counts,
    trim_name,
)

__all__ = [
    "FULL_COVERAGE",
    "Block",
    "ChangeSet",
    "Coverage",
    "FileChange",
    "Profile",
    "candidate_paths",
    "find_entry",
    "locate_source",
    "package_of",
    "pct",
    "profile_counts",
    "trim_name",
]
