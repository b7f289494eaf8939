from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from covdelta.errors import InvalidChangedFilesError, InvalidChangeSetError
from covdelta.inputs.changed_files import changed_files_from_list, parse_changed_files, qualify
from covdelta.inputs.changeset import (
    DiffFormat,
    change_set_from_mapping,
    load_change_set,
    parse_change_set_json,
    parse_unified_diff,
    parse_unified_diff_text,
)
from covdelta.model.changeset import ChangeSet, FileChange

MULTI_FILE_DIFF = """\
diff --git a/pkg/a.go b/pkg/a.go
--- a/pkg/a.go
+++ b/pkg/a.go
@@ -10,6 +10,7 @@ func A() {
 \tone()
-\ttwo()
+\tdeux()
+\ttrois()
 \tfour()
@@ -40,2 +41,3 @@ func B() {
 \tfive()
+\tsix()
diff --git a/pkg/gone.go b/pkg/gone.go
deleted file mode 100644
--- a/pkg/gone.go
+++ /dev/null
@@ -1,2 +0,0 @@
-package pkg
-var x = 1
diff --git a/pkg/new.go b/pkg/new.go
new file mode 100644
--- /dev/null
+++ b/pkg/new.go
@@ -0,0 +1,2 @@
+package pkg
+var y = 2
"""


def test_unified_diff_tracks_new_line_numbers() -> None:
    change_set = parse_unified_diff_text(MULTI_FILE_DIFF)

    assert sorted(change_set.files) == ["pkg/a.go", "pkg/new.go"]
    a = change_set.files["pkg/a.go"]
    # removed lines do not advance the counter
    assert sorted(a.added) == [11, 12, 42]
    assert a.modified == set()
    assert sorted(change_set.files["pkg/new.go"].added) == [1, 2]


def test_malformed_hunk_header_keeps_parsing() -> None:
    text = "+++ b/a.go\n@@ -1,2 +3,2 @@\n+one\n@@ garbage @@\n+two\n"
    change_set = parse_unified_diff_text(text)
    assert sorted(change_set.files["a.go"].added) == [3, 4]


def test_lines_before_a_file_header_are_ignored() -> None:
    change_set = parse_unified_diff_text("+stray\n@@ -1 +1 @@\n+also stray\n")
    assert len(change_set) == 0


def test_missing_path_means_no_information() -> None:
    assert parse_unified_diff(None) is None
    assert parse_change_set_json(None) is None
    assert load_change_set(None) is None


def test_unreadable_diff_propagates(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        parse_unified_diff(tmp_path / "missing.diff")


def test_structured_change_set(write_file: Callable[[str, str], Path]) -> None:
    path = write_file(
        "changes.json",
        json.dumps({"pkg/a.go": {"added_lines": [3, 4], "modified_lines": [9]}, "pkg/b.go": {}}),
    )
    change_set = load_change_set(path)

    assert change_set is not None
    a = change_set.files["pkg/a.go"]
    assert a.added == {3, 4}
    assert a.modified == {9}
    assert a.changed_in_range(1, 10) == [3, 4, 9]
    assert change_set.files["pkg/b.go"].is_empty


@pytest.mark.parametrize(
    "data",
    [
        [],
        {"a.go": [1, 2]},
        {"a.go": {"added_lines": "1"}},
        {"a.go": {"added_lines": [1, "2"]}},
        {"a.go": {"modified_lines": [True]}},
    ],
)
def test_structured_change_set_rejects_bad_shapes(data: object) -> None:
    with pytest.raises(InvalidChangeSetError):
        change_set_from_mapping(data)


def test_structured_change_set_rejects_bad_json(write_file: Callable[[str, str], Path]) -> None:
    path = write_file("changes.json", "{not json")
    with pytest.raises(InvalidChangeSetError, match="invalid JSON"):
        parse_change_set_json(path)


def test_format_selection(write_file: Callable[[str, str], Path]) -> None:
    diff = write_file("changes.patch", "+++ b/a.go\n@@ -0,0 +1 @@\n+x\n")
    as_diff = load_change_set(diff, "auto")
    assert as_diff is not None
    assert as_diff.files["a.go"].added == {1}

    json_text = write_file("changes.txt", json.dumps({"a.go": {"added_lines": [7]}}))
    as_json = load_change_set(json_text, DiffFormat.JSON)
    assert as_json is not None
    assert as_json.files["a.go"].added == {7}

    with pytest.raises(ValueError, match="diff format"):
        load_change_set(diff, "svn")


def test_change_set_lookup_tolerates_prefixes() -> None:
    change_set = ChangeSet()
    change_set.add(FileChange(file_name="pkg/file.go", added={5}))

    change = change_set.find("github.com/org/repo/pkg/file.go")
    assert change is not None
    assert change.is_changed(5)
    assert not change.is_changed(6)
    assert change.changed_in_range(1, 5) == [5]
    assert change_set.find("github.com/org/repo/other/file.go") is None


def test_qualify() -> None:
    assert qualify("pkg/a.go", "github.com/org/repo") == "github.com/org/repo/pkg/a.go"
    assert qualify("pkg/a.go", "github.com/org/repo/") == "github.com/org/repo/pkg/a.go"
    assert qualify("pkg/a.go", "") == "pkg/a.go"


def test_changed_files(write_changed_files: Callable[..., Path]) -> None:
    path = write_changed_files(["min_heap.go", "README.md", "foo/bar/baz.go"])
    assert parse_changed_files(path, "github.com/fgrosse/prioqueue") == [
        "github.com/fgrosse/prioqueue/min_heap.go",
        "github.com/fgrosse/prioqueue/foo/bar/baz.go",
    ]


def test_changed_files_rejects_bad_input(write_file: Callable[[str, str], Path]) -> None:
    with pytest.raises(InvalidChangedFilesError):
        changed_files_from_list({"files": ["a.go"]})
    with pytest.raises(InvalidChangedFilesError):
        changed_files_from_list(["a.go", 3])
    with pytest.raises(InvalidChangedFilesError, match="invalid JSON"):
        parse_changed_files(write_file("changed.json", "[unterminated"))
