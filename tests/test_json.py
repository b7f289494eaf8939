from __future__ import annotations

import json
from pathlib import Path

import pytest
from jsonschema import ValidationError, validate

from covdelta.config import get_schema
from covdelta.coverage.parse import read_coverage
from covdelta.engine.report import Report
from covdelta.inputs.changed_files import parse_changed_files
from covdelta.inputs.changeset import parse_unified_diff
from covdelta.model.profile import Coverage
from covdelta.render.json import SCHEMA_VERSION, render_json, report_payload


@pytest.fixture
def report(prioqueue: dict[str, Path], tmp_path: Path) -> Report:
    return Report(
        old=read_coverage(prioqueue["old_01"]),
        new=read_coverage(prioqueue["new_01"]),
        changed_files=parse_changed_files(prioqueue["changed_01"], "github.com/fgrosse/prioqueue"),
        min_coverage=50.0,
        source_root=tmp_path,
    )


def test_render_json_payload(report: Report) -> None:
    data = json.loads(render_json(report))

    assert data["schema_version"] == SCHEMA_VERSION
    assert data["tool"]["name"] == "covdelta"
    assert data["changed_files"] == [
        "github.com/fgrosse/prioqueue/foo/bar/baz.go",
        "github.com/fgrosse/prioqueue/min_heap.go",
    ]
    assert data["change_set"] is None
    assert data["new"]["total"] == 102
    assert data["new"]["files"]["github.com/fgrosse/prioqueue/min_heap.go"]["covered"] == 42
    assert data["new_code"] == {
        "total": 2,
        "covered": 0,
        "missed": 2,
        "percent": 0.0,
        "threshold_met": False,
    }
    [block] = data["new_code_blocks"]
    assert block["attribution"] == "block-identity"
    assert (block["start_line"], block["end_line"]) == (35, 36)


def test_render_json_is_stable(report: Report) -> None:
    assert render_json(report) == render_json(report)


def test_payload_with_change_set(compute_project: dict[str, Path], tmp_path: Path) -> None:
    cov = Coverage.from_profiles([])
    report = Report(
        old=cov,
        new=cov,
        changed_files=["example.com/demo/compute.go"],
        change_set=parse_unified_diff(compute_project["diff"]),
        source_root=tmp_path,
    )
    payload = report_payload(report)

    validate(payload, get_schema())
    assert payload["change_set"] == {"demo/compute.go": {"added_lines": [5, 6, 7], "modified_lines": []}}
    assert payload["new_code"]["threshold_met"] is True


def test_schema_rejects_unknown_fields(report: Report) -> None:
    payload = report_payload(report)
    payload["extra"] = True
    with pytest.raises(ValidationError):
        validate(payload, get_schema())
