from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from jsonschema import validate

from covdelta import __version__
from covdelta.config import get_schema

if TYPE_CHECKING:
    from covdelta.engine.delta import NewCodeBlock
    from covdelta.engine.report import Report
    from covdelta.model.changeset import ChangeSet
    from covdelta.model.profile import Coverage, Profile

SCHEMA_ID = "https://example.com/covdelta.report.schema.json"
SCHEMA_VERSION = 1


def _profile(profile: Profile) -> dict[str, Any]:
    return {
        "mode": profile.mode,
        "total": profile.total,
        "covered": profile.covered,
        "missed": profile.missed,
        "percent": profile.coverage_percent(),
        "blocks": [
            {
                "start_line": b.start_line,
                "start_col": b.start_col,
                "end_line": b.end_line,
                "end_col": b.end_col,
                "num_stmt": b.num_stmt,
                "count": b.count,
            }
            for b in profile.blocks
        ],
    }


def _coverage(coverage: Coverage) -> dict[str, Any]:
    return {
        "total": coverage.total,
        "covered": coverage.covered,
        "missed": coverage.missed,
        "percent": coverage.percent(),
        "files": {p.file_name: _profile(p) for p in coverage},
    }


def _change_set(change_set: ChangeSet | None) -> dict[str, Any] | None:
    if change_set is None:
        return None
    return {
        name: {"added_lines": sorted(change.added), "modified_lines": sorted(change.modified)}
        for name, change in change_set.files.items()
    }


def _block(block: NewCodeBlock) -> dict[str, Any]:
    return {
        "file": block.file_name,
        "start_line": block.start_line,
        "end_line": block.end_line,
        "num_stmt": block.num_stmt,
        "new_statements": block.new_statements,
        "covered": block.covered,
        "attribution": block.attribution.value,
        "lines": list(block.lines),
    }


def report_payload(report: Report) -> dict[str, Any]:
    """Return the schema-conformant dictionary for *report*."""
    new_code = report.new_code_coverage()
    return {
        "schema": SCHEMA_ID,
        "schema_version": SCHEMA_VERSION,
        "tool": {"name": "covdelta", "version": __version__},
        "overall": {
            "old_percent": report.old.percent(),
            "new_percent": report.new.percent(),
            "delta": report.overall_delta(),
        },
        "old": _coverage(report.old),
        "new": _coverage(report.new),
        "changed_files": list(report.changed_files),
        "changed_packages": list(report.changed_packages),
        "min_coverage": float(report.min_coverage),
        "change_set": _change_set(report.change_set),
        "new_code": {
            "total": new_code.total,
            "covered": new_code.covered,
            "missed": new_code.missed,
            "percent": new_code.percent,
            "threshold_met": not new_code.below(report.min_coverage),
        },
        "new_code_blocks": [_block(b) for b in report.new_code_blocks()],
    }


def render_json(report: Report) -> str:
    payload = report_payload(report)
    validate(payload, get_schema("v1"))
    return json.dumps(payload, indent=2, sort_keys=True)


__all__ = ["SCHEMA_ID", "SCHEMA_VERSION", "render_json", "report_payload"]
