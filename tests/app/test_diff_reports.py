from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest
from openpyxl import load_workbook

from bulkimport.adapters.reports import JsonDiffSink
from bulkimport.app import write_diff_reports
from bulkimport.domain.errors import ReportSinkError
from bulkimport.domain.importing import ImportContext
from bulkimport.domain.model import RunStatus, UpdateMode

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

BEFORE = [
    {"o:id": 1, "dcterms:title": [{"type": "literal", "@value": "Old"}]},
    {"o:id": 2, "dcterms:title": [{"type": "literal", "@value": "Same"}]},
]
AFTER = [
    {"o:id": 1, "dcterms:title": [{"type": "literal", "@value": "New"}]},
    {"o:id": 2, "dcterms:title": [{"type": "literal", "@value": "Same"}]},
    {"o:id": 3},
]


def test_three_reports_are_written(tmp_path: Path) -> None:
    result = write_diff_reports(
        BEFORE, AFTER, update_mode=UpdateMode.UPDATE, name="my import", directory=tmp_path
    )

    assert result.status is RunStatus.COMPLETED
    assert result.errors == 0
    assert result.records == 3
    assert [path.name for path in result.paths] == [
        "my_import-diff.json",
        "my_import-diff-row.xlsx",
        "my_import-diff-col.xlsx",
    ]

    payload = json.loads(result.paths[0].read_text(encoding="utf-8"))
    assert payload["request"] == {"update_mode": "update"}
    first = payload["response"][0]["dcterms:title"]
    assert [entry["diff"] for entry in first] == ["-", "+"]
    assert payload["response"][2] == {
        "resource": {"meta": "resource", "data1": None, "data2": 3, "diff": "+"}
    }

    sheet = load_workbook(result.paths[1])["Diff (update)"]
    assert sheet["A1"].value == "o:id"


def test_unwritable_directory_is_counted_not_raised(tmp_path: Path) -> None:
    blocker = tmp_path / "reports"
    blocker.write_text("not a directory")
    context = ImportContext()

    result = write_diff_reports(
        BEFORE, AFTER, update_mode=UpdateMode.APPEND, name="x", directory=blocker, context=context
    )

    assert result.status is RunStatus.ERROR
    assert result.errors == 3
    assert result.paths == []
    assert context.has_error


def test_create_mode_writes_no_report(tmp_path: Path) -> None:
    result = write_diff_reports(
        BEFORE, AFTER, update_mode=UpdateMode.CREATE, name="x", directory=tmp_path
    )

    assert result.status is RunStatus.COMPLETED
    assert result.records == 0
    assert result.paths == []
    assert list(tmp_path.iterdir()) == []


def test_spreadsheets_are_complete_when_the_json_report_fails(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    def refuse(self: JsonDiffSink, request: Mapping[str, object]) -> None:
        _ = request
        raise ReportSinkError(f"Cannot write {self.path}")

    monkeypatch.setattr(JsonDiffSink, "open", refuse)

    result = write_diff_reports(
        BEFORE, AFTER, update_mode=UpdateMode.UPDATE, name="x", directory=tmp_path
    )

    assert result.errors == 1
    assert result.status is RunStatus.ERROR
    assert [path.name for path in result.paths] == ["x-diff-row.xlsx", "x-diff-col.xlsx"]
    by_row = load_workbook(result.paths[0])["Diff (update)"]
    assert by_row.max_row == 1 + 3 * len(AFTER)
    by_column = load_workbook(result.paths[1])["Diff (update)"]
    assert by_column.max_row == 1 + len(AFTER)


def test_records_may_come_from_generators(tmp_path: Path) -> None:
    result = write_diff_reports(
        (record for record in BEFORE),
        (record for record in AFTER),
        update_mode=UpdateMode.REVISE,
        name="gen",
        directory=tmp_path,
    )

    assert result.records == 3
    assert len(result.paths) == 3
    sheet = load_workbook(result.paths[2])["Diff (revise)"]
    assert sheet.max_row == 1 + 3
