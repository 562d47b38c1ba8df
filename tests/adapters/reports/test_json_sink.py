from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

from bulkimport.adapters.reports import JsonDiffSink
from bulkimport.domain.errors import ReportSinkError
from bulkimport.domain.model import ChangeCode, DiffEntry, RecordDiff
from bulkimport.domain.ports import DiffJsonSink

if TYPE_CHECKING:
    from pathlib import Path


def _diff(before: object, after: object, change: ChangeCode) -> RecordDiff:
    diff = RecordDiff()
    diff.add(DiffEntry("o:id", 1, 1, ChangeCode.UNCHANGED))
    diff.add_many("dcterms:title", (DiffEntry("dcterms:title", before, after, change),))
    return diff


def test_envelope_holds_request_and_records(tmp_path: Path) -> None:
    sink = JsonDiffSink(tmp_path / "diff.json")
    sink.open({"mode": "update", "name": "été"})
    sink.write(_diff("a", "b", ChangeCode.CHANGED))
    sink.write(_diff(None, "c", ChangeCode.ADDED))
    path = sink.close()

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert payload["request"] == {"mode": "update", "name": "été"}
    assert len(payload["response"]) == 2
    assert payload["response"][0]["o:id"] == {"meta": "o:id", "data1": 1, "data2": 1, "diff": "="}
    assert payload["response"][1]["dcterms:title"] == [
        {"meta": "dcterms:title", "data1": None, "data2": "c", "diff": "+"}
    ]
    assert "été" in path.read_text(encoding="utf-8")


def test_empty_response_is_valid_json(tmp_path: Path) -> None:
    sink = JsonDiffSink(tmp_path / "diff.json")
    sink.open({})

    payload = json.loads(sink.close().read_text(encoding="utf-8"))

    assert payload == {"request": {}, "response": []}


def test_writing_before_open_is_a_sink_error(tmp_path: Path) -> None:
    sink = JsonDiffSink(tmp_path / "diff.json")

    with pytest.raises(ReportSinkError):
        sink.write(RecordDiff())


def test_missing_directory_is_a_sink_error(tmp_path: Path) -> None:
    sink = JsonDiffSink(tmp_path / "missing" / "diff.json")

    with pytest.raises(ReportSinkError):
        sink.open({})


def test_sink_satisfies_the_reporting_port(tmp_path: Path) -> None:
    assert isinstance(JsonDiffSink(tmp_path / "diff.json"), DiffJsonSink)
