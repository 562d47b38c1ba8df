"""File-based report sinks."""

from __future__ import annotations

from .files import prepare_report_path, sanitize_report_name
from .json_sink import JsonDiffSink
from .spreadsheet_sink import SpreadsheetSink, sheet_title

__all__ = [
    "JsonDiffSink",
    "SpreadsheetSink",
    "prepare_report_path",
    "sanitize_report_name",
    "sheet_title",
]
