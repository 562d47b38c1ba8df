"""Spreadsheet output for rendered diff rows."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from openpyxl import Workbook
from openpyxl.cell import WriteOnlyCell
from openpyxl.styles import Font, PatternFill

from bulkimport.domain.errors import ReportSinkError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

    from openpyxl.cell.cell import Cell as OpenpyxlCell
    from openpyxl.worksheet._write_only import WriteOnlyWorksheet

    from bulkimport.domain.diffing import Cell

log = logging.getLogger(__name__)

FILL_COLORS: Final[dict[str, str]] = {
    "-": "FFC000",
    "+": "C6EFCE",
    "≠": "BDD7EE",
    "×": "FF0000",
    "?": "C00000",
}

MAX_SHEET_TITLE: Final = 31

_BOLD = Font(bold=True)
_FILLS: Final[dict[str, PatternFill]] = {
    symbol: PatternFill(start_color=color, end_color=color, fill_type="solid")
    for symbol, color in FILL_COLORS.items()
}


def sheet_title(update_mode: str) -> str:
    return f"Diff ({update_mode})"[:MAX_SHEET_TITLE]


class SpreadsheetSink:
    """Writes one sheet of rendered cells into a write-only ``.xlsx`` workbook."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def write(self, sheet_name: str, rows: Iterable[Sequence[Cell]]) -> Path:
        workbook = Workbook(write_only=True)
        sheet = workbook.create_sheet(title=sheet_name[:MAX_SHEET_TITLE])
        count = 0
        for row in rows:
            sheet.append([self._cell(sheet, cell) for cell in row])
            count += 1
        try:
            workbook.save(self.path)
        except OSError as exc:
            raise ReportSinkError(f"Cannot write {self.path}: {exc}") from exc
        log.debug("Wrote %d rows to %s", count, self.path)
        return self.path

    @staticmethod
    def _cell(sheet: WriteOnlyWorksheet, cell: Cell) -> OpenpyxlCell:
        written = WriteOnlyCell(sheet)
        if cell.is_text:
            written.value = cell.value
            # a leading "=" would otherwise be stored as a formula
            written.data_type = "s"
        if cell.bold:
            written.font = _BOLD
        fill = _FILLS.get(cell.style or "")
        if fill is not None:
            written.fill = fill
        return written
