"""Flatten record diffs and lay them out as spreadsheet rows.

Two layouts are produced from the same flattened rows: by row (a header, then
before, after and symbol rows per record) and by column (each field split into
``/ 1``, ``/ 2`` and ``/ ?`` sub-columns, one row per record).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from bulkimport.domain.diffing.engine import scalar_value

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from bulkimport.domain.model import DiffEntry, RecordDiff

PREFERRED_COLUMNS: Final[tuple[str, ...]] = ("o:id", "resource", "has_error")

type Column = tuple[str, int]
type FlatRow = tuple[DiffEntry, ...]


@dataclass(frozen=True, slots=True)
class Cell:
    """A rendered cell; text cells must be written as strings, never formulas."""

    value: str | None
    style: str | None = None
    bold: bool = False

    @property
    def is_text(self) -> bool:
        return self.value is not None


def flatten(record: RecordDiff) -> FlatRow:
    return tuple(record.entries())


def _occurrences(row: FlatRow) -> Iterator[tuple[Column, DiffEntry]]:
    seen: dict[str, int] = {}
    for entry in row:
        seen[entry.field] = seen.get(entry.field, 0) + 1
        yield (entry.field, seen[entry.field]), entry


@dataclass(slots=True)
class ColumnIndex:
    """Column order across records; repeated fields get one column per occurrence."""

    _columns: dict[Column, None] = field(default_factory=dict[Column, None])

    def observe(self, row: FlatRow) -> None:
        for column, _entry in _occurrences(row):
            self._columns.setdefault(column, None)

    @property
    def columns(self) -> list[Column]:
        ordered = list(self._columns)
        preferred = [(name, 1) for name in PREFERRED_COLUMNS if (name, 1) in self._columns]
        return preferred + [column for column in ordered if column not in preferred]


def cell_text(value: object) -> str | None:
    scalar = scalar_value(value)
    if scalar is None or scalar == "" or scalar is False:
        return None
    return str(scalar)


def _align(row: FlatRow, columns: Sequence[Column]) -> list[DiffEntry | None]:
    by_column = dict(_occurrences(row))
    return [by_column.get(column) for column in columns]


def _symbol_cell(entry: DiffEntry | None) -> Cell:
    if entry is None:
        return Cell(None)
    return Cell(entry.symbol, style=entry.symbol)


def rows_by_row(rows: Iterable[FlatRow], columns: Sequence[Column]) -> Iterator[list[Cell]]:
    yield [Cell(name, bold=True) for name, _occurrence in columns]
    for row in rows:
        aligned = _align(row, columns)
        yield [Cell(cell_text(entry.before) if entry else None) for entry in aligned]
        yield [Cell(cell_text(entry.after) if entry else None) for entry in aligned]
        yield [_symbol_cell(entry) for entry in aligned]


def rows_by_column(rows: Iterable[FlatRow], columns: Sequence[Column]) -> Iterator[list[Cell]]:
    header: list[Cell] = []
    for name, _occurrence in columns:
        header.extend(Cell(f"{name} / {suffix}", bold=True) for suffix in ("1", "2", "?"))
    yield header
    for row in rows:
        cells: list[Cell] = []
        for entry in _align(row, columns):
            cells.append(Cell(cell_text(entry.before) if entry else None))
            cells.append(Cell(cell_text(entry.after) if entry else None))
            cells.append(_symbol_cell(entry))
        yield cells
