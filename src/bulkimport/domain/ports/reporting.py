"""Ports for diff report outputs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from pathlib import Path

    from bulkimport.domain.diffing.render import Cell
    from bulkimport.domain.model import RecordDiff


@runtime_checkable
class DiffJsonSink(Protocol):
    """Streams record diffs into one JSON document."""

    def open(self, request: Mapping[str, object]) -> None: ...

    def write(self, record: RecordDiff) -> None: ...

    def close(self) -> Path: ...


@runtime_checkable
class TabularSink(Protocol):
    """Writes rendered rows into a spreadsheet file."""

    def write(self, sheet_name: str, rows: Iterable[Sequence[Cell]]) -> Path: ...
