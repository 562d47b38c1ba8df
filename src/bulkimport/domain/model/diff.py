"""Typed diff results produced by the structural diff engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from bulkimport.domain.model.enums import ChangeCode

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True, slots=True)
class DiffEntry:
    field: str
    before: object
    after: object
    change: ChangeCode

    @property
    def changed(self) -> bool:
        return self.change is not ChangeCode.UNCHANGED

    @property
    def symbol(self) -> str:
        return self.change.symbol

    def as_json(self) -> dict[str, object]:
        return {
            "meta": self.field,
            "data1": self.before,
            "data2": self.after,
            "diff": self.symbol,
        }


@dataclass(slots=True)
class RecordDiff:
    """Diff of one record: single entries for metadata, entry lists for properties."""

    fields: dict[str, DiffEntry | tuple[DiffEntry, ...]] = field(
        default_factory=dict[str, "DiffEntry | tuple[DiffEntry, ...]"]
    )

    def add(self, entry: DiffEntry) -> None:
        self.fields[entry.field] = entry

    def add_many(self, name: str, entries: tuple[DiffEntry, ...]) -> None:
        self.fields[name] = entries

    def entries(self) -> Iterator[DiffEntry]:
        """Flatten to one level, keeping field order."""
        for value in self.fields.values():
            if isinstance(value, DiffEntry):
                yield value
            else:
                yield from value

    def as_json(self) -> dict[str, object]:
        payload: dict[str, object] = {}
        for name, value in self.fields.items():
            if isinstance(value, DiffEntry):
                payload[name] = value.as_json()
            else:
                payload[name] = [entry.as_json() for entry in value]
        return payload


type DiffReport = list[RecordDiff]
