"""Source-to-destination identity bookkeeping for one import run."""

from __future__ import annotations

from collections.abc import Hashable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Final

from bulkimport.domain.model.enums import EntityType

type SourceId = Hashable


class IdReassignmentError(ValueError):
    """Raised when a mapped source id would receive a different destination id."""


class _SourceIdSentinel:
    """Marks a placeholder default that should receive the bare source id."""

    _instance: _SourceIdSentinel | None = None

    def __new__(cls) -> _SourceIdSentinel:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SOURCE_ID"


SOURCE_ID: Final = _SourceIdSentinel()


def integer_id(value: object) -> int | None:
    """The integer behind a source id, or ``None`` when it is not an ASCII decimal."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.isascii() and text.isdecimal():
            return int(text)
    return None


@dataclass(frozen=True, slots=True)
class TableBinding:
    """Destination table receiving placeholders and the column smuggling the marker."""

    table: str
    keep_id_column: str


_RESOURCE_BINDING = TableBinding(table="resource", keep_id_column="title")

DEFAULT_TABLE_BINDINGS: Final[Mapping[EntityType, TableBinding]] = MappingProxyType(
    {
        EntityType.ITEM: _RESOURCE_BINDING,
        EntityType.ITEM_SET: _RESOURCE_BINDING,
        EntityType.MEDIA: _RESOURCE_BINDING,
        EntityType.CONCEPT: _RESOURCE_BINDING,
        EntityType.CUSTOM_VOCAB: TableBinding(table="custom_vocab", keep_id_column="label"),
        EntityType.RESOURCE_TEMPLATE: TableBinding(
            table="resource_template", keep_id_column="label"
        ),
    }
)


class IdMap:
    """Mapping ``(entity type, source id) -> destination id``.

    Keys may be reserved before their destination id is known. Once a destination
    id is assigned for a key it is never replaced by another one within the run.
    """

    def __init__(self) -> None:
        self._ids: dict[EntityType, dict[SourceId, int | None]] = {}

    def reserve(self, entity_type: EntityType, source_id: SourceId) -> None:
        self._ids.setdefault(entity_type, {}).setdefault(source_id, None)

    def assign(self, entity_type: EntityType, source_id: SourceId, destination_id: int) -> None:
        ids = self._ids.setdefault(entity_type, {})
        current = ids.get(source_id)
        if current is not None and current != destination_id:
            raise IdReassignmentError(
                f"{entity_type} #{source_id} already mapped to #{current}, "
                f"refusing #{destination_id}"
            )
        ids[source_id] = destination_id

    def get(self, entity_type: EntityType, source_id: SourceId) -> int | None:
        return self._ids.get(entity_type, {}).get(source_id)

    def has(self, entity_type: EntityType, source_id: SourceId) -> bool:
        return source_id in self._ids.get(entity_type, {})

    def source_ids(self, entity_type: EntityType) -> list[SourceId]:
        return list(self._ids.get(entity_type, {}))

    def for_type(self, entity_type: EntityType) -> IdMapSlice:
        return IdMapSlice(self, entity_type)

    def view(self, entity_type: EntityType) -> Mapping[SourceId, int | None]:
        return MappingProxyType(self._ids.get(entity_type, {}))

    def reset(self) -> None:
        self._ids.clear()

    def __len__(self) -> int:
        return sum(len(ids) for ids in self._ids.values())


@dataclass(frozen=True, slots=True)
class IdMapSlice:
    """The part of an ``IdMap`` belonging to one entity type."""

    id_map: IdMap
    entity_type: EntityType

    def reserve(self, source_id: SourceId) -> None:
        self.id_map.reserve(self.entity_type, source_id)

    def assign(self, source_id: SourceId, destination_id: int) -> None:
        self.id_map.assign(self.entity_type, source_id, destination_id)

    def get(self, source_id: SourceId) -> int | None:
        return self.id_map.get(self.entity_type, source_id)

    def __contains__(self, source_id: SourceId) -> bool:
        return self.id_map.has(self.entity_type, source_id)

    def __iter__(self) -> Iterator[SourceId]:
        return iter(self.id_map.source_ids(self.entity_type))

    def __len__(self) -> int:
        return len(self.id_map.view(self.entity_type))
