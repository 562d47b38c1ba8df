"""Source-side records consumed by the import phases."""

from __future__ import annotations

from dataclasses import dataclass

from bulkimport.domain.model import EntityType, SourceId


@dataclass(frozen=True, slots=True)
class SourceValue:
    term: str
    type: str = "literal"
    value: str | None = None
    uri: str | None = None
    value_resource_id: SourceId | None = None
    value_resource_type: EntityType = EntityType.ITEM
    lang: str | None = None
    is_public: bool = True


@dataclass(frozen=True, slots=True)
class ResourceRecord:
    source_id: SourceId
    title: str | None = None
    resource_class: str | None = None
    resource_template_id: SourceId | None = None
    owner_id: int | None = None
    is_public: bool = True
    created: object = None
    modified: object = None
    item_set_ids: tuple[SourceId, ...] = ()
    values: tuple[SourceValue, ...] = ()
