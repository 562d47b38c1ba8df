"""Destination entities persisted by the entity store.

Plain dataclasses; persistence is attached by the SQLAlchemy adapter through
imperative mapping, so nothing here knows about sessions or tables.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(eq=False, kw_only=True)
class Value:
    """One property value attached to a resource."""

    term: str
    type: str = "literal"
    value: str | None = None
    uri: str | None = None
    value_resource_id: int | None = None
    lang: str | None = None
    is_public: bool = True
    id: int | None = None
    resource_id: int | None = None

    def as_json(self) -> dict[str, object]:
        """Return the value in the exported JSON shape used by diffs."""
        payload: dict[str, object] = {"type": self.type}
        if self.value_resource_id is not None:
            payload["value_resource_id"] = self.value_resource_id
        if self.uri is not None:
            payload["@id"] = self.uri
        if self.value is not None:
            payload["@value"] = self.value
        if self.lang:
            payload["@language"] = self.lang
        return payload


@dataclass(eq=False, kw_only=True)
class Resource:
    """Item, item set or media (thesaurus concepts are items)."""

    id: int | None = None
    resource_type: str = "item"
    title: str | None = None
    owner_id: int | None = None
    resource_class: str | None = None
    resource_template_id: int | None = None
    is_public: bool = True
    created: datetime | None = None
    modified: datetime | None = None
    item_set_ids: list[int] = field(default_factory=list[int])
    values: list[Value] = field(default_factory=list[Value])

    def values_for(self, term: str) -> list[Value]:
        return [value for value in self.values if value.term == term]

    def as_json(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "o:id": self.id,
            "resource_name": self.resource_type,
            "o:is_public": self.is_public,
            "o:owner": {"o:id": self.owner_id} if self.owner_id else None,
            "o:resource_class": {"o:term": self.resource_class} if self.resource_class else None,
            "o:resource_template": (
                {"o:id": self.resource_template_id} if self.resource_template_id else None
            ),
        }
        for value in self.values:
            terms = payload.setdefault(value.term, [])
            if isinstance(terms, list):
                terms.append(value.as_json())
        return payload


@dataclass(eq=False, kw_only=True)
class Vocabulary:
    namespace_uri: str
    prefix: str
    label: str
    comment: str | None = None
    owner_id: int | None = None
    id: int | None = None


@dataclass(eq=False, kw_only=True)
class CustomVocab:
    label: str
    lang: str | None = None
    terms: list[str] = field(default_factory=list[str])
    item_set_id: int | None = None
    owner_id: int | None = None
    id: int | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class TemplateProperty:
    property: str
    alternate_label: str | None = None
    alternate_comment: str | None = None
    data_types: tuple[str, ...] = ()
    is_required: bool = False
    is_private: bool = False


@dataclass(eq=False, kw_only=True)
class ResourceTemplate:
    label: str
    resource_class: str | None = None
    title_property: str | None = None
    description_property: str | None = None
    properties: list[TemplateProperty] = field(default_factory=list[TemplateProperty])
    owner_id: int | None = None
    id: int | None = None
