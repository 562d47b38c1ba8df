"""Thesaurus import: hierarchy linearization, scheme setup and concept values."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Final, Protocol

from bulkimport.domain.importing.dates import parse_source_datetime
from bulkimport.domain.model import (
    EntityType,
    NarrowerSort,
    Resource,
    ThesaurusTree,
    Value,
    integer_id,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from bulkimport.domain.model import ConceptId, IdMapSlice
    from bulkimport.domain.ports import EntityStore

log = logging.getLogger(__name__)

CONCEPT_CLASS: Final[str] = "skos:Concept"
SCHEME_CLASS: Final[str] = "skos:ConceptScheme"
COLLECTION_CLASS: Final[str] = "skos:Collection"
ITEM_LINK: Final[str] = "resource:item"
DATETIME_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"


class HierarchyRecord(Protocol):
    @property
    def source_id(self) -> ConceptId: ...

    @property
    def parent_id(self) -> ConceptId | None: ...

    @property
    def label(self) -> str: ...


@dataclass(frozen=True, slots=True)
class ThesaurusKeys:
    """Names of the source fields read for each concept."""

    id: str = "id"
    parent_id: str | None = "parent_id"
    label: str | None = "label"
    definition: str | None = None
    scope_note: str | None = None
    created: str | None = None
    modified: str | None = None


@dataclass(frozen=True, slots=True)
class ConceptRecord:
    source_id: ConceptId
    parent_id: ConceptId | None = None
    label: str = ""
    definition: str | None = None
    scope_note: str | None = None
    created: object = None
    modified: object = None

    @classmethod
    def from_source(cls, source: Mapping[str, object], keys: ThesaurusKeys) -> ConceptRecord:
        def read(key: str | None) -> object:
            return source.get(key) if key else None

        label = read(keys.label)
        definition = read(keys.definition)
        scope_note = read(keys.scope_note)
        parent_id = read(keys.parent_id)
        return cls(
            source_id=_hashable(source[keys.id]),
            parent_id=_hashable(parent_id) if parent_id else None,
            label=str(label) if label is not None else "",
            definition=str(definition) if definition else None,
            scope_note=str(scope_note) if scope_note else None,
            created=read(keys.created),
            modified=read(keys.modified),
        )


def _hashable(value: object) -> ConceptId:
    if isinstance(value, str) and (number := integer_id(value)) is not None:
        return number
    if isinstance(value, int | str):
        return value
    return str(value)


def _id_sort_key(value: ConceptId) -> tuple[int, int, str]:
    if isinstance(value, int) and not isinstance(value, bool):
        return (0, value, "")
    return (1, 0, str(value))


def linearize(
    records: Iterable[HierarchyRecord], sort: NarrowerSort = NarrowerSort.BY_ID
) -> ThesaurusTree:
    """Build the frozen tops/parents/narrowers views in one pass.

    A record whose parent is absent from ``records`` stays a child of that parent:
    it is not promoted to the tops.
    """

    tops: dict[ConceptId, None] = {}
    parents: dict[ConceptId, ConceptId] = {}
    narrowers: dict[ConceptId, dict[ConceptId, str]] = {}

    for record in records:
        if not record.parent_id:
            tops.setdefault(record.source_id, None)
            continue
        parents[record.source_id] = record.parent_id
        children = narrowers.setdefault(record.parent_id, {})
        # first occurrence wins
        children.setdefault(record.source_id, f"{record.label} <{record.source_id}>")

    ordered: dict[ConceptId, tuple[ConceptId, ...]] = {}
    for parent_id, children in narrowers.items():
        if sort is NarrowerSort.BY_ID:
            ordered[parent_id] = tuple(sorted(children, key=_id_sort_key))
        elif sort is NarrowerSort.BY_LABEL:
            ordered[parent_id] = tuple(
                sorted(children, key=lambda child: children[child].casefold())
            )
        else:
            ordered[parent_id] = tuple(children)

    return ThesaurusTree(
        tops=tuple(tops),
        parents=MappingProxyType(parents),
        narrowers=MappingProxyType(ordered),
    )


@dataclass(frozen=True, slots=True)
class ThesaurusScheme:
    name: str
    item_id: int
    item_set_id: int
    custom_vocab_id: int
    custom_vocab_label: str


def prepare_scheme(
    store: EntityStore,
    *,
    name: str,
    owner_id: int | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> ThesaurusScheme:
    """Create the scheme item, its item set and the custom vocab bound to them."""

    now = clock()
    item_set_id = store.create(
        EntityType.ITEM_SET,
        {
            "resource_type": "item_set",
            "title": name,
            "owner_id": owner_id,
            "resource_class": COLLECTION_CLASS,
            "created": now,
            "values": [Value(term="dcterms:title", value=name)],
        },
    )
    item_id = store.create(
        EntityType.ITEM,
        {
            "resource_type": "item",
            "title": name,
            "owner_id": owner_id,
            "resource_class": SCHEME_CLASS,
            "created": now,
            "item_set_ids": [item_set_id],
            "values": [Value(term="skos:prefLabel", value=name)],
        },
    )

    label = name
    if store.search(EntityType.CUSTOM_VOCAB, label=name):
        label = f"{name} {now.strftime('%Y%m%d-%H%M%S')} {secrets.token_hex(4)}"
        log.info('Custom vocab "%s" already exists: renamed "%s"', name, label)
    custom_vocab_id = store.create(
        EntityType.CUSTOM_VOCAB,
        {"label": label, "item_set_id": item_set_id, "owner_id": owner_id, "terms": []},
    )

    log.info(
        'Thesaurus "%s": scheme #%s, item set #%s, custom vocab #%s',
        name,
        item_id,
        item_set_id,
        custom_vocab_id,
    )
    return ThesaurusScheme(
        name=name,
        item_id=item_id,
        item_set_id=item_set_id,
        custom_vocab_id=custom_vocab_id,
        custom_vocab_label=label,
    )


def link_top_concepts(
    store: EntityStore, scheme: ThesaurusScheme, tree: ThesaurusTree, ids: IdMapSlice
) -> int:
    """Append one ``skos:hasTopConcept`` value per allocated top concept."""

    links: list[Value] = []
    for top in tree.tops:
        destination_id = ids.get(top)
        if destination_id is None:
            log.warning("Top concept #%s has no destination id: link omitted", top)
            continue
        links.append(
            Value(term="skos:hasTopConcept", type=ITEM_LINK, value_resource_id=destination_id)
        )
    if links:
        scheme_item = store.read(EntityType.ITEM, scheme.item_id)
        existing = list(scheme_item.values) if isinstance(scheme_item, Resource) else []
        store.update(EntityType.ITEM, scheme.item_id, {"values": [*existing, *links]})
    log.info(
        '%d resources "concept" created inside concept scheme #%s',
        len(ids),
        scheme.item_id,
    )
    return len(links)


class ConceptConverter:
    """Converts a concept record into item fields with SKOS links."""

    def __init__(
        self,
        *,
        tree: ThesaurusTree,
        ids: IdMapSlice,
        scheme: ThesaurusScheme,
        owner_id: int | None = None,
        resource_template_id: int | None = None,
        language: str | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._tree = tree
        self._ids = ids
        self._scheme = scheme
        self._owner_id = owner_id
        self._resource_template_id = resource_template_id
        self._language = language
        self._clock = clock

    def convert(self, record: ConceptRecord) -> dict[str, object]:
        label = record.label.strip() or f"[Untitled concept #{record.source_id}]"
        created = parse_source_datetime(record.created)
        modified = parse_source_datetime(record.modified)

        values = [Value(term="skos:prefLabel", value=label, lang=self._language)]
        if record.definition:
            values.append(
                Value(term="skos:definition", value=record.definition, lang=self._language)
            )
        if record.scope_note:
            values.append(
                Value(term="skos:scopeNote", value=record.scope_note, lang=self._language)
            )
        values.append(self._link("skos:inScheme", self._scheme.item_id))
        values.extend(self._hierarchy_links(record))
        if created is not None:
            values.append(Value(term="dcterms:created", value=created.strftime(DATETIME_FORMAT)))
        if modified is not None:
            values.append(Value(term="dcterms:modified", value=modified.strftime(DATETIME_FORMAT)))

        return {
            "title": label,
            "owner_id": self._owner_id,
            "resource_class": CONCEPT_CLASS,
            "resource_template_id": self._resource_template_id,
            "created": created or self._clock(),
            "modified": modified,
            "item_set_ids": [self._scheme.item_set_id],
            "values": values,
        }

    def _hierarchy_links(self, record: ConceptRecord) -> list[Value]:
        links: list[Value] = []
        concept_id = record.source_id
        if self._tree.is_top(concept_id):
            links.append(self._link("skos:topConceptOf", self._scheme.item_id))
        else:
            parent_id = self._tree.parent_of(concept_id)
            destination_id = self._ids.get(parent_id) if parent_id is not None else None
            if destination_id is None:
                log.warning(
                    "Broader concept #%s of concept #%s was not found: link omitted",
                    parent_id,
                    concept_id,
                )
            else:
                links.append(self._link("skos:broader", destination_id))

        for narrower_id in self._tree.narrowers_of(concept_id):
            destination_id = self._ids.get(narrower_id)
            if destination_id is None:
                log.warning(
                    "Narrower concept #%s of concept #%s was not found: link omitted",
                    narrower_id,
                    concept_id,
                )
                continue
            links.append(self._link("skos:narrower", destination_id))
        return links

    @staticmethod
    def _link(term: str, destination_id: int) -> Value:
        return Value(term=term, type=ITEM_LINK, value_resource_id=destination_id)
