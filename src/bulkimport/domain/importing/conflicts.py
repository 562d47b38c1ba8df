"""Reuse, rename or create decisions for named destination entities.

Vocabularies, custom vocabs and resource templates carry unique names at the
destination. An incoming entity structurally identical to an existing one is
reused; one whose name is taken by different content is renamed with a
timestamp and a short random suffix; anything else is created as is.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from typing import TYPE_CHECKING, Protocol

from bulkimport.domain.importing.normalize import normalize_namespace, normalize_terms
from bulkimport.domain.model import (
    CustomVocab,
    Decision,
    EntityType,
    ResourceTemplate,
    TemplateProperty,
    Vocabulary,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from bulkimport.domain.model import IdMapSlice, SourceId
    from bulkimport.domain.ports import EntityStore

log = logging.getLogger(__name__)

STAMP_FORMAT = "%Y%m%d-%H%M%S"


class NamedEntity(Protocol):
    id: int | None


class ConflictPolicy[T: NamedEntity](Protocol):
    """Equality and naming rules for one kind of named entity."""

    entity_type: EntityType
    suffix_length: int

    def name_of(self, entity: T) -> str: ...

    def same(self, candidate: T, existing: T) -> bool: ...

    def collides(self, candidate: T, existing: T) -> bool: ...

    def renamed(self, candidate: T, stamp: str, token: str) -> T: ...

    def on_reuse(self, candidate: T, existing: T) -> None: ...


@dataclass(frozen=True, slots=True)
class Resolution[T: NamedEntity]:
    decision: Decision
    entity: T
    previous_name: str | None = None

    @property
    def existing_id(self) -> int | None:
        return self.entity.id if self.decision is Decision.REUSE else None


class VocabularyPolicy:
    entity_type = EntityType.VOCABULARY
    suffix_length = 4

    def name_of(self, entity: Vocabulary) -> str:
        return entity.prefix

    def same(self, candidate: Vocabulary, existing: Vocabulary) -> bool:
        return normalize_namespace(candidate.namespace_uri) == normalize_namespace(
            existing.namespace_uri
        )

    def collides(self, candidate: Vocabulary, existing: Vocabulary) -> bool:
        return candidate.prefix.strip() == existing.prefix

    def renamed(self, candidate: Vocabulary, stamp: str, token: str) -> Vocabulary:
        return replace(candidate, prefix=f"{candidate.prefix.strip()}_{stamp}-{token}")

    def on_reuse(self, candidate: Vocabulary, existing: Vocabulary) -> None:
        if candidate.prefix != existing.prefix:
            log.info(
                'Vocabulary "%s" exists as #%s with prefix "%s", which is kept',
                candidate.prefix,
                existing.id,
                existing.prefix,
            )


class CustomVocabPolicy:
    entity_type = EntityType.CUSTOM_VOCAB
    suffix_length = 3

    def name_of(self, entity: CustomVocab) -> str:
        return entity.label

    def same(self, candidate: CustomVocab, existing: CustomVocab) -> bool:
        label = candidate.label.strip()
        if existing.label != label and not existing.label.startswith(f"{label} ["):
            return False
        return (
            normalize_terms(candidate.terms) == normalize_terms(existing.terms)
            and candidate.item_set_id == existing.item_set_id
        )

    def collides(self, candidate: CustomVocab, existing: CustomVocab) -> bool:
        return candidate.label.strip() == existing.label

    def renamed(self, candidate: CustomVocab, stamp: str, token: str) -> CustomVocab:
        return replace(candidate, label=f"{candidate.label.strip()} [{stamp} {token}]")

    def on_reuse(self, candidate: CustomVocab, existing: CustomVocab) -> None:
        _ = (candidate, existing)


def _property_signature(template_property: TemplateProperty) -> tuple[tuple[str, object], ...]:
    items: list[tuple[str, object]] = []
    for item in fields(template_property):
        value = getattr(template_property, item.name)
        if item.name == "data_types":
            value = tuple(sorted(value))
        if value in (None, "", (), False):
            continue
        items.append((item.name, value))
    return tuple(items)


def template_signature(template: ResourceTemplate) -> tuple[object, ...]:
    """Structure of a template without label, id and owner."""

    return (
        template.resource_class or None,
        template.title_property or None,
        template.description_property or None,
        tuple(sorted(_property_signature(item) for item in template.properties)),
    )


class ResourceTemplatePolicy:
    entity_type = EntityType.RESOURCE_TEMPLATE
    suffix_length = 5

    def name_of(self, entity: ResourceTemplate) -> str:
        return entity.label

    def same(self, candidate: ResourceTemplate, existing: ResourceTemplate) -> bool:
        return template_signature(candidate) == template_signature(existing)

    def collides(self, candidate: ResourceTemplate, existing: ResourceTemplate) -> bool:
        return candidate.label.strip() == existing.label

    def renamed(self, candidate: ResourceTemplate, stamp: str, token: str) -> ResourceTemplate:
        return replace(candidate, label=f"{candidate.label.strip()} {stamp} {token}")

    def on_reuse(self, candidate: ResourceTemplate, existing: ResourceTemplate) -> None:
        if candidate.label != existing.label:
            log.info(
                'Resource template "%s" matches existing template "%s"',
                candidate.label,
                existing.label,
            )


def _random_token(length: int) -> str:
    return secrets.token_hex((length + 1) // 2)[:length]


class ConflictResolver:
    """Decide reuse, rename or create for one candidate at a time.

    Candidates are never mutated; a rename returns a renamed copy.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = datetime.now,
        token: Callable[[int], str] = _random_token,
    ) -> None:
        self._clock = clock
        self._token = token

    def resolve[T: NamedEntity](
        self, candidate: T, existing: Iterable[T], policy: ConflictPolicy[T]
    ) -> Resolution[T]:
        existing_entities = list(existing)
        name = policy.name_of(candidate)

        for entity in existing_entities:
            if policy.same(candidate, entity):
                policy.on_reuse(candidate, entity)
                log.info('%s "%s" already exists as #%s: reused', policy.entity_type, name, entity.id)
                return Resolution(Decision.REUSE, entity)

        if any(policy.collides(candidate, entity) for entity in existing_entities):
            stamp = self._clock().strftime(STAMP_FORMAT)
            renamed = policy.renamed(candidate, stamp, self._token(policy.suffix_length))
            log.info(
                '%s "%s" is already used: renamed "%s"',
                policy.entity_type,
                name,
                policy.name_of(renamed),
            )
            return Resolution(Decision.RENAME, renamed, previous_name=name)

        log.info('%s "%s" will be created', policy.entity_type, name)
        return Resolution(Decision.CREATE, candidate)


@dataclass(slots=True)
class ReconcileResult:
    total: int = 0
    created: int = 0
    reused: int = 0
    renamed: int = 0
    names: dict[SourceId, str] = field(default_factory=dict["SourceId", str])


def entity_fields(entity: object) -> dict[str, object]:
    """Shallow field values of a dataclass entity, without its destination id."""
    return {item.name: getattr(entity, item.name) for item in fields(entity) if item.name != "id"}  # type: ignore[arg-type]


def reconcile_named_entities[T: NamedEntity](
    candidates: Iterable[tuple[SourceId, T]],
    *,
    store: EntityStore,
    ids: IdMapSlice,
    policy: ConflictPolicy[T],
    resolver: ConflictResolver,
) -> ReconcileResult:
    """Resolve each candidate against the store, creating entities when needed."""

    existing: list[T] = list(store.search(policy.entity_type))  # type: ignore[arg-type]
    result = ReconcileResult()
    for source_id, candidate in candidates:
        result.total += 1
        resolution = resolver.resolve(candidate, existing, policy)
        result.names[source_id] = policy.name_of(resolution.entity)
        if resolution.decision is Decision.REUSE and resolution.existing_id is not None:
            ids.assign(source_id, resolution.existing_id)
            result.reused += 1
            continue

        new_id = store.create(policy.entity_type, entity_fields(resolution.entity))
        ids.assign(source_id, new_id)
        existing.append(store.read(policy.entity_type, new_id))  # type: ignore[arg-type]
        result.created += 1
        if resolution.decision is Decision.RENAME:
            result.renamed += 1

    log.info(
        "%s: %d ready, %d created (%d renamed), %d reused",
        policy.entity_type,
        result.total,
        result.created,
        result.renamed,
        result.reused,
    )
    return result
