"""Import run orchestration: phases executed in order inside one unit of work."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import TYPE_CHECKING

from bulkimport.config.errors import ConfigurationError
from bulkimport.domain.errors import ImportPhaseError, ImportSizeError, SourceMismatchError
from bulkimport.domain.importing.conflicts import (
    ConflictResolver,
    CustomVocabPolicy,
    ResourceTemplatePolicy,
    VocabularyPolicy,
    reconcile_named_entities,
)
from bulkimport.domain.importing.context import ImportContext, PhaseCounters
from bulkimport.domain.importing.converters import ResourceConverter, ResourceValidator
from bulkimport.domain.importing.materializer import BatchedMaterializer
from bulkimport.domain.importing.normalize import normalize_template
from bulkimport.domain.importing.placeholders import PlaceholderAllocator
from bulkimport.domain.importing.thesaurus import (
    CONCEPT_CLASS,
    ConceptConverter,
    linearize,
    link_top_concepts,
    prepare_scheme,
)
from bulkimport.domain.model import SOURCE_ID, EntityType, RunStatus

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from bulkimport.config.importing import ImportConfig
    from bulkimport.domain.importing.materializer import MaterializeResult
    from bulkimport.domain.importing.records import ResourceRecord
    from bulkimport.domain.importing.thesaurus import ConceptRecord
    from bulkimport.domain.model import CustomVocab, ResourceTemplate, SourceId, Vocabulary
    from bulkimport.domain.ports import ImportRepositories, ImportUnitOfWork

log = logging.getLogger(__name__)

type UnitOfWorkFactory = Callable[[], ImportUnitOfWork]

RESOURCE_TYPES: dict[EntityType, str] = {
    EntityType.ITEM_SET: "item_set",
    EntityType.ITEM: "item",
    EntityType.MEDIA: "media",
}


@dataclass(frozen=True, slots=True)
class ImportSource:
    """Everything one run imports, already translated to domain records."""

    vocabularies: Sequence[tuple[SourceId, Vocabulary]] = ()
    custom_vocabs: Sequence[tuple[SourceId, CustomVocab]] = ()
    resource_templates: Sequence[tuple[SourceId, ResourceTemplate]] = ()
    item_sets: Sequence[ResourceRecord] = ()
    items: Sequence[ResourceRecord] = ()
    media: Sequence[ResourceRecord] = ()
    concepts: Sequence[ConceptRecord] = ()
    thesaurus_name: str = "Thesaurus"
    owner_id: int | None = None

    def resources(self, entity_type: EntityType) -> Sequence[ResourceRecord]:
        if entity_type is EntityType.ITEM_SET:
            return self.item_sets
        if entity_type is EntityType.MEDIA:
            return self.media
        return self.items


@dataclass(frozen=True, slots=True)
class ImportSummary:
    run_id: str
    status: RunStatus
    errors: int
    counters: dict[EntityType, PhaseCounters] = field(
        default_factory=dict[EntityType, PhaseCounters]
    )


class ImportRun:
    """Run every import phase in order, stopping at the first fatal phase error.

    Each phase commits on success. Configuration and phase errors roll back the
    uncommitted part of the failing phase, are logged once with the phase name
    and entity type, and prevent every later phase from running.
    """

    def __init__(
        self,
        *,
        unit_of_work_factory: UnitOfWorkFactory,
        config: ImportConfig,
        context: ImportContext | None = None,
        resolver: ConflictResolver | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._unit_of_work_factory = unit_of_work_factory
        self._config = config
        self.context = context or ImportContext()
        self._resolver = resolver or ConflictResolver(clock=clock)
        self._clock = clock
        self._prefixes: dict[str, str] = {}

    def run(self, source: ImportSource) -> ImportSummary:
        self.context.reset()
        self._prefixes = {}
        log.info("Import run %s started", self.context.run_id)

        phases: list[tuple[str, EntityType, Callable[[ImportRepositories, ImportSource], None]]] = [
            ("vocabularies", EntityType.VOCABULARY, self._import_vocabularies),
            ("placeholders", EntityType.ITEM_SET, self._allocate_resources),
            ("custom vocabs", EntityType.CUSTOM_VOCAB, self._import_custom_vocabs),
            ("resource templates", EntityType.RESOURCE_TEMPLATE, self._import_templates),
            ("item sets", EntityType.ITEM_SET, self._fill(EntityType.ITEM_SET)),
            ("items", EntityType.ITEM, self._fill(EntityType.ITEM)),
            ("media", EntityType.MEDIA, self._fill(EntityType.MEDIA)),
            ("thesaurus", EntityType.CONCEPT, self._import_thesaurus),
        ]

        with self._unit_of_work_factory() as uow:
            for name, entity_type, phase in phases:
                if self.context.is_error_or_stop():
                    break
                try:
                    phase(uow.repositories, source)
                    if self.context.is_error_or_stop():
                        # the in-flight batch of a halted phase is not kept
                        uow.rollback()
                    else:
                        uow.commit()
                except (ConfigurationError, ImportPhaseError) as exc:
                    uow.rollback()
                    failed_type = getattr(exc, "entity_type", entity_type)
                    log.error('Phase "%s" failed for %s: %s', name, failed_type, exc)
                    self.context.record_error()

        status = self.context.finish()
        log.info(
            "Import run %s finished: status=%s, errors=%d",
            self.context.run_id,
            status,
            self.context.errors,
        )
        return ImportSummary(
            run_id=self.context.run_id,
            status=status,
            errors=self.context.errors,
            counters={key: replace(value) for key, value in self.context.counters.items()},
        )

    # Phases -----------------------------------------------------------------

    def _import_vocabularies(self, repos: ImportRepositories, source: ImportSource) -> None:
        if not source.vocabularies:
            return
        result = reconcile_named_entities(
            source.vocabularies,
            store=repos.store,
            ids=self.context.id_map.for_type(EntityType.VOCABULARY),
            policy=VocabularyPolicy(),
            resolver=self._resolver,
        )
        for source_id, vocabulary in source.vocabularies:
            destination_prefix = result.names.get(source_id)
            if destination_prefix and destination_prefix != vocabulary.prefix:
                self._prefixes[vocabulary.prefix] = destination_prefix
        self._count_named(EntityType.VOCABULARY, result.total, result.created, result.reused)
        self.context.counters_for(EntityType.VOCABULARY).renamed = result.renamed

    def _import_custom_vocabs(self, repos: ImportRepositories, source: ImportSource) -> None:
        if not source.custom_vocabs:
            return
        item_sets = self.context.id_map.for_type(EntityType.ITEM_SET)
        candidates: list[tuple[SourceId, CustomVocab]] = []
        for source_id, custom_vocab in source.custom_vocabs:
            item_set_id = None
            if custom_vocab.item_set_id is not None:
                item_set_id = item_sets.get(custom_vocab.item_set_id)
                if item_set_id is None:
                    log.warning(
                        'Custom vocab "%s": item set #%s not found, omitted',
                        custom_vocab.label,
                        custom_vocab.item_set_id,
                    )
            candidates.append(
                (source_id, replace(custom_vocab, id=None, item_set_id=item_set_id))
            )
        result = reconcile_named_entities(
            candidates,
            store=repos.store,
            ids=self.context.id_map.for_type(EntityType.CUSTOM_VOCAB),
            policy=CustomVocabPolicy(),
            resolver=self._resolver,
        )
        self._count_named(EntityType.CUSTOM_VOCAB, result.total, result.created, result.reused)
        self.context.counters_for(EntityType.CUSTOM_VOCAB).renamed = result.renamed

    def _import_templates(self, repos: ImportRepositories, source: ImportSource) -> None:
        if not source.resource_templates:
            return
        custom_vocab_ids = self.context.id_map.view(EntityType.CUSTOM_VOCAB)
        candidates = [
            (
                source_id,
                normalize_template(
                    template, custom_vocab_ids=custom_vocab_ids, prefixes=self._prefixes
                ),
            )
            for source_id, template in source.resource_templates
        ]
        result = reconcile_named_entities(
            candidates,
            store=repos.store,
            ids=self.context.id_map.for_type(EntityType.RESOURCE_TEMPLATE),
            policy=ResourceTemplatePolicy(),
            resolver=self._resolver,
        )
        self._count_named(
            EntityType.RESOURCE_TEMPLATE, result.total, result.created, result.reused
        )
        self.context.counters_for(EntityType.RESOURCE_TEMPLATE).renamed = result.renamed

    def _allocate_resources(self, repos: ImportRepositories, source: ImportSource) -> None:
        allocator = self._allocator(repos)
        for entity_type, resource_type in RESOURCE_TYPES.items():
            records = source.resources(entity_type)
            if not records:
                continue
            self._check_size(entity_type, len(records))
            ids = self.context.id_map.for_type(entity_type)
            for record in records:
                ids.reserve(record.source_id)
            allocator.allocate(
                ids,
                {
                    "id": SOURCE_ID,
                    "resource_type": resource_type,
                    "title": SOURCE_ID,
                    "is_public": False,
                    "owner_id": source.owner_id,
                },
            )
            self.context.counters_for(entity_type).total = len(records)

    def _fill(
        self, entity_type: EntityType
    ) -> Callable[[ImportRepositories, ImportSource], None]:
        def fill(repos: ImportRepositories, source: ImportSource) -> None:
            records = source.resources(entity_type)
            if not records:
                return
            materializer = BatchedMaterializer(
                label=str(entity_type),
                ids=self.context.id_map.for_type(entity_type),
                batch=repos.batch,
                converter=ResourceConverter(
                    id_map=self.context.id_map, prefixes=self._prefixes, clock=self._clock
                ),
                validator=ResourceValidator(),
                chunk_size=self._config.entity_chunk_size,
                halt_check=self.context.is_error_or_stop,
            )
            self._record_fill(entity_type, materializer.run(records, total=len(records)))

        return fill

    def _import_thesaurus(self, repos: ImportRepositories, source: ImportSource) -> None:
        if not source.concepts:
            return
        total = len(source.concepts)
        self._check_size(EntityType.CONCEPT, total)
        log.info(
            'Preparation of thesaurus scheme "%s" with %d concepts', source.thesaurus_name, total
        )

        scheme = prepare_scheme(
            repos.store, name=source.thesaurus_name, owner_id=source.owner_id, clock=self._clock
        )
        tree = linearize(source.concepts, self._config.narrowers_sort)
        ids = self.context.id_map.for_type(EntityType.CONCEPT)
        for record in source.concepts:
            ids.reserve(record.source_id)
        self._allocator(repos).allocate(
            ids,
            {
                "id": SOURCE_ID,
                "resource_type": "item",
                "title": SOURCE_ID,
                "is_public": False,
                "owner_id": source.owner_id,
                "resource_class": CONCEPT_CLASS,
            },
        )
        link_top_concepts(repos.store, scheme, tree, ids)
        repos.batch.flush()

        materializer = BatchedMaterializer(
            label="concept",
            ids=ids,
            batch=repos.batch,
            converter=ConceptConverter(
                tree=tree,
                ids=ids,
                scheme=scheme,
                owner_id=source.owner_id,
                clock=self._clock,
            ),
            validator=ResourceValidator(),
            chunk_size=self._config.entity_chunk_size,
            halt_check=self.context.is_error_or_stop,
        )
        self.context.counters_for(EntityType.CONCEPT).total = total
        self._record_fill(EntityType.CONCEPT, materializer.run(source.concepts, total=total))

    # Helpers ----------------------------------------------------------------

    def _allocator(self, repos: ImportRepositories) -> PlaceholderAllocator:
        return PlaceholderAllocator(
            repos.placeholders,
            run_id=self.context.run_id,
            chunk_size=self._config.record_id_chunk_size,
        )

    def _check_size(self, entity_type: EntityType, total: int) -> None:
        if total > self._config.max_records:
            raise ImportSizeError(entity_type, total, self._config.max_records)

    def _count_named(self, entity_type: EntityType, total: int, created: int, reused: int) -> None:
        counters = self.context.counters_for(entity_type)
        counters.total = total
        counters.created = created
        counters.reused = reused

    def _record_fill(self, entity_type: EntityType, result: MaterializeResult) -> None:
        counters = self.context.counters_for(entity_type)
        counters.created = result.created
        counters.skipped = result.skipped
        if result.halted:
            return
        if result.iterated != result.total:
            raise SourceMismatchError(entity_type, result.total, result.iterated)
