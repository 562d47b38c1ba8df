"""Translate a validated JSON dump into the records of one import run."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Final, cast

from bulkimport.domain.importing import (
    ConceptRecord,
    ImportSource,
    ResourceRecord,
    SourceValue,
    ThesaurusKeys,
)
from bulkimport.domain.model import (
    CustomVocab,
    EntityType,
    ResourceTemplate,
    TemplateProperty,
    Vocabulary,
)

from .schema import (
    CustomVocabPayload,
    ImportDump,
    ResourcePayload,
    ResourceTemplatePayload,
    ThesaurusPayload,
    ValuePayload,
    VocabularyPayload,
)

if TYPE_CHECKING:
    from pathlib import Path

log = logging.getLogger(__name__)

LINKED_TYPES: Final[dict[str, EntityType]] = {
    "items": EntityType.ITEM,
    "item_sets": EntityType.ITEM_SET,
    "media": EntityType.MEDIA,
}


def load_dump(path: Path) -> ImportDump:
    """Read and validate a dump file; raises ``pydantic.ValidationError`` on bad input."""

    with path.open(encoding="utf-8") as handle:
        payload = json.load(handle)
    return ImportDump.model_validate(payload)


def translate_dump(dump: ImportDump) -> ImportSource:
    thesaurus = dump.thesaurus or ThesaurusPayload()
    source = ImportSource(
        vocabularies=[_vocabulary(payload, dump.owner_id) for payload in dump.vocabularies],
        custom_vocabs=[_custom_vocab(payload, dump.owner_id) for payload in dump.custom_vocabs],
        resource_templates=[
            _resource_template(payload, dump.owner_id) for payload in dump.resource_templates
        ],
        item_sets=[_resource(payload, dump.owner_id) for payload in dump.item_sets],
        items=[_resource(payload, dump.owner_id) for payload in dump.items],
        media=[_resource(payload, dump.owner_id) for payload in dump.media],
        concepts=_concepts(thesaurus),
        thesaurus_name=thesaurus.name,
        owner_id=dump.owner_id,
    )
    log.info(
        "Dump translated: %d vocabularies, %d custom vocabs, %d templates, "
        "%d item sets, %d items, %d media, %d concepts",
        len(source.vocabularies),
        len(source.custom_vocabs),
        len(source.resource_templates),
        len(source.item_sets),
        len(source.items),
        len(source.media),
        len(source.concepts),
    )
    return source


def _vocabulary(payload: VocabularyPayload, owner_id: int | None) -> tuple[int | str, Vocabulary]:
    return payload.id, Vocabulary(
        namespace_uri=payload.namespace_uri,
        prefix=payload.prefix,
        label=payload.label,
        comment=payload.comment,
        owner_id=owner_id,
    )


def _custom_vocab(
    payload: CustomVocabPayload, owner_id: int | None
) -> tuple[int | str, CustomVocab]:
    return payload.id, CustomVocab(
        label=payload.label,
        lang=payload.lang,
        terms=list(payload.terms),
        item_set_id=payload.item_set,  # type: ignore[arg-type]  # source id until mapped
        owner_id=owner_id,
    )


def _resource_template(
    payload: ResourceTemplatePayload, owner_id: int | None
) -> tuple[int | str, ResourceTemplate]:
    properties = [
        TemplateProperty(
            property=item.property,
            alternate_label=item.alternate_label,
            alternate_comment=item.alternate_comment,
            data_types=tuple(item.data_types),
            is_required=item.is_required,
            is_private=item.is_private,
        )
        for item in payload.properties
    ]
    return payload.id, ResourceTemplate(
        label=payload.label,
        resource_class=payload.resource_class,
        title_property=payload.title_property,
        description_property=payload.description_property,
        properties=properties,
        owner_id=owner_id,
    )


def _value(term: str, payload: ValuePayload) -> SourceValue:
    linked_type = EntityType.ITEM
    if payload.value_resource_name:
        linked_type = LINKED_TYPES.get(payload.value_resource_name, EntityType.ITEM)
    return SourceValue(
        term=term,
        type=payload.type,
        value=payload.value if payload.value is not None else payload.label,
        uri=payload.uri,
        value_resource_id=payload.value_resource_id,
        value_resource_type=linked_type,
        lang=payload.lang,
        is_public=payload.is_public,
    )


def _resource(payload: ResourcePayload, owner_id: int | None) -> ResourceRecord:
    values = tuple(
        _value(term, value)
        for term, term_values in payload.properties().items()
        for value in term_values
    )
    return ResourceRecord(
        source_id=payload.id,
        title=payload.title,
        resource_class=payload.resource_class,
        resource_template_id=payload.resource_template,
        owner_id=owner_id,
        is_public=payload.is_public,
        created=payload.created,
        modified=payload.modified,
        item_set_ids=tuple(payload.item_sets),
        values=values,
    )


def _concepts(thesaurus: ThesaurusPayload) -> list[ConceptRecord]:
    keys = ThesaurusKeys(**thesaurus.keys.model_dump())
    return [ConceptRecord.from_source(concept, keys) for concept in thesaurus.concepts]


def load_records(path: Path) -> list[dict[str, object] | None]:
    """Read exported records for diffing: a list of records, or a single record."""

    with path.open(encoding="utf-8") as handle:
        payload = json.load(handle)
    if isinstance(payload, dict):
        return [cast(dict[str, object], payload)]
    if not isinstance(payload, list):
        raise ValueError(f"{path}: expected a JSON list of records")
    records: list[dict[str, object] | None] = []
    for position, entry in enumerate(cast(list[object], payload), start=1):
        if entry is not None and not isinstance(entry, dict):
            raise ValueError(f"{path}: record {position} is not an object")
        records.append(cast("dict[str, object] | None", entry))
    return records
