"""Normalisation helpers applied to named entities before comparison or creation."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Final

from bulkimport.domain.model import integer_id

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from bulkimport.domain.model import ResourceTemplate, SourceId

log = logging.getLogger(__name__)

CUSTOM_VOCAB_PREFIX: Final[str] = "customvocab:"
DEPRECATED_DATA_TYPES: Final[Mapping[str, str]] = {"idref": "valuesuggest:idref:person"}
FALLBACK_DATA_TYPE: Final[str] = "literal"


def normalize_namespace(uri: str) -> str:
    return uri.strip().rstrip("#/")


def normalize_terms(terms: Iterable[str]) -> frozenset[str]:
    """Trimmed, non-blank terms; comparison stays case-sensitive."""
    return frozenset(stripped for term in terms if (stripped := term.strip()))


def remap_term(term: str | None, prefixes: Mapping[str, str]) -> str | None:
    """Rewrite ``prefix:local`` with the destination prefix when it changed."""

    if not term or ":" not in term:
        return term
    prefix, local_name = term.split(":", 1)
    target = prefixes.get(prefix)
    if target is None or target == prefix:
        return term
    return f"{target}:{local_name}"


def remap_data_type(data_type: str, custom_vocab_ids: Mapping[SourceId, int | None]) -> str:
    if data_type in DEPRECATED_DATA_TYPES:
        return DEPRECATED_DATA_TYPES[data_type]
    if not data_type.startswith(CUSTOM_VOCAB_PREFIX):
        return data_type
    source_key = data_type.removeprefix(CUSTOM_VOCAB_PREFIX)
    destination_id = custom_vocab_ids.get(source_key)
    numeric_key = integer_id(source_key)
    if destination_id is None and numeric_key is not None:
        destination_id = custom_vocab_ids.get(numeric_key)
    if destination_id is None:
        log.info("Unknown custom vocab data type %s replaced by %s", data_type, FALLBACK_DATA_TYPE)
        return FALLBACK_DATA_TYPE
    return f"{CUSTOM_VOCAB_PREFIX}{destination_id}"


def normalize_template(
    template: ResourceTemplate,
    *,
    custom_vocab_ids: Mapping[SourceId, int | None],
    prefixes: Mapping[str, str],
) -> ResourceTemplate:
    """Return a copy of ``template`` expressed with destination references."""

    properties = []
    for template_property in template.properties:
        data_types = tuple(
            dict.fromkeys(
                remap_data_type(data_type, custom_vocab_ids)
                for data_type in template_property.data_types
            )
        )
        properties.append(
            replace(
                template_property,
                property=remap_term(template_property.property, prefixes)
                or template_property.property,
                data_types=data_types,
            )
        )
    return replace(
        template,
        id=None,
        resource_class=remap_term(template.resource_class, prefixes),
        title_property=remap_term(template.title_property, prefixes),
        description_property=remap_term(template.description_property, prefixes),
        properties=properties,
    )
