"""Converters and validators for resource records (items, item sets, media)."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Final

from bulkimport.domain.importing.dates import parse_source_datetime
from bulkimport.domain.importing.normalize import CUSTOM_VOCAB_PREFIX, remap_data_type, remap_term
from bulkimport.domain.model import EntityType, Resource, Value

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from datetime import datetime

    from bulkimport.domain.importing.records import ResourceRecord, SourceValue
    from bulkimport.domain.model import IdMap
    from bulkimport.domain.ports import Entity

log = logging.getLogger(__name__)

TERM_PATTERN: Final = re.compile(r"^[A-Za-z][\w-]*:[A-Za-z_][\w.-]*$")
TITLE_TERM: Final[str] = "dcterms:title"
MAX_TITLE_LENGTH: Final[int] = 190


class ResourceConverter:
    """Maps a resource record to destination fields.

    Source references (template, item sets, linked resources) go through the
    run's id map; unresolved ones are logged and omitted.
    """

    def __init__(
        self,
        *,
        id_map: IdMap,
        prefixes: Mapping[str, str] | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._id_map = id_map
        self._prefixes = prefixes or {}
        self._clock = clock

    def convert(self, record: ResourceRecord) -> dict[str, object]:
        values = [
            value
            for source_value in record.values
            if (value := self._convert_value(record, source_value)) is not None
        ]
        title = record.title or next(
            (value.value for value in values if value.term == TITLE_TERM and value.value), None
        )

        template_id = None
        if record.resource_template_id is not None:
            template_id = self._id_map.get(
                EntityType.RESOURCE_TEMPLATE, record.resource_template_id
            )
            if template_id is None:
                log.warning(
                    "Resource #%s: template #%s not found, omitted",
                    record.source_id,
                    record.resource_template_id,
                )

        item_set_ids: list[int] = []
        for source_item_set in record.item_set_ids:
            item_set_id = self._id_map.get(EntityType.ITEM_SET, source_item_set)
            if item_set_id is None:
                log.warning(
                    "Resource #%s: item set #%s not found, omitted",
                    record.source_id,
                    source_item_set,
                )
                continue
            item_set_ids.append(item_set_id)

        created = parse_source_datetime(record.created)
        if created is None and self._clock is not None:
            created = self._clock()
        return {
            "title": title,
            "owner_id": record.owner_id,
            "resource_class": remap_term(record.resource_class, self._prefixes),
            "resource_template_id": template_id,
            "is_public": record.is_public,
            "created": created,
            "modified": parse_source_datetime(record.modified),
            "item_set_ids": item_set_ids,
            "values": values,
        }

    def _convert_value(self, record: ResourceRecord, source: SourceValue) -> Value | None:
        term = remap_term(source.term, self._prefixes) or source.term
        linked_id: int | None = None
        if source.value_resource_id is not None:
            linked_id = self._id_map.get(source.value_resource_type, source.value_resource_id)
            if linked_id is None:
                log.warning(
                    "Resource #%s: linked %s #%s for %s not found, value omitted",
                    record.source_id,
                    source.value_resource_type,
                    source.value_resource_id,
                    term,
                )
                return None
        value_type = source.type
        if value_type.startswith(CUSTOM_VOCAB_PREFIX):
            value_type = remap_data_type(
                value_type, self._id_map.view(EntityType.CUSTOM_VOCAB)
            )
        return Value(
            term=term,
            type=value_type,
            value=source.value,
            uri=source.uri,
            value_resource_id=linked_id,
            lang=source.lang,
            is_public=source.is_public,
        )


class ResourceValidator:
    """Checks converted fields against destination constraints."""

    def validate(self, entity: Entity, fields: Mapping[str, object]) -> Sequence[str]:
        errors: list[str] = []
        if not isinstance(entity, Resource):
            return [f"expected a resource, got {type(entity).__name__}"]

        title = fields.get("title")
        if isinstance(title, str) and len(title) > MAX_TITLE_LENGTH:
            errors.append(f"title longer than {MAX_TITLE_LENGTH} characters")

        resource_class = fields.get("resource_class")
        if resource_class is not None and (
            not isinstance(resource_class, str) or not TERM_PATTERN.match(resource_class)
        ):
            errors.append(f"invalid resource class {resource_class!r}")

        values = fields.get("values") or []
        if not isinstance(values, list):
            return [*errors, "values must be a list"]
        for position, value in enumerate(values, start=1):
            if not isinstance(value, Value):
                errors.append(f"value {position} is not a value")
                continue
            errors.extend(
                f"value {position} ({value.term}): {message}" for message in _value_errors(value)
            )
        return errors


def _value_errors(value: Value) -> list[str]:
    errors: list[str] = []
    if not TERM_PATTERN.match(value.term):
        errors.append("invalid property term")
    if value.type.startswith("resource"):
        if value.value_resource_id is None:
            errors.append("linked resource missing")
    elif value.type == "uri":
        if not value.uri:
            errors.append("uri missing")
    elif value.value is None or not value.value.strip():
        errors.append("empty literal")
    return errors
