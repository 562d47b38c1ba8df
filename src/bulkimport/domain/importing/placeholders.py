"""Claim destination ids ahead of time with empty placeholder rows."""

from __future__ import annotations

import logging
import secrets
from typing import TYPE_CHECKING

from bulkimport.domain.errors import IdConflictError, PlaceholderConfigurationError
from bulkimport.domain.model import DEFAULT_TABLE_BINDINGS, SOURCE_ID, integer_id

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from bulkimport.domain.model import EntityType, IdMapSlice, SourceId, TableBinding
    from bulkimport.domain.ports import PlaceholderWriter

log = logging.getLogger(__name__)

# 16 random bytes keep markers from colliding with real data or other runs.
MARKER_TOKEN_BYTES = 16


class PlaceholderAllocator:
    """Create one placeholder row per source id and record the new ids.

    Defaults map destination columns to values; a column mapped to ``SOURCE_ID``
    receives the source id. Mapping ``"id"`` to ``SOURCE_ID`` asks to keep source
    ids as destination ids, which is dropped silently when they collide.
    """

    def __init__(
        self,
        writer: PlaceholderWriter,
        *,
        run_id: str,
        chunk_size: int,
        bindings: Mapping[EntityType, TableBinding] = DEFAULT_TABLE_BINDINGS,
    ) -> None:
        self._writer = writer
        self._run_id = run_id
        self._chunk_size = chunk_size
        self._bindings = bindings

    def marker_prefix(self) -> str:
        return f"{self._run_id}-{secrets.token_hex(MARKER_TOKEN_BYTES)}:"

    def allocate(
        self,
        ids: IdMapSlice,
        defaults: Mapping[str, object] | None,
        *,
        explicit_ids: Sequence[int] | None = None,
    ) -> dict[SourceId, int]:
        """Allocate placeholders for ``explicit_ids`` or the unmapped keys of ``ids``."""

        entity_type = ids.entity_type
        binding = self._bindings.get(entity_type)
        if binding is None:
            raise PlaceholderConfigurationError(entity_type, "no table binding")
        if not defaults:
            raise PlaceholderConfigurationError(entity_type, "no default values for placeholders")

        if explicit_ids is not None and not explicit_ids:
            log.warning("No ids set to create %s", entity_type)
            return {}

        effective = dict(defaults)
        existing = self._writer.existing_ids(binding)

        source_keys: list[SourceId]
        if explicit_ids is not None:
            conflicting = set(explicit_ids) & existing
            if conflicting:
                raise IdConflictError(entity_type, conflicting)
            source_keys = list(dict.fromkeys(explicit_ids))
            for key in source_keys:
                ids.reserve(key)
            effective["id"] = SOURCE_ID
        else:
            source_keys = [key for key in ids if ids.get(key) is None]
            if effective.get("id") is SOURCE_ID and not self._can_keep_ids(source_keys, existing):
                log.info(
                    "%s: source ids collide with existing ids, new ids will be assigned",
                    entity_type,
                )
                del effective["id"]

        if not source_keys:
            log.warning("No source ids to allocate for %s", entity_type)
            return {}

        by_text = {str(key): key for key in source_keys}
        if len(by_text) != len(source_keys):
            raise PlaceholderConfigurationError(
                entity_type, "source ids are not distinct once converted to text"
            )

        recovered = self._writer.create_placeholders(
            binding,
            source_ids=list(by_text),
            defaults=effective,
            marker_prefix=self.marker_prefix(),
            chunk_size=self._chunk_size,
        )

        mapping: dict[SourceId, int] = {}
        for text, destination_id in recovered.items():
            key = by_text[text]
            ids.assign(key, destination_id)
            mapping[key] = destination_id

        missing = len(by_text) - len(mapping)
        if missing:
            log.warning("%s: %d placeholders could not be recovered", entity_type, missing)
        log.info("%s: %d placeholders created", entity_type, len(mapping))
        return mapping

    @staticmethod
    def _can_keep_ids(source_keys: Sequence[SourceId], existing: set[int]) -> bool:
        as_ints = [integer_id(key) for key in source_keys]
        if any(value is None for value in as_ints):
            return False
        wanted = {value for value in as_ints if value is not None}
        if len(wanted) != len(as_ints):
            return False
        return not (wanted & existing)
