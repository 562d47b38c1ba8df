"""Ports for the destination entity store and the batch persistence context."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from bulkimport.domain.model import CustomVocab, Resource, ResourceTemplate, Vocabulary

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from bulkimport.domain.model import EntityType, TableBinding

type Entity = Resource | Vocabulary | CustomVocab | ResourceTemplate


@runtime_checkable
class EntityStore(Protocol):
    """Create/read/search/update destination entities by type and id."""

    def create(self, entity_type: EntityType, fields: Mapping[str, object]) -> int: ...

    def read(self, entity_type: EntityType, entity_id: int) -> Entity:
        """Return the entity or raise ``EntityNotFoundError``."""
        ...

    def search(self, entity_type: EntityType, **criteria: object) -> list[Entity]: ...

    def update(
        self, entity_type: EntityType, entity_id: int, fields: Mapping[str, object]
    ) -> None: ...


@runtime_checkable
class PlaceholderWriter(Protocol):
    """Bulk statement access used to claim destination ids ahead of time."""

    def existing_ids(self, binding: TableBinding) -> set[int]: ...

    def create_placeholders(
        self,
        binding: TableBinding,
        *,
        source_ids: Sequence[str],
        defaults: Mapping[str, object],
        marker_prefix: str,
        chunk_size: int,
    ) -> dict[str, int]:
        """Insert one row per source id and return ``{source id: destination id}``.

        Each row carries ``marker_prefix + source id`` in the binding's keep-id
        column until the mapping is recovered; the marker is then replaced by the
        column default. Scratch structures are released whatever happens; a failure
        discards the uncommitted work of the current transaction.
        """
        ...


@runtime_checkable
class BatchPersistenceContext(Protocol):
    """Tracks staged entities between two flushes."""

    def stage(self, entity: Entity) -> None: ...

    def flush(self) -> None: ...

    def clear(self) -> None: ...

    def find(self, entity_type: EntityType, entity_id: int) -> Entity | None: ...
