"""Domain error types raised by import and report phases."""

from __future__ import annotations

from typing import TYPE_CHECKING

from bulkimport.config.errors import ConfigurationError

if TYPE_CHECKING:
    from bulkimport.domain.model import EntityType


class PlaceholderConfigurationError(ConfigurationError):
    """Raised when placeholders cannot be created for an entity type."""

    def __init__(self, entity_type: EntityType | str, message: str) -> None:
        super().__init__(f"{entity_type}: {message}")
        self.entity_type = entity_type


class IdConflictError(PlaceholderConfigurationError):
    """Raised when explicitly requested ids already exist at the destination."""

    def __init__(self, entity_type: EntityType | str, conflicting: set[int]) -> None:
        sample = ", ".join(str(value) for value in sorted(conflicting)[:10])
        super().__init__(
            entity_type,
            f"{len(conflicting)} requested ids already exist ({sample})",
        )
        self.conflicting = conflicting


class ImportPhaseError(RuntimeError):
    """Base class for errors that stop the current import phase."""


class ImportSizeError(ImportPhaseError):
    """Raised when a record type declares more records than allowed."""

    def __init__(self, entity_type: EntityType | str, total: int, limit: int) -> None:
        super().__init__(f"{entity_type}: {total} records declared, limit is {limit}")
        self.entity_type = entity_type
        self.total = total
        self.limit = limit


class SourceMismatchError(ImportPhaseError):
    """Raised when the iterated record count differs from the declared total."""

    def __init__(self, entity_type: EntityType | str, declared: int, iterated: int) -> None:
        super().__init__(
            f"{entity_type}: {declared} records declared, {iterated} iterated"
        )
        self.entity_type = entity_type
        self.declared = declared
        self.iterated = iterated


class EntityNotFoundError(LookupError):
    """Raised when the entity store has no entity for the requested id."""

    def __init__(self, entity_type: EntityType | str, entity_id: int) -> None:
        super().__init__(f"{entity_type} #{entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ReportSinkError(RuntimeError):
    """Raised when a report file cannot be prepared or written."""
