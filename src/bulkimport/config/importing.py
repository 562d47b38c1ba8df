"""Import run configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final

from bulkimport.domain.model.enums import NarrowerSort, UpdateMode

from .env import optional_env_var, positive_int_env_var
from .errors import ConfigurationError

DEFAULT_ENTITY_CHUNK_SIZE: Final[int] = 100
DEFAULT_RECORD_ID_CHUNK_SIZE: Final[int] = 10_000
DEFAULT_MAX_RECORDS: Final[int] = 10_000_000


@dataclass(frozen=True, slots=True)
class ImportConfig:
    entity_chunk_size: int = DEFAULT_ENTITY_CHUNK_SIZE
    record_id_chunk_size: int = DEFAULT_RECORD_ID_CHUNK_SIZE
    narrowers_sort: NarrowerSort = NarrowerSort.BY_ID
    update_mode: UpdateMode = UpdateMode.CREATE
    max_records: int = DEFAULT_MAX_RECORDS

    def __post_init__(self) -> None:
        for name in ("entity_chunk_size", "record_id_chunk_size", "max_records"):
            value = getattr(self, name)
            if value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")


def _enum_env_var[E: (NarrowerSort, UpdateMode)](name: str, enum_type: type[E], default: E) -> E:
    raw = optional_env_var(name)
    if raw is None:
        return default
    try:
        return enum_type(raw.lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        raise ConfigurationError(f"{name} must be one of: {allowed}; got {raw!r}") from exc


def get_import_config() -> ImportConfig:
    """Load import settings from the environment, falling back to defaults."""

    return ImportConfig(
        entity_chunk_size=positive_int_env_var(
            "BULKIMPORT_ENTITY_CHUNK_SIZE", DEFAULT_ENTITY_CHUNK_SIZE
        ),
        record_id_chunk_size=positive_int_env_var(
            "BULKIMPORT_RECORD_ID_CHUNK_SIZE", DEFAULT_RECORD_ID_CHUNK_SIZE
        ),
        narrowers_sort=_enum_env_var("BULKIMPORT_NARROWERS_SORT", NarrowerSort, NarrowerSort.BY_ID),
        update_mode=_enum_env_var("BULKIMPORT_UPDATE_MODE", UpdateMode, UpdateMode.CREATE),
        max_records=positive_int_env_var("BULKIMPORT_MAX_RECORDS", DEFAULT_MAX_RECORDS),
    )
