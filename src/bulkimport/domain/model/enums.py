"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Kinds of records an import run maps from source to destination ids."""

    VOCABULARY = "vocabulary"
    CUSTOM_VOCAB = "custom_vocab"
    RESOURCE_TEMPLATE = "resource_template"
    ITEM_SET = "item_set"
    ITEM = "item"
    MEDIA = "media"
    # Thesaurus concepts are stored as items but keep their own source id space.
    CONCEPT = "concept"


class UpdateMode(StrEnum):
    CREATE = "create"
    APPEND = "append"
    REVISE = "revise"
    UPDATE = "update"
    REPLACE = "replace"

    @property
    def requires_diff(self) -> bool:
        """Create never touches existing records, so there is nothing to compare."""
        return self is not UpdateMode.CREATE


class NarrowerSort(StrEnum):
    NONE = "none"
    BY_ID = "id"
    BY_LABEL = "alpha"


class ChangeCode(StrEnum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"
    ERROR = "error"
    UNKNOWN = "unknown"

    @property
    def symbol(self) -> str:
        return _CHANGE_SYMBOLS[self]


_CHANGE_SYMBOLS: dict[ChangeCode, str] = {
    ChangeCode.UNCHANGED: "=",
    ChangeCode.ADDED: "+",
    ChangeCode.REMOVED: "-",
    ChangeCode.CHANGED: "≠",
    ChangeCode.ERROR: "×",
    ChangeCode.UNKNOWN: "?",
}


class Decision(StrEnum):
    REUSE = "reuse"
    RENAME = "rename"
    CREATE = "create"


class RunStatus(StrEnum):
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"
    STOPPED = "stopped"
