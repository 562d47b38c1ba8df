"""Public domain model surface."""

from __future__ import annotations

from bulkimport.domain.model.diff import DiffEntry, DiffReport, RecordDiff
from bulkimport.domain.model.entities import (
    CustomVocab,
    Resource,
    ResourceTemplate,
    TemplateProperty,
    Value,
    Vocabulary,
)
from bulkimport.domain.model.enums import (
    ChangeCode,
    Decision,
    EntityType,
    NarrowerSort,
    RunStatus,
    UpdateMode,
)
from bulkimport.domain.model.identity import (
    DEFAULT_TABLE_BINDINGS,
    SOURCE_ID,
    IdMap,
    IdMapSlice,
    IdReassignmentError,
    SourceId,
    TableBinding,
    integer_id,
)
from bulkimport.domain.model.thesaurus import ConceptId, ThesaurusTree

__all__ = [
    "DEFAULT_TABLE_BINDINGS",
    "SOURCE_ID",
    "ChangeCode",
    "ConceptId",
    "CustomVocab",
    "Decision",
    "DiffEntry",
    "DiffReport",
    "EntityType",
    "IdMap",
    "IdMapSlice",
    "IdReassignmentError",
    "NarrowerSort",
    "RecordDiff",
    "Resource",
    "ResourceTemplate",
    "RunStatus",
    "SourceId",
    "TableBinding",
    "TemplateProperty",
    "ThesaurusTree",
    "UpdateMode",
    "Value",
    "Vocabulary",
    "integer_id",
]
