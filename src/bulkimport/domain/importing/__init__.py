"""Import phases: id allocation, conflict resolution, batched fill, thesaurus."""

from __future__ import annotations

from .conflicts import (
    ConflictResolver,
    CustomVocabPolicy,
    ReconcileResult,
    Resolution,
    ResourceTemplatePolicy,
    VocabularyPolicy,
    reconcile_named_entities,
)
from .context import ImportContext, PhaseCounters, StopFlag
from .materializer import BatchedMaterializer, MaterializeResult
from .placeholders import PlaceholderAllocator
from .records import ResourceRecord, SourceValue
from .run import ImportRun, ImportSource, ImportSummary
from .thesaurus import ConceptRecord, ThesaurusKeys, linearize

__all__ = [
    "BatchedMaterializer",
    "ConceptRecord",
    "ConflictResolver",
    "CustomVocabPolicy",
    "ImportContext",
    "ImportRun",
    "ImportSource",
    "ImportSummary",
    "MaterializeResult",
    "PhaseCounters",
    "PlaceholderAllocator",
    "ReconcileResult",
    "Resolution",
    "ResourceRecord",
    "ResourceTemplatePolicy",
    "SourceValue",
    "StopFlag",
    "ThesaurusKeys",
    "VocabularyPolicy",
    "linearize",
    "reconcile_named_entities",
]
