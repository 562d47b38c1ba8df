"""Frozen parent/child views over a thesaurus record set."""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

type ConceptId = Hashable


def _empty_parents() -> Mapping[ConceptId, ConceptId]:
    return MappingProxyType({})


def _empty_narrowers() -> Mapping[ConceptId, tuple[ConceptId, ...]]:
    return MappingProxyType({})


@dataclass(frozen=True, slots=True)
class ThesaurusTree:
    """Three views over the same concepts.

    ``tops`` lists concepts without a declared parent, ``parents`` maps each other
    concept to its declared parent (which may be missing from the source), and
    ``narrowers`` lists the children of each parent without duplicates.
    """

    tops: tuple[ConceptId, ...] = ()
    parents: Mapping[ConceptId, ConceptId] = field(default_factory=_empty_parents)
    narrowers: Mapping[ConceptId, tuple[ConceptId, ...]] = field(
        default_factory=_empty_narrowers
    )

    def is_top(self, concept_id: ConceptId) -> bool:
        return concept_id not in self.parents

    def parent_of(self, concept_id: ConceptId) -> ConceptId | None:
        return self.parents.get(concept_id)

    def narrowers_of(self, concept_id: ConceptId) -> tuple[ConceptId, ...]:
        return self.narrowers.get(concept_id, ())

    def ids(self) -> set[ConceptId]:
        return set(self.tops) | set(self.parents)
