from __future__ import annotations

from datetime import datetime

from bulkimport.domain.importing import (
    ConflictResolver,
    CustomVocabPolicy,
    ResourceTemplatePolicy,
    VocabularyPolicy,
    reconcile_named_entities,
)
from bulkimport.domain.model import (
    CustomVocab,
    Decision,
    EntityType,
    IdMap,
    ResourceTemplate,
    TemplateProperty,
    Vocabulary,
)
from tests.support.fakes import FakeEntityStore


def _resolver() -> ConflictResolver:
    return ConflictResolver(clock=lambda: datetime(2024, 5, 6, 7, 8, 9), token=lambda n: "x" * n)


def test_same_namespace_is_reused_whatever_the_prefix() -> None:
    existing = Vocabulary(namespace_uri="http://purl.org/dc/terms/", prefix="dcterms", label="DC", id=1)
    candidate = Vocabulary(namespace_uri="http://purl.org/dc/terms", prefix="dc", label="DC")

    resolution = _resolver().resolve(candidate, [existing], VocabularyPolicy())

    assert resolution.decision is Decision.REUSE
    assert resolution.existing_id == 1


def test_taken_prefix_is_renamed_with_stamp_and_token() -> None:
    existing = Vocabulary(namespace_uri="http://example.org/a#", prefix="ex", label="A", id=1)
    candidate = Vocabulary(namespace_uri="http://example.org/b#", prefix="ex", label="B")

    resolution = _resolver().resolve(candidate, [existing], VocabularyPolicy())

    assert resolution.decision is Decision.RENAME
    assert resolution.entity.prefix == "ex_20240506-070809-xxxx"
    assert resolution.previous_name == "ex"
    assert candidate.prefix == "ex"
    assert resolution.existing_id is None


def test_unknown_entity_is_created() -> None:
    candidate = Vocabulary(namespace_uri="http://example.org/c#", prefix="c", label="C")

    resolution = _resolver().resolve(candidate, [], VocabularyPolicy())

    assert resolution.decision is Decision.CREATE
    assert resolution.entity is candidate


def test_custom_vocab_matches_a_previously_renamed_label() -> None:
    existing = CustomVocab(label="Colours [20240101-000000 abc]", terms=["red", "blue"], id=3)
    candidate = CustomVocab(label="Colours", terms=[" blue", "red", ""])

    resolution = _resolver().resolve(candidate, [existing], CustomVocabPolicy())

    assert resolution.decision is Decision.REUSE


def test_custom_vocab_with_other_terms_is_renamed() -> None:
    existing = CustomVocab(label="Colours", terms=["red"], id=3)
    candidate = CustomVocab(label="Colours", terms=["green"])

    resolution = _resolver().resolve(candidate, [existing], CustomVocabPolicy())

    assert resolution.decision is Decision.RENAME
    assert resolution.entity.label == "Colours [20240506-070809 xxx]"


def test_template_comparison_ignores_label_and_property_order() -> None:
    title = TemplateProperty(property="dcterms:title", data_types=("literal",))
    subject = TemplateProperty(property="dcterms:subject", data_types=("uri", "literal"))
    existing = ResourceTemplate(label="Book", resource_class="bibo:Book", properties=[title, subject], id=4)
    candidate = ResourceTemplate(
        label="Livre",
        resource_class="bibo:Book",
        properties=[
            TemplateProperty(property="dcterms:subject", data_types=("literal", "uri")),
            title,
        ],
    )

    resolution = _resolver().resolve(candidate, [existing], ResourceTemplatePolicy())

    assert resolution.decision is Decision.REUSE


def test_template_with_same_label_and_other_structure_is_renamed() -> None:
    existing = ResourceTemplate(label="Book", resource_class="bibo:Book", id=4)
    candidate = ResourceTemplate(label="Book", resource_class="bibo:Article")

    resolution = _resolver().resolve(candidate, [existing], ResourceTemplatePolicy())

    assert resolution.decision is Decision.RENAME
    assert resolution.entity.label == "Book 20240506-070809 xxxxx"


def test_resolving_twice_gives_the_same_decision() -> None:
    existing = [Vocabulary(namespace_uri="http://example.org/a#", prefix="ex", label="A", id=1)]
    candidate = Vocabulary(namespace_uri="http://example.org/b#", prefix="ex", label="B")
    resolver = _resolver()

    first = resolver.resolve(candidate, existing, VocabularyPolicy())
    second = resolver.resolve(candidate, existing, VocabularyPolicy())

    assert first.decision is second.decision is Decision.RENAME


def test_reconciling_twice_reuses_what_the_first_run_created() -> None:
    store = FakeEntityStore()
    candidates = [
        ("v1", Vocabulary(namespace_uri="http://example.org/a#", prefix="a", label="A")),
        ("v2", Vocabulary(namespace_uri="http://example.org/b#", prefix="b", label="B")),
    ]

    first_ids = IdMap().for_type(EntityType.VOCABULARY)
    first = reconcile_named_entities(
        candidates, store=store, ids=first_ids, policy=VocabularyPolicy(), resolver=_resolver()
    )
    second_ids = IdMap().for_type(EntityType.VOCABULARY)
    second = reconcile_named_entities(
        candidates, store=store, ids=second_ids, policy=VocabularyPolicy(), resolver=_resolver()
    )

    assert (first.created, first.reused) == (2, 0)
    assert (second.created, second.reused) == (0, 2)
    assert first_ids.get("v1") == second_ids.get("v1")
    assert len(store.search(EntityType.VOCABULARY)) == 2


def test_reconcile_reports_destination_names() -> None:
    store = FakeEntityStore()
    store.add(
        EntityType.VOCABULARY,
        Vocabulary(namespace_uri="http://example.org/other#", prefix="ex", label="Other"),
    )
    ids = IdMap().for_type(EntityType.VOCABULARY)

    result = reconcile_named_entities(
        [(5, Vocabulary(namespace_uri="http://example.org/mine#", prefix="ex", label="Mine"))],
        store=store,
        ids=ids,
        policy=VocabularyPolicy(),
        resolver=_resolver(),
    )

    assert result.renamed == 1
    assert result.names[5] == "ex_20240506-070809-xxxx"
    assert ids.get(5) is not None
