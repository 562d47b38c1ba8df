from __future__ import annotations

from datetime import datetime

from bulkimport.domain.importing import ConceptRecord, ThesaurusKeys, linearize
from bulkimport.domain.importing.thesaurus import (
    ConceptConverter,
    ThesaurusScheme,
    link_top_concepts,
    prepare_scheme,
)
from bulkimport.domain.model import CustomVocab, EntityType, IdMap, NarrowerSort, Resource
from tests.support.fakes import FakeEntityStore

NOW = datetime(2024, 1, 2, 3, 4, 5)


def _records(*rows: tuple[object, object, str]) -> list[ConceptRecord]:
    return [ConceptRecord(source_id=row[0], parent_id=row[1] or None, label=row[2]) for row in rows]


def test_linearize_keeps_source_order_without_sort() -> None:
    tree = linearize(
        _records((1, 0, "A"), (2, 1, "B"), (3, 1, "B"), (4, 0, "C")), NarrowerSort.NONE
    )

    assert tree.tops == (1, 4)
    assert tree.narrowers_of(1) == (2, 3)
    assert dict(tree.parents) == {2: 1, 3: 1}


def test_every_concept_is_either_a_top_or_a_narrower() -> None:
    records = _records(
        (1, 0, "A"), (2, 1, "B"), (3, 2, "C"), (4, 2, "D"), (5, 0, "E"), (6, 5, "F"), (7, 42, "G")
    )

    tree = linearize(records)

    narrowers = [child for children in tree.narrowers.values() for child in children]
    assert len(narrowers) == len(set(narrowers))
    for record in records:
        in_tops = record.source_id in tree.tops
        in_narrowers = record.source_id in narrowers
        assert in_tops != in_narrowers


def test_orphans_stay_children_of_their_missing_parent() -> None:
    tree = linearize(_records((7, 42, "G")))

    assert tree.tops == ()
    assert tree.parent_of(7) == 42
    assert tree.narrowers_of(42) == (7,)


def test_duplicate_records_keep_their_first_occurrence() -> None:
    tree = linearize(_records((1, 0, "A"), (2, 1, "B"), (2, 1, "B again"), (1, 0, "A")))

    assert tree.tops == (1,)
    assert tree.narrowers_of(1) == (2,)


def test_narrowers_sorted_by_id_put_numbers_first() -> None:
    tree = linearize(_records((1, 0, "A"), ("x", 1, "X"), (10, 1, "J"), (2, 1, "K")))

    assert tree.narrowers_of(1) == (2, 10, "x")


def test_narrowers_sorted_by_label_ignore_case() -> None:
    tree = linearize(
        _records((1, 0, "A"), (2, 1, "pear"), (3, 1, "Apple"), (4, 1, "banana")),
        NarrowerSort.BY_LABEL,
    )

    assert tree.narrowers_of(1) == (3, 4, 2)


def test_concept_record_reads_configured_keys() -> None:
    keys = ThesaurusKeys(id="code", parent_id="broader", label="name", definition="def")

    record = ConceptRecord.from_source(
        {"code": "12", "broader": "3", "name": "Oak", "def": "A tree"}, keys
    )

    assert record.source_id == 12
    assert record.parent_id == 3
    assert record.label == "Oak"
    assert record.definition == "A tree"


def test_prepare_scheme_creates_item_set_item_and_custom_vocab() -> None:
    store = FakeEntityStore()

    scheme = prepare_scheme(store, name="Trees", owner_id=1, clock=lambda: NOW)

    item_set = store.read(EntityType.ITEM_SET, scheme.item_set_id)
    item = store.read(EntityType.ITEM, scheme.item_id)
    custom_vocab = store.read(EntityType.CUSTOM_VOCAB, scheme.custom_vocab_id)
    assert isinstance(item_set, Resource)
    assert item_set.resource_class == "skos:Collection"
    assert isinstance(item, Resource)
    assert item.resource_class == "skos:ConceptScheme"
    assert item.item_set_ids == [scheme.item_set_id]
    assert isinstance(custom_vocab, CustomVocab)
    assert custom_vocab.label == "Trees"
    assert custom_vocab.item_set_id == scheme.item_set_id


def test_prepare_scheme_renames_a_taken_custom_vocab_label() -> None:
    store = FakeEntityStore()
    store.add(EntityType.CUSTOM_VOCAB, CustomVocab(label="Trees"))

    scheme = prepare_scheme(store, name="Trees", clock=lambda: NOW)

    assert scheme.custom_vocab_label.startswith("Trees 20240102-030405 ")
    assert scheme.custom_vocab_label != "Trees"


def _scheme() -> ThesaurusScheme:
    return ThesaurusScheme(
        name="Trees", item_id=500, item_set_id=400, custom_vocab_id=1, custom_vocab_label="Trees"
    )


def test_top_concepts_are_linked_from_the_scheme() -> None:
    store = FakeEntityStore()
    store.add(EntityType.ITEM, Resource(id=500))
    tree = linearize(_records((1, 0, "A"), (2, 1, "B"), (3, 0, "C")))
    ids = IdMap().for_type(EntityType.CONCEPT)
    ids.assign(1, 11)
    ids.assign(2, 12)

    linked = link_top_concepts(store, _scheme(), tree, ids)

    item = store.read(EntityType.ITEM, 500)
    assert isinstance(item, Resource)
    assert linked == 1
    assert [value.value_resource_id for value in item.values_for("skos:hasTopConcept")] == [11]


def test_concept_converter_builds_skos_links() -> None:
    records = _records((1, 0, "A"), (2, 1, "B"), (3, 1, "C"), (4, 99, ""))
    tree = linearize(records)
    ids = IdMap().for_type(EntityType.CONCEPT)
    for record, destination_id in zip(records, (11, 12, 13, 14), strict=True):
        ids.assign(record.source_id, destination_id)
    converter = ConceptConverter(tree=tree, ids=ids, scheme=_scheme(), clock=lambda: NOW)

    top = converter.convert(ConceptRecord(source_id=1, label="A", definition="First"))
    child = converter.convert(records[1])
    orphan = converter.convert(records[3])

    top_terms = [(value.term, value.value_resource_id or value.value) for value in top["values"]]  # type: ignore[attr-defined]
    assert top_terms == [
        ("skos:prefLabel", "A"),
        ("skos:definition", "First"),
        ("skos:inScheme", 500),
        ("skos:topConceptOf", 500),
        ("skos:narrower", 12),
        ("skos:narrower", 13),
    ]
    assert top["item_set_ids"] == [400]
    assert top["created"] == NOW
    child_links = {value.term: value.value_resource_id for value in child["values"]}  # type: ignore[attr-defined]
    assert child_links["skos:broader"] == 11
    assert orphan["title"] == "[Untitled concept #4]"
    assert "skos:broader" not in {value.term for value in orphan["values"]}  # type: ignore[attr-defined]


def test_concept_dates_are_written_as_values() -> None:
    tree = linearize(_records((1, 0, "A")))
    ids = IdMap().for_type(EntityType.CONCEPT)
    ids.assign(1, 11)
    converter = ConceptConverter(tree=tree, ids=ids, scheme=_scheme(), clock=lambda: NOW)

    fields = converter.convert(
        ConceptRecord(source_id=1, label="A", created="2020-02-03 10:11:12", modified="0000-00-00")
    )

    assert fields["created"] == datetime(2020, 2, 3, 10, 11, 12)
    assert fields["modified"] is None
    created = [value.value for value in fields["values"] if value.term == "dcterms:created"]  # type: ignore[attr-defined]
    assert created == ["2020-02-03 10:11:12"]
