from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import pytest

from bulkimport.domain.importing import BatchedMaterializer
from bulkimport.domain.model import EntityType, IdMap, Resource
from tests.support.fakes import FakeBatch

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from bulkimport.domain.model import IdMapSlice
    from bulkimport.domain.ports import Entity


@dataclass(frozen=True)
class Record:
    source_id: int
    title: str = ""


class TitleConverter:
    def convert(self, record: Record) -> dict[str, object]:
        return {"title": record.title or f"Record {record.source_id}"}


class RejectingValidator:
    def __init__(self, rejected: set[str] | None = None) -> None:
        self.rejected = rejected or set()

    def validate(self, entity: Entity, fields: Mapping[str, object]) -> Sequence[str]:
        _ = entity
        return ["rejected title"] if fields.get("title") in self.rejected else []


def _setup(count: int) -> tuple[IdMapSlice, FakeBatch, list[Record]]:
    ids = IdMap().for_type(EntityType.ITEM)
    batch = FakeBatch()
    records = [Record(source_id=index) for index in range(1, count + 1)]
    for record in records:
        ids.assign(record.source_id, record.source_id + 1000)
        batch.entities[record.source_id + 1000] = Resource(id=record.source_id + 1000)
    return ids, batch, records


def _materializer(
    ids: IdMapSlice,
    batch: FakeBatch,
    *,
    chunk_size: int,
    validator: RejectingValidator | None = None,
    halt_check: object = None,
) -> BatchedMaterializer[Record]:
    return BatchedMaterializer(
        label="item",
        ids=ids,
        batch=batch,
        converter=TitleConverter(),
        validator=validator or RejectingValidator(),
        chunk_size=chunk_size,
        halt_check=halt_check or (lambda: False),  # type: ignore[arg-type]
    )


def test_flushes_in_fixed_size_chunks(caplog: pytest.LogCaptureFixture) -> None:
    ids, batch, records = _setup(2500)
    caplog.set_level(logging.INFO)

    result = _materializer(ids, batch, chunk_size=1000).run(records, total=len(records))

    assert batch.flushed == [1000, 1000, 500]
    assert batch.clears == 3
    assert result.flushes == 3
    assert result.created == 2500
    assert result.skipped == 0
    assert not result.halted
    assert '2500/2500 resource "item" imported, 0 skipped.' in caplog.messages[-1]


def test_fields_are_applied_to_the_placeholder() -> None:
    ids, batch, records = _setup(1)

    _materializer(ids, batch, chunk_size=10).run([Record(1, "Hello")], total=1)

    assert batch.entities[1001].title == "Hello"
    assert records[0].source_id == 1


def test_invalid_records_are_skipped_and_not_counted_in_the_chunk() -> None:
    ids, batch, records = _setup(5)
    validator = RejectingValidator({"Record 2", "Record 4"})

    result = _materializer(ids, batch, chunk_size=2, validator=validator).run(
        records, total=5
    )

    assert result.created == 3
    assert result.skipped == 2
    assert batch.flushed == [2, 1]
    assert batch.entities[1002].title is None


def test_records_added_after_allocation_are_skipped() -> None:
    ids, batch, records = _setup(2)

    result = _materializer(ids, batch, chunk_size=10).run(
        [*records, Record(source_id=99)], total=3
    )

    assert result.iterated == 3
    assert result.created == 2
    assert result.skipped == 1


def test_missing_placeholder_is_skipped() -> None:
    ids, batch, records = _setup(2)
    del batch.entities[1002]

    result = _materializer(ids, batch, chunk_size=10).run(records, total=2)

    assert result.created == 1
    assert result.skipped == 1


def test_halt_check_stops_before_flushing_the_pending_batch() -> None:
    ids, batch, records = _setup(25)
    calls: list[int] = []

    def halt_after_first_flush() -> bool:
        calls.append(1)
        return len(calls) > 1

    result = _materializer(
        ids, batch, chunk_size=10, halt_check=halt_after_first_flush
    ).run(records, total=25)

    assert result.halted
    assert batch.flushed == [10]
    assert result.iterated == 20
    assert result.flushes == 1


def test_halt_check_also_guards_the_final_partial_batch() -> None:
    ids, batch, records = _setup(5)

    result = _materializer(ids, batch, chunk_size=10, halt_check=lambda: True).run(
        records, total=5
    )

    assert result.halted
    assert batch.flushed == []
    assert batch.clears == 0
    assert result.flushes == 0
    assert result.iterated == 5
