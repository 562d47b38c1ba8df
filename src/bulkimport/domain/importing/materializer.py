"""Fill placeholder rows with converted record values in fixed-size batches."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping, Sequence

    from bulkimport.domain.model import IdMapSlice, SourceId
    from bulkimport.domain.ports import BatchPersistenceContext, Entity

log = logging.getLogger(__name__)


class SourceRecord(Protocol):
    @property
    def source_id(self) -> SourceId: ...


class RecordConverter[TRecord: SourceRecord](Protocol):
    """Maps one source record to destination field values."""

    def convert(self, record: TRecord) -> Mapping[str, object]: ...


class RecordValidator(Protocol):
    def validate(self, entity: Entity, fields: Mapping[str, object]) -> Sequence[str]:
        """Return validation error messages (empty when valid)."""
        ...


@dataclass(frozen=True, slots=True)
class MaterializeResult:
    iterated: int
    created: int
    skipped: int
    total: int
    flushes: int
    halted: bool


class BatchedMaterializer[TRecord: SourceRecord]:
    """Drive the fill phase of one record type.

    The chunk size applies to successfully staged records. Before each flush the
    halt check runs; when it reports an error or a stop, iteration ends without
    flushing the pending batch.
    """

    def __init__(
        self,
        *,
        label: str,
        ids: IdMapSlice,
        batch: BatchPersistenceContext,
        converter: RecordConverter[TRecord],
        validator: RecordValidator,
        chunk_size: int,
        halt_check: Callable[[], bool] = lambda: False,
    ) -> None:
        self._label = label
        self._ids = ids
        self._batch = batch
        self._converter = converter
        self._validator = validator
        self._chunk_size = chunk_size
        self._halt_check = halt_check

    def run(self, records: Iterable[TRecord], *, total: int) -> MaterializeResult:
        iterated = created = skipped = flushes = pending = 0
        halted = False

        for record in records:
            iterated += 1
            if not self._materialize(record):
                skipped += 1
                continue
            created += 1
            pending += 1
            if pending < self._chunk_size:
                continue
            if self._halt_check():
                halted = True
                break
            self._flush()
            flushes += 1
            pending = 0
            log.info(
                '%d/%d resource "%s" imported, %d skipped.', created, total, self._label, skipped
            )

        if not halted and pending:
            if self._halt_check():
                halted = True
            else:
                self._flush()
                flushes += 1

        if halted:
            log.warning(
                'Import of "%s" halted after %d/%d records, %d not flushed.',
                self._label,
                iterated,
                total,
                pending,
            )
        else:
            log.info(
                '%d/%d resource "%s" imported, %d skipped.', created, total, self._label, skipped
            )
        return MaterializeResult(
            iterated=iterated,
            created=created,
            skipped=skipped,
            total=total,
            flushes=flushes,
            halted=halted,
        )

    def _materialize(self, record: TRecord) -> bool:
        source_id = record.source_id
        destination_id = self._ids.get(source_id)
        if destination_id is None:
            log.info(
                'Skipped %s #%s: added after placeholders were created.', self._label, source_id
            )
            return False

        entity = self._batch.find(self._ids.entity_type, destination_id)
        if entity is None:
            log.error("%s #%s: placeholder #%s not found.", self._label, source_id, destination_id)
            return False

        fields = self._converter.convert(record)
        messages = self._validator.validate(entity, fields)
        if messages:
            for message in messages:
                log.error("%s #%s: %s", self._label, source_id, message)
            return False

        for name, value in fields.items():
            setattr(entity, name, value)
        self._batch.stage(entity)
        return True

    def _flush(self) -> None:
        self._batch.flush()
        self._batch.clear()
