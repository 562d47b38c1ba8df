"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import zip_longest
from logging import getLogger
from typing import TYPE_CHECKING

from bulkimport.adapters.json_source import load_dump, translate_dump
from bulkimport.adapters.reports import (
    JsonDiffSink,
    SpreadsheetSink,
    prepare_report_path,
    sheet_title,
)
from bulkimport.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyImportUnitOfWork,
    is_started,
    startup,
)
from bulkimport.config import get_import_config, get_storage_config
from bulkimport.domain.diffing import ColumnIndex, diff_records, flatten, rows_by_column, rows_by_row
from bulkimport.domain.errors import ReportSinkError
from bulkimport.domain.importing import ImportContext, ImportRun

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
    from pathlib import Path

    from bulkimport.config import ImportConfig
    from bulkimport.domain.importing import ImportSource, ImportSummary
    from bulkimport.domain.model import RecordDiff, RunStatus, UpdateMode
    from bulkimport.domain.ports import DiffJsonSink, ImportUnitOfWork, TabularSink

type UnitOfWorkFactory = Callable[[], ImportUnitOfWork]

log = getLogger(__name__)


def run_import(
    source: ImportSource,
    *,
    config: ImportConfig | None = None,
    unit_of_work_factory: UnitOfWorkFactory | None = None,
    context: ImportContext | None = None,
) -> ImportSummary:
    """Import one translated source using the configured adapters."""

    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemyImportUnitOfWork
    effective_config = config or get_import_config()
    log.info(
        "Starting import: entity_chunk_size=%s, record_id_chunk_size=%s, sort=%s",
        effective_config.entity_chunk_size,
        effective_config.record_id_chunk_size,
        effective_config.narrowers_sort,
    )
    run = ImportRun(
        unit_of_work_factory=unit_of_work_factory,
        config=effective_config,
        context=context,
    )
    summary = run.run(source)
    for entity_type, counters in summary.counters.items():
        log.info(
            "%s: total=%d, created=%d, skipped=%d, reused=%d, renamed=%d",
            entity_type,
            counters.total,
            counters.created,
            counters.skipped,
            counters.reused,
            counters.renamed,
        )
    return summary


def import_dump(
    path: Path,
    *,
    config: ImportConfig | None = None,
    context: ImportContext | None = None,
) -> ImportSummary:
    """Validate a JSON dump and import it."""

    log.info("Reading dump %s", path)
    source = translate_dump(load_dump(path))
    return run_import(source, config=config, context=context)


@dataclass(slots=True)
class DiffReportResult:
    status: RunStatus
    errors: int
    records: int = 0
    paths: list[Path] = field(default_factory=list["Path"])


type RecordPair = tuple[Mapping[str, object] | None, Mapping[str, object] | None]


def _record_diffs(pairs: Iterable[RecordPair], update_mode: UpdateMode) -> Iterator[RecordDiff]:
    for before_record, after_record in pairs:
        yield diff_records(before_record, after_record, update_mode=update_mode)


def _write_json_report(
    pairs: Sequence[RecordPair],
    *,
    update_mode: UpdateMode,
    path_for: Callable[[], Path],
    index: ColumnIndex,
    context: ImportContext,
) -> Path | None:
    """Stream the JSON report while collecting the spreadsheet columns.

    A sink failure stops the JSON output only: every record is still observed.
    """

    sink: DiffJsonSink | None = None
    try:
        sink = JsonDiffSink(path_for())
        sink.open({"update_mode": str(update_mode)})
    except ReportSinkError as exc:
        log.error("Diff report could not be written: %s", exc)
        context.record_error()
        sink = None

    for record in _record_diffs(pairs, update_mode):
        index.observe(flatten(record))
        if sink is None:
            continue
        try:
            sink.write(record)
        except ReportSinkError as exc:
            log.error("Diff report could not be written: %s", exc)
            context.record_error()
            sink = None

    if sink is None:
        return None
    try:
        return sink.close()
    except ReportSinkError as exc:
        log.error("Diff report could not be written: %s", exc)
        context.record_error()
        return None


def write_diff_reports(
    before: Iterable[Mapping[str, object] | None],
    after: Iterable[Mapping[str, object] | None],
    *,
    update_mode: UpdateMode,
    name: str,
    directory: Path | None = None,
    context: ImportContext | None = None,
) -> DiffReportResult:
    """Diff paired records and write the JSON, by-row and by-column reports.

    Records are paired by position. Modes that never touch existing records
    produce no report. A report that cannot be written is logged, counted as an
    error on ``context`` and skipped; nothing is raised. Diffs are recomputed
    for each report so that no report keeps every flattened row in memory.
    """

    context = context or ImportContext()
    result = DiffReportResult(status=context.status, errors=context.errors)
    if not update_mode.requires_diff:
        log.info('Update mode "%s" does not compare records: no diff report', update_mode)
        result.status = context.finish()
        return result

    target = directory or get_storage_config().reports_dir()
    pairs: list[RecordPair] = list(zip_longest(before, after))
    result.records = len(pairs)
    index = ColumnIndex()

    json_path = _write_json_report(
        pairs,
        update_mode=update_mode,
        path_for=lambda: prepare_report_path(target, name, "json", suffix="-diff"),
        index=index,
        context=context,
    )
    if json_path is not None:
        result.paths.append(json_path)
        log.info("Diff of %d records written to %s", result.records, json_path)

    columns = index.columns
    title = sheet_title(str(update_mode))
    for suffix, layout in (("-diff-row", rows_by_row), ("-diff-col", rows_by_column)):
        rows = (flatten(record) for record in _record_diffs(pairs, update_mode))
        try:
            path = prepare_report_path(target, name, "xlsx", suffix=suffix)
            spreadsheet: TabularSink = SpreadsheetSink(path)
            result.paths.append(spreadsheet.write(title, layout(rows, columns)))
            log.info("Diff spreadsheet written to %s", path)
        except ReportSinkError as exc:
            log.error("Diff spreadsheet could not be written: %s", exc)
            context.record_error()

    result.status = context.finish()
    result.errors = context.errors
    return result
