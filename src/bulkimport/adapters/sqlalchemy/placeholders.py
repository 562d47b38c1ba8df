"""Bulk placeholder creation through a scratch table and marker recovery."""

from __future__ import annotations

import logging
from itertools import batched
from typing import TYPE_CHECKING, Any

from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    String,
    Table,
    func,
    literal,
    select,
    update,
)

from bulkimport.adapters.sqlalchemy.mappings import mapper_registry
from bulkimport.domain.errors import PlaceholderConfigurationError
from bulkimport.domain.model import SOURCE_ID, integer_id

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from sqlalchemy.orm import Session
    from sqlalchemy.sql.elements import ColumnElement

    from bulkimport.domain.model import TableBinding

log = logging.getLogger(__name__)

_scratch_metadata = MetaData()

scratch_table = Table(
    "_temporary_source_entities",
    _scratch_metadata,
    Column("source_id", String(190), primary_key=True),
    Column("keep_id", Integer, nullable=True),
)


class SqlAlchemyPlaceholderWriter:
    """Claims destination rows for source ids with a few set-based statements."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _table(self, binding: TableBinding) -> Table:
        table = mapper_registry.metadata.tables.get(binding.table)
        if table is None or binding.keep_id_column not in table.c:
            raise PlaceholderConfigurationError(
                binding.table, f"unknown table or column {binding.keep_id_column!r}"
            )
        return table

    def existing_ids(self, binding: TableBinding) -> set[int]:
        table = self._table(binding)
        return set(self.session.scalars(select(table.c.id)))

    def create_placeholders(
        self,
        binding: TableBinding,
        *,
        source_ids: Sequence[str],
        defaults: Mapping[str, object],
        marker_prefix: str,
        chunk_size: int,
    ) -> dict[str, int]:
        if not source_ids:
            return {}
        table = self._table(binding)
        unknown = [name for name in defaults if name not in table.c]
        if unknown:
            raise PlaceholderConfigurationError(
                binding.table, f"unknown columns: {', '.join(sorted(unknown))}"
            )

        self._drop_scratch_table()
        scratch_table.create(self.session.connection())
        try:
            for chunk in batched(source_ids, chunk_size):
                self.session.execute(
                    scratch_table.insert(),
                    [{"source_id": value, "keep_id": integer_id(value)} for value in chunk],
                )
            self._insert_rows(table, binding, defaults, marker_prefix)
            mapping = self._recover(table, binding, marker_prefix)
            self._strip_markers(table, binding, defaults, marker_prefix)
        except Exception:
            # Some drivers create the table outside the transaction, so a
            # rollback would bring it back: drop it in a transaction of its own.
            self.session.rollback()
            self._drop_scratch_table()
            self.session.commit()
            raise
        self._drop_scratch_table()

        log.debug("Recovered %d placeholder ids from %s", len(mapping), binding.table)
        return mapping

    def _drop_scratch_table(self) -> None:
        scratch_table.drop(self.session.connection(), checkfirst=True)

    def _insert_rows(
        self,
        table: Table,
        binding: TableBinding,
        defaults: Mapping[str, object],
        marker_prefix: str,
    ) -> None:
        keep_column = binding.keep_id_column
        names = [name for name in defaults if name != keep_column]
        expressions: list[ColumnElement[Any]] = []
        for name in names:
            value = defaults[name]
            if value is SOURCE_ID:
                source = scratch_table.c.keep_id if name == "id" else scratch_table.c.source_id
                expressions.append(source)
            else:
                expressions.append(literal(value, type_=table.c[name].type))
        names.append(keep_column)
        expressions.append(literal(marker_prefix) + scratch_table.c.source_id)

        stmt = table.insert().from_select(names, select(*expressions))
        self.session.execute(stmt)

    def _recover(
        self, table: Table, binding: TableBinding, marker_prefix: str
    ) -> dict[str, int]:
        keep = table.c[binding.keep_id_column]
        stmt = select(func.substr(keep, len(marker_prefix) + 1), table.c.id).where(
            keep.startswith(marker_prefix, autoescape=True)
        )
        return {str(source_id): int(new_id) for source_id, new_id in self.session.execute(stmt)}

    def _strip_markers(
        self,
        table: Table,
        binding: TableBinding,
        defaults: Mapping[str, object],
        marker_prefix: str,
    ) -> None:
        keep = table.c[binding.keep_id_column]
        default = defaults.get(binding.keep_id_column, SOURCE_ID)
        replacement: object
        if default is SOURCE_ID:
            replacement = func.substr(keep, len(marker_prefix) + 1)
        else:
            replacement = default
        stmt = (
            update(table)
            .where(keep.startswith(marker_prefix, autoescape=True))
            .values({binding.keep_id_column: replacement})
        )
        self.session.execute(stmt)
