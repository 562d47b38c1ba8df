from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, inspect, select

from bulkimport.adapters.sqlalchemy import create_all_tables, start_mappers
from bulkimport.adapters.sqlalchemy.mappings import resource_table, value_table
from bulkimport.domain.model import Resource, Value

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_start_mappers_is_idempotent() -> None:
    # First invocation happens in the sqlite_engine fixture.
    start_mappers()
    start_mappers()


def test_create_all_tables_registers_destination_tables(sqlite_engine: Engine) -> None:
    create_all_tables(sqlite_engine)
    table_names = set(inspect(sqlite_engine).get_table_names())
    for required in ("vocabulary", "custom_vocab", "resource_template", "resource", "value"):
        assert required in table_names


def test_removing_a_resource_removes_its_values(sqlite_session: Session) -> None:
    def _count(table: object) -> int:
        return sqlite_session.execute(select(func.count()).select_from(table)).scalar_one()  # type: ignore[arg-type]

    resource = Resource(
        title="Tree",
        values=[Value(term="dcterms:title", value="Tree"), Value(term="dcterms:subject")],
    )
    sqlite_session.add(resource)
    sqlite_session.commit()
    assert _count(resource_table) == 1
    assert _count(value_table) == 2

    sqlite_session.delete(resource)
    sqlite_session.commit()
    assert _count(resource_table) == 0
    assert _count(value_table) == 0


def test_value_rows_point_at_their_resource(sqlite_session: Session) -> None:
    resource = Resource(values=[Value(term="dcterms:title", value="A", lang="fr")])
    sqlite_session.add(resource)
    sqlite_session.commit()

    row = sqlite_session.execute(
        select(value_table.c.resource_id, value_table.c.type, value_table.c.lang)
    ).one()

    assert tuple(row) == (resource.id, "literal", "fr")
