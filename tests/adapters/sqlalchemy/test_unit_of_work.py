from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from bulkimport.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyImportUnitOfWork,
    StartupError,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from bulkimport.domain.model import EntityType

if TYPE_CHECKING:
    from collections.abc import Iterator

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def test_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyImportUnitOfWork()


def test_startup_requires_force_for_reconfiguration() -> None:
    engine_a = create_engine("sqlite+pysqlite:///:memory:", future=True)
    engine_b = create_engine("sqlite+pysqlite:///:memory:", future=True)

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_repositories_require_an_open_unit_of_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyImportUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories


def test_committed_entities_survive_the_unit_of_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyImportUnitOfWork() as uow:
        vocabulary_id = uow.repositories.store.create(
            EntityType.VOCABULARY,
            {"namespace_uri": "http://purl.org/dc/terms/", "prefix": "dcterms", "label": "DC"},
        )
        uow.commit()

    with SqlAlchemyImportUnitOfWork() as uow:
        found = uow.repositories.store.search(EntityType.VOCABULARY, prefix="dcterms")
        assert [entity.id for entity in found] == [vocabulary_id]


def test_exception_rolls_back_pending_work(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(RuntimeError), SqlAlchemyImportUnitOfWork() as uow:
        uow.repositories.store.create(EntityType.ITEM, {"title": "lost"})
        raise RuntimeError("boom")

    with SqlAlchemyImportUnitOfWork() as uow:
        assert uow.repositories.store.search(EntityType.ITEM) == []
