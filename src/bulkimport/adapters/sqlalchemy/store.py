"""SQLAlchemy implementations of the entity store and batch context ports."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, cast

from sqlalchemy import select

from bulkimport.adapters.sqlalchemy.mappings import (
    CLASS_BY_ENTITY_TYPE,
    RESOURCE_TYPE_BY_ENTITY_TYPE,
)
from bulkimport.domain.errors import EntityNotFoundError
from bulkimport.domain.model import Resource

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.orm import Session

    from bulkimport.domain.model import EntityType
    from bulkimport.domain.ports import Entity

log = logging.getLogger(__name__)


class SqlAlchemyEntityStore:
    """Entity store backed by a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def create(self, entity_type: EntityType, fields: Mapping[str, object]) -> int:
        entity_class = CLASS_BY_ENTITY_TYPE[entity_type]
        payload = dict(fields)
        payload.pop("id", None)
        if entity_class is Resource:
            payload["resource_type"] = RESOURCE_TYPE_BY_ENTITY_TYPE[entity_type]
        entity = entity_class(**payload)
        self.session.add(entity)
        self.session.flush()
        log.debug("Created %s #%s", entity_type, entity.id)
        return cast(int, entity.id)

    def read(self, entity_type: EntityType, entity_id: int) -> Entity:
        entity = self._get(entity_type, entity_id)
        if entity is None:
            raise EntityNotFoundError(entity_type, entity_id)
        return entity

    def search(self, entity_type: EntityType, **criteria: object) -> list[Entity]:
        entity_class = CLASS_BY_ENTITY_TYPE[entity_type]
        stmt = select(entity_class).filter_by(**criteria)
        if entity_class is Resource:
            stmt = stmt.filter_by(resource_type=RESOURCE_TYPE_BY_ENTITY_TYPE[entity_type])
        stmt = stmt.order_by(entity_class.id)
        return list(self.session.scalars(stmt))

    def update(
        self, entity_type: EntityType, entity_id: int, fields: Mapping[str, object]
    ) -> None:
        entity = self.read(entity_type, entity_id)
        for name, value in fields.items():
            if name == "id":
                continue
            setattr(entity, name, value)
        self.session.flush()

    def _get(self, entity_type: EntityType, entity_id: int) -> Entity | None:
        entity_class = CLASS_BY_ENTITY_TYPE[entity_type]
        entity = cast("Entity | None", self.session.get(entity_class, entity_id))
        if isinstance(entity, Resource) and (
            entity.resource_type != RESOURCE_TYPE_BY_ENTITY_TYPE[entity_type]
        ):
            return None
        return entity


class SqlAlchemyBatchContext:
    """Stages entities in the session; a flush commits them and a clear detaches them."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def stage(self, entity: Entity) -> None:
        self.session.add(entity)

    def flush(self) -> None:
        self.session.commit()

    def clear(self) -> None:
        self.session.expunge_all()

    def find(self, entity_type: EntityType, entity_id: int) -> Entity | None:
        entity_class: Any = CLASS_BY_ENTITY_TYPE[entity_type]
        return cast("Entity | None", self.session.get(entity_class, entity_id))
