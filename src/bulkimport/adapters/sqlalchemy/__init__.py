"""SQLAlchemy adapter package."""

from __future__ import annotations

from bulkimport.adapters.sqlalchemy.mappings import (
    CLASS_BY_ENTITY_TYPE,
    create_all_tables,
    mapper_registry,
    start_mappers,
)
from bulkimport.adapters.sqlalchemy.placeholders import SqlAlchemyPlaceholderWriter
from bulkimport.adapters.sqlalchemy.store import SqlAlchemyBatchContext, SqlAlchemyEntityStore

__all__ = [
    "CLASS_BY_ENTITY_TYPE",
    "SqlAlchemyBatchContext",
    "SqlAlchemyEntityStore",
    "SqlAlchemyPlaceholderWriter",
    "create_all_tables",
    "mapper_registry",
    "start_mappers",
]
