"""SQLAlchemy mapping metadata for the destination entity store."""

from __future__ import annotations

import json
import logging
from functools import cache
from typing import TYPE_CHECKING, Any, Final, cast

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    orm,
)
from sqlalchemy.orm import configure_mappers, relationship

from bulkimport.domain.model import (
    CustomVocab,
    EntityType,
    Resource,
    ResourceTemplate,
    TemplateProperty,
    Value,
    Vocabulary,
)

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class JsonListType(TypeDecorator[list[Any]]):
    impl = Text
    cache_ok = True

    def process_bind_param(self, value: list[Any] | None, dialect: Dialect) -> str | None:
        _ = dialect
        if value is None:
            return None
        return json.dumps(list(value), ensure_ascii=False)

    def process_result_value(self, value: str | None, dialect: Dialect) -> list[Any]:
        _ = dialect
        if value is None:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        return cast(list[Any], loaded)


class TemplatePropertyListType(TypeDecorator[list[TemplateProperty]]):
    impl = Text
    cache_ok = True

    def process_bind_param(
        self, value: list[TemplateProperty] | None, dialect: Dialect
    ) -> str | None:
        _ = dialect
        if value is None:
            return None
        payload = [
            {
                "property": item.property,
                "alternate_label": item.alternate_label,
                "alternate_comment": item.alternate_comment,
                "data_types": list(item.data_types),
                "is_required": item.is_required,
                "is_private": item.is_private,
            }
            for item in value
        ]
        return json.dumps(payload, ensure_ascii=False)

    def process_result_value(
        self, value: str | None, dialect: Dialect
    ) -> list[TemplateProperty]:
        _ = dialect
        if value is None:
            return []
        loaded = json.loads(value)
        if not isinstance(loaded, list):
            return []
        properties: list[TemplateProperty] = []
        for item in cast(list[Any], loaded):
            if not isinstance(item, dict) or not item.get("property"):
                continue
            data = cast(dict[str, Any], item)
            properties.append(
                TemplateProperty(
                    property=str(data["property"]),
                    alternate_label=data.get("alternate_label"),
                    alternate_comment=data.get("alternate_comment"),
                    data_types=tuple(data.get("data_types") or ()),
                    is_required=bool(data.get("is_required")),
                    is_private=bool(data.get("is_private")),
                )
            )
        return properties


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Core tables -----------------------------------------------------------------

vocabulary_table = Table(
    "vocabulary",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("namespace_uri", String(190), nullable=False, unique=True),
    Column("prefix", String(190), nullable=False, unique=True),
    Column("label", String(255), nullable=False),
    Column("comment", Text, nullable=True),
    Column("owner_id", Integer, nullable=True),
)

custom_vocab_table = Table(
    "custom_vocab",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("label", String(190), nullable=False, unique=True),
    Column("lang", String(190), nullable=True),
    Column("terms", JsonListType(), nullable=True),
    Column("item_set_id", Integer, nullable=True),
    Column("owner_id", Integer, nullable=True),
)

resource_template_table = Table(
    "resource_template",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("label", String(190), nullable=False, unique=True),
    Column("resource_class", String(190), nullable=True),
    Column("title_property", String(190), nullable=True),
    Column("description_property", String(190), nullable=True),
    Column("properties", TemplatePropertyListType(), nullable=True),
    Column("owner_id", Integer, nullable=True),
)

resource_table = Table(
    "resource",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("resource_type", String(20), nullable=False, index=True),
    Column("title", Text, nullable=True),
    Column("owner_id", Integer, nullable=True),
    Column("resource_class", String(190), nullable=True),
    Column("resource_template_id", Integer, nullable=True),
    Column("is_public", Boolean, nullable=False, default=True),
    Column("created", DateTime, nullable=True),
    Column("modified", DateTime, nullable=True),
    Column("item_set_ids", JsonListType(), nullable=True),
)

value_table = Table(
    "value",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "resource_id",
        Integer,
        ForeignKey("resource.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("term", String(190), nullable=False),
    Column("type", String(190), nullable=False),
    Column("value", Text, nullable=True),
    Column("uri", Text, nullable=True),
    Column("value_resource_id", Integer, nullable=True),
    Column("lang", String(190), nullable=True),
    Column("is_public", Boolean, nullable=False, default=True),
)


CLASS_BY_ENTITY_TYPE: Final[dict[EntityType, type[Any]]] = {
    EntityType.VOCABULARY: Vocabulary,
    EntityType.CUSTOM_VOCAB: CustomVocab,
    EntityType.RESOURCE_TEMPLATE: ResourceTemplate,
    EntityType.ITEM_SET: Resource,
    EntityType.ITEM: Resource,
    EntityType.MEDIA: Resource,
    EntityType.CONCEPT: Resource,
}

RESOURCE_TYPE_BY_ENTITY_TYPE: Final[dict[EntityType, str]] = {
    EntityType.ITEM_SET: "item_set",
    EntityType.ITEM: "item",
    EntityType.MEDIA: "media",
    EntityType.CONCEPT: "item",
}


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Vocabulary, vocabulary_table)
    mapper_registry.map_imperatively(CustomVocab, custom_vocab_table)
    mapper_registry.map_imperatively(ResourceTemplate, resource_template_table)
    mapper_registry.map_imperatively(
        Value,
        value_table,
    )
    mapper_registry.map_imperatively(
        Resource,
        resource_table,
        properties={
            "values": relationship(
                Value,
                cascade="all, delete-orphan",
                order_by=value_table.c.id,
            ),
        },
    )

    configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    """Create database tables for the mapped metadata."""

    log.info("Creating all tables")
    mapper_registry.metadata.create_all(engine)
