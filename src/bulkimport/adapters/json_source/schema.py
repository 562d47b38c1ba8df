"""Pydantic models describing the JSON dump read by the ``import`` command."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, ClassVar, cast

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

log = logging.getLogger(__name__)

type SourceKey = int | str

INTERNAL_PREFIXES = ("o:", "o-", "@")


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _unwrap(value: object, key: str) -> object:
    """Read ``{"key": x}`` references; plain scalars pass through."""
    if isinstance(value, Mapping):
        return cast(Mapping[str, object], value).get(key)
    return value


class DumpBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class VocabularyPayload(DumpBaseModel):
    id: SourceKey = Field(alias="o:id")
    namespace_uri: str = Field(alias="o:namespace_uri")
    prefix: str = Field(alias="o:prefix")
    label: str = Field(alias="o:label")
    comment: str | None = Field(default=None, alias="o:comment")


class CustomVocabPayload(DumpBaseModel):
    id: SourceKey = Field(alias="o:id")
    label: str = Field(alias="o:label")
    lang: str | None = Field(default=None, alias="o:lang")
    terms: list[str] = Field(default_factory=list[str], alias="o:terms")
    item_set: SourceKey | None = Field(default=None, alias="o:item_set")

    _normalize_lang = field_validator("lang", mode="before")(_blank_to_none)

    @field_validator("terms", mode="before")
    @classmethod
    def _split_terms(cls, value: object) -> object:
        if isinstance(value, str):
            return value.splitlines()
        if value is None:
            return []
        return value

    @field_validator("item_set", mode="before")
    @classmethod
    def _unwrap_item_set(cls, value: object) -> object:
        return _unwrap(value, "o:id")


class TemplatePropertyPayload(DumpBaseModel):
    property: str = Field(alias="o:property")
    alternate_label: str | None = Field(default=None, alias="o:alternate_label")
    alternate_comment: str | None = Field(default=None, alias="o:alternate_comment")
    data_types: list[str] = Field(default_factory=list[str], alias="o:data_type")
    is_required: bool = Field(default=False, alias="o:is_required")
    is_private: bool = Field(default=False, alias="o:is_private")

    _normalize_text = field_validator("alternate_label", "alternate_comment", mode="before")(
        _blank_to_none
    )

    @field_validator("property", mode="before")
    @classmethod
    def _unwrap_property(cls, value: object) -> object:
        return _unwrap(value, "o:term")

    @field_validator("data_types", mode="before")
    @classmethod
    def _listify(cls, value: object) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


class ResourceTemplatePayload(DumpBaseModel):
    id: SourceKey = Field(alias="o:id")
    label: str = Field(alias="o:label")
    resource_class: str | None = Field(default=None, alias="o:resource_class")
    title_property: str | None = Field(default=None, alias="o:title_property")
    description_property: str | None = Field(default=None, alias="o:description_property")
    properties: list[TemplatePropertyPayload] = Field(
        default_factory=list[TemplatePropertyPayload], alias="o:resource_template_property"
    )

    @field_validator(
        "resource_class", "title_property", "description_property", mode="before"
    )
    @classmethod
    def _unwrap_term(cls, value: object) -> object:
        return _unwrap(value, "o:term")


class ValuePayload(DumpBaseModel):
    type: str = "literal"
    value: str | None = Field(default=None, alias="@value")
    uri: str | None = Field(default=None, alias="@id")
    label: str | None = Field(default=None, alias="o:label")
    value_resource_id: SourceKey | None = None
    value_resource_name: str | None = None
    lang: str | None = Field(default=None, alias="@language")
    is_public: bool = True

    @field_validator("value", mode="before")
    @classmethod
    def _stringify(cls, value: object) -> object:
        if isinstance(value, int | float) and not isinstance(value, bool):
            return str(value)
        return value


_VALUE_LIST = TypeAdapter(list[ValuePayload])


class ResourcePayload(BaseModel):
    """One item, item set or media; property terms are read from the extra keys."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)
    _logged_extra_keys: ClassVar[set[str]] = set()

    id: SourceKey = Field(alias="o:id")
    title: str | None = Field(default=None, alias="o:title")
    is_public: bool = Field(default=True, alias="o:is_public")
    owner: int | None = Field(default=None, alias="o:owner")
    resource_class: str | None = Field(default=None, alias="o:resource_class")
    resource_template: SourceKey | None = Field(default=None, alias="o:resource_template")
    created: object = Field(default=None, alias="o:created")
    modified: object = Field(default=None, alias="o:modified")
    item_sets: list[SourceKey] = Field(default_factory=list[SourceKey], alias="o:item_set")

    @field_validator("owner", "resource_template", mode="before")
    @classmethod
    def _unwrap_id(cls, value: object) -> object:
        return _unwrap(value, "o:id")

    @field_validator("resource_class", mode="before")
    @classmethod
    def _unwrap_term(cls, value: object) -> object:
        return _unwrap(value, "o:term")

    @field_validator("created", "modified", mode="before")
    @classmethod
    def _unwrap_date(cls, value: object) -> object:
        return _unwrap(value, "@value")

    @field_validator("item_sets", mode="before")
    @classmethod
    def _unwrap_item_sets(cls, value: object) -> object:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        return [_unwrap(entry, "o:id") for entry in cast(list[object], value)]

    def properties(self) -> dict[str, list[ValuePayload]]:
        """Property values keyed by term, in dump order."""
        extras: dict[str, Any] = self.__pydantic_extra__ or {}
        result: dict[str, list[ValuePayload]] = {}
        ignored: set[str] = set()
        for key, raw in extras.items():
            if key.startswith(INTERNAL_PREFIXES) or ":" not in key or not isinstance(raw, list):
                ignored.add(key)
                continue
            result[key] = _VALUE_LIST.validate_python(raw)
        new_keys = ignored.difference(self._logged_extra_keys)
        if new_keys:
            self._logged_extra_keys.update(new_keys)
            log.debug("Resource dump: ignored keys: %s", ", ".join(sorted(new_keys)))
        return result


class ThesaurusKeysPayload(DumpBaseModel):
    id: str = "id"
    parent_id: str | None = "parent_id"
    label: str | None = "label"
    definition: str | None = None
    scope_note: str | None = None
    created: str | None = None
    modified: str | None = None


class ThesaurusPayload(DumpBaseModel):
    name: str = "Thesaurus"
    keys: ThesaurusKeysPayload = Field(default_factory=ThesaurusKeysPayload)
    concepts: list[dict[str, Any]] = Field(default_factory=list[dict[str, Any]])


class ImportDump(DumpBaseModel):
    owner_id: int | None = None
    vocabularies: list[VocabularyPayload] = Field(default_factory=list[VocabularyPayload])
    custom_vocabs: list[CustomVocabPayload] = Field(default_factory=list[CustomVocabPayload])
    resource_templates: list[ResourceTemplatePayload] = Field(
        default_factory=list[ResourceTemplatePayload]
    )
    item_sets: list[ResourcePayload] = Field(default_factory=list[ResourcePayload])
    items: list[ResourcePayload] = Field(default_factory=list[ResourcePayload])
    media: list[ResourcePayload] = Field(default_factory=list[ResourcePayload])
    thesaurus: ThesaurusPayload | None = None
