"""Structural diff between the before and after states of one record."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from bulkimport.domain.diffing.update_modes import update_resource_properties
from bulkimport.domain.model import ChangeCode, DiffEntry, RecordDiff

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from bulkimport.domain.diffing.update_modes import PropertyValues
    from bulkimport.domain.model import UpdateMode

SKIPPED_FIELDS: Final[frozenset[str]] = frozenset(
    {
        "source_index",
        "checked_id",
        "has_error",
        "messageStore",
        "resource_name",
        "@context",
        "@type",
        "@id",
        "o:site",
        "o:thumbnail",
        "o:title",
        "thumbnail_display_urls",
        "o:created",
        "o:modified",
        "o:media",
        "o:item_set",
        "o:item",
    }
)
REFERENCE_FIELDS: Final[frozenset[str]] = frozenset(
    {"o:owner", "o:resource_class", "o:resource_template", "o:primary_media"}
)
VALUE_KEYS: Final[tuple[str, ...]] = (
    "type",
    "value_resource_id",
    "@id",
    "@value",
    "@language",
    "o:label",
    "is_public",
)

_PROPERTY_TERM: Final = re.compile(r"^[A-Za-z][\w-]*:[A-Za-z_][\w.-]*$")


def is_property_term(name: str) -> bool:
    """``prefix:local`` names, excluding the ``o:`` metadata namespace."""
    return not name.startswith(("o:", "o-")) and bool(_PROPERTY_TERM.match(name))


def _is_scalar(value: object) -> bool:
    return value is None or isinstance(value, str | int | float | bool)


def _reference_id(value: object) -> int | None:
    if not isinstance(value, dict) or not value.get("o:id"):
        return None
    try:
        return int(value["o:id"])
    except (TypeError, ValueError):
        return None


def normalize_property_values(values: object) -> PropertyValues:
    """Normalise a property to a list of value objects restricted to comparable keys."""

    if values is None or values == "" or values == []:
        return []
    raw = values if isinstance(values, list) else [values]
    normalized: PropertyValues = []
    for value in raw:
        if isinstance(value, dict):
            entry = {key: value[key] for key in VALUE_KEYS if value.get(key) not in (None, "")}
            entry.setdefault("type", "literal")
        elif _is_scalar(value) and value not in (None, ""):
            entry = {"type": "literal", "@value": value}
        else:
            continue
        normalized.append(entry)
    return normalized


def scalar_value(value: object) -> object:
    """Collapse a value object to a linked resource id, else a URI, else its text."""

    if not isinstance(value, dict):
        return value if _is_scalar(value) else None
    for key in ("value_resource_id", "@id"):
        if value.get(key):
            return value[key]
    literal = value.get("@value")
    return None if literal == "" else literal


def _metadata_entry(name: str, before: object, after: object) -> DiffEntry:
    if name in REFERENCE_FIELDS:
        before = _reference_id(before)
        after = _reference_id(after)

    before_scalar = _is_scalar(before)
    after_scalar = _is_scalar(after)
    if not before_scalar and not after_scalar:
        change = ChangeCode.UNKNOWN
    elif not before_scalar or not after_scalar:
        # only one side is structured: the two shapes cannot be compared
        both_present = before is not None and after is not None
        change = ChangeCode.ERROR if both_present else ChangeCode.UNKNOWN
    elif before == after or (not before and not after):
        change = ChangeCode.UNCHANGED
    elif not after:
        change = ChangeCode.REMOVED
    elif not before:
        change = ChangeCode.ADDED
    else:
        change = ChangeCode.CHANGED
    return DiffEntry(name, before, after, change)


def _property_entries(
    name: str, before: PropertyValues, after: PropertyValues
) -> tuple[DiffEntry, ...]:
    if not before and not after:
        return (DiffEntry(name, None, None, ChangeCode.UNCHANGED),)
    if not after:
        return tuple(DiffEntry(name, value, None, ChangeCode.REMOVED) for value in before)
    if not before:
        return tuple(DiffEntry(name, None, value, ChangeCode.ADDED) for value in after)

    remaining = list(after)
    entries: list[DiffEntry] = []
    for value in before:
        if value in remaining:
            remaining.remove(value)
            entries.append(DiffEntry(name, value, value, ChangeCode.UNCHANGED))
        else:
            entries.append(DiffEntry(name, value, None, ChangeCode.REMOVED))
    entries.extend(DiffEntry(name, None, value, ChangeCode.ADDED) for value in remaining)
    return tuple(entries)


def diff_records(
    before: Mapping[str, object] | None,
    after: Mapping[str, object] | None,
    *,
    update_mode: UpdateMode | None = None,
    is_property: Callable[[str], bool] = is_property_term,
) -> RecordDiff:
    """Compare two exported records field by field.

    ``None`` stands for a record missing on one side and yields one resource-level
    entry. With an update mode that needs a diff, the after values of each
    property are first merged into the before values as the update would do.
    """

    diff = RecordDiff()
    if not before and not after:
        diff.add(DiffEntry("resource", None, None, ChangeCode.UNCHANGED))
        return diff
    if before is None:
        diff.add(DiffEntry("resource", None, after.get("o:id"), ChangeCode.ADDED))
        return diff
    if after is None:
        diff.add(DiffEntry("resource", before.get("o:id"), None, ChangeCode.REMOVED))
        return diff
    if before.get("has_error") or after.get("has_error"):
        diff.add(DiffEntry("has_error", before.get("o:id"), after.get("o:id"), ChangeCode.ERROR))
        return diff

    merge_mode = update_mode if update_mode is not None and update_mode.requires_diff else None
    names = list(dict.fromkeys([*before, *after]))
    for name in names:
        if name in SKIPPED_FIELDS:
            continue
        if not is_property(name):
            diff.add(_metadata_entry(name, before.get(name), after.get(name)))
            continue

        before_values = normalize_property_values(before.get(name))
        after_values = normalize_property_values(after.get(name))
        if merge_mode is not None:
            if after_values:
                merged = update_resource_properties(
                    {name: before_values},
                    {name: after_values},
                    merge_mode,
                    is_property=is_property,
                )
                merged_values = merged.get(name)
                after_values = merged_values if isinstance(merged_values, list) else []
            else:
                after_values = []
        diff.add_many(name, _property_entries(name, before_values, after_values))
    return diff
